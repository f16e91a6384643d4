"""phpintel HTTP API (FastAPI).

One POST endpoint per exposed method. This module is optional and requires
the `api` extra.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any

try:
    from fastapi import FastAPI, HTTPException
    from fastapi.responses import JSONResponse
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "phpintel HTTP API requires FastAPI. Install with: pip install 'phpintel[api]'"
    ) from e

from pydantic import BaseModel, Field

from phpintel.client import PhpIntelClient
from phpintel.core.config import get_config
from phpintel.core.models import StaticMode
from phpintel.index.classmap import ClassMapError
from phpintel.index.supervisor import WorkerStartupError
from phpintel.reflection.base import FatalLoadError


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


class InfoRequest(BaseModel):
    class_name: str | None = Field(default=None, description="Class to complete members of")
    pattern: str | None = Field(default=None, description="Typed prefix")
    static_mode: StaticMode = Field(default=StaticMode.BOTH)
    public_only: bool = Field(default=True)


class MemberRequest(BaseModel):
    class_name: str | None = Field(default=None, description="Class name, empty for functions")
    name: str = Field(..., description="Member or function name")


class DocRequest(MemberRequest):
    is_method: bool = Field(default=True)


class PathRequest(BaseModel):
    path: str = Field(..., description="PHP source file")


class UpdateRequest(BaseModel):
    class_name: str = Field(..., description="Fully qualified class name")
    path: str | None = Field(default=None, description="Source file to (re)load first")


class LsRequest(BaseModel):
    name: str = Field(..., description="Interface or class name")
    is_abstract: bool = Field(default=False, description="Read implementors instead of subclasses")


def create_app(client: PhpIntelClient | None = None) -> FastAPI:
    client = client or PhpIntelClient(get_config().root)

    app = FastAPI(
        title="phpintel API",
        version="0.1.0",
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "root": str(client.root)}

    @app.post("/info")
    def info(req: InfoRequest) -> JSONResponse:
        items = client.info(req.class_name, req.pattern, req.static_mode, req.public_only)
        return JSONResponse(content=_to_jsonable(items))

    @app.post("/location")
    def location(req: MemberRequest) -> JSONResponse:
        return JSONResponse(content=_to_jsonable(client.location(req.class_name, req.name).as_tuple()))

    @app.post("/doc")
    def doc(req: DocRequest) -> JSONResponse:
        result = client.doc(req.class_name, req.name, req.is_method)
        return JSONResponse(content=[result.path, result.doc])

    @app.post("/nsuse")
    def nsuse(req: PathRequest) -> JSONResponse:
        return JSONResponse(content=_to_jsonable(client.nsuse(req.path)))

    @app.post("/functype")
    def functype(req: MemberRequest) -> JSONResponse:
        return JSONResponse(content=client.functype(req.class_name, req.name))

    @app.post("/proptype")
    def proptype(req: MemberRequest) -> JSONResponse:
        return JSONResponse(content=client.proptype(req.class_name, req.name))

    @app.post("/psr4ns")
    def psr4ns(req: PathRequest) -> JSONResponse:
        return JSONResponse(content=client.psr4ns(req.path))

    @app.post("/update")
    def update(req: UpdateRequest) -> JSONResponse:
        if req.path:
            try:
                client.index.load(req.path)
            except FatalLoadError as e:
                raise HTTPException(status_code=422, detail=str(e)) from e
        client.update(req.class_name)
        return JSONResponse(content={"updated": req.class_name})

    @app.post("/ls")
    def ls(req: LsRequest) -> JSONResponse:
        return JSONResponse(content=client.ls(req.name, req.is_abstract))

    @app.post("/index")
    def index() -> JSONResponse:
        try:
            result = client.run_index()
        except (ClassMapError, WorkerStartupError) as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return JSONResponse(content=_to_jsonable(result))

    return app
