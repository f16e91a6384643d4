"""Builtin symbol catalog read from a local PHP interpreter.

Static analysis cannot see functions and constants provided by PHP itself and
its extensions. When a ``php`` binary is available it is asked once for its
internal functions and constants; without one the catalog is empty.
"""

from __future__ import annotations

import json
import logging
import subprocess
from functools import cached_property

from pydantic import BaseModel, Field, ValidationError

from phpintel.reflection.models import ConstantDecl, FunctionDecl

logger = logging.getLogger(__name__)

_CATALOG_SCRIPT = r"""
$functions = [];
foreach (get_defined_functions()['internal'] as $name) {
    $ref = new ReflectionFunction($name);
    $params = [];
    foreach ($ref->getParameters() as $param) {
        $params[] = $param->getName();
    }
    $type = $ref->getReturnType();
    $functions[] = [
        'name' => $ref->getName(),
        'parameters' => $params,
        'return_type' => $type === null ? null : (string) $type,
    ];
}
$constants = [];
foreach (get_defined_constants() as $name => $value) {
    if (is_scalar($value) || $value === null) {
        $constants[$name] = var_export($value, true);
    }
}
echo json_encode(['functions' => $functions, 'constants' => $constants]);
"""


class BuiltinCatalog(BaseModel):
    """Functions and constants the interpreter provides out of the box."""

    functions: list[FunctionDecl] = Field(default_factory=list)
    constants: dict[str, str] = Field(default_factory=dict)


class PhpRuntime:
    """Lazily query a PHP binary for its builtin symbols."""

    def __init__(self, php_binary: str = "php", enabled: bool = True, timeout: int = 30) -> None:
        self._php_binary = php_binary
        self._enabled = enabled
        self._timeout = timeout

    @cached_property
    def catalog(self) -> BuiltinCatalog:
        if not self._enabled:
            return BuiltinCatalog()
        try:
            completed = subprocess.run(
                [self._php_binary, "-r", _CATALOG_SCRIPT],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
            return BuiltinCatalog.model_validate(json.loads(completed.stdout))
        except (OSError, subprocess.SubprocessError, ValueError, ValidationError) as exc:
            logger.debug(f"No builtin catalog from {self._php_binary}: {exc}")
            return BuiltinCatalog()

    @cached_property
    def functions(self) -> dict[str, FunctionDecl]:
        return {fn.name.lower(): fn for fn in self.catalog.functions}

    def function_names(self) -> list[str]:
        return [fn.name for fn in self.catalog.functions]

    def constants(self) -> dict[str, ConstantDecl]:
        return {
            name: ConstantDecl(name=name, value=_render_export(value))
            for name, value in self.catalog.constants.items()
        }


def _render_export(exported: str) -> str:
    """Turn a ``var_export`` literal into PHP's string conversion of it."""
    if len(exported) >= 2 and exported[0] == exported[-1] == "'":
        return exported[1:-1].replace("\\'", "'").replace("\\\\", "\\")
    if exported == "true":
        return "1"
    if exported in ("false", "NULL"):
        return ""
    return exported
