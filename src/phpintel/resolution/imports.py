"""Line-oriented extraction of namespace and import statements.

This is deliberately not a PHP parser: a file is scanned line by line until
the first class/interface/trait declaration, which is enough for well-formed
single-class files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from phpintel.core.models import SourceFileFacts

logger = logging.getLogger(__name__)

CLASS_PATTERN = re.compile(
    r"^\s*\b(?:(?:(?:final|abstract|readonly)\s+)*class|interface|trait|enum)\s+(?P<class>\w+)",
    re.IGNORECASE,
)
NAMESPACE_PATTERN = re.compile(r"^(?:<\?php)?\s*namespace\s+(?P<name>[\w\\]+)\s*(?:;|\{)")
USE_PATTERN = re.compile(
    r"^use\s+(?:(?P<type>const|constant|function)\s+)?"
    r"(?P<left>[\\\w]+\\)?\{?(?P<right>[\\,\w\s]+)\}?\s*;$"
)
ALIAS_PATTERN = re.compile(r"(?P<suffix>[\\\w]+)(?:\s+as\s+(?P<alias>\w+))?")

_TRIM_CHARS = "\t\n\r\0\x0b\\ "


@dataclass
class UseStatement:
    """A parsed ``use`` statement.

    ``kind`` is None for class imports, otherwise ``function`` or ``const``.
    """

    kind: str | None
    imports: dict[str, str] = field(default_factory=dict)

    @property
    def is_class_import(self) -> bool:
        return self.kind is None


def parse_use_statement(line: str) -> UseStatement | None:
    """Parse one ``use`` statement (grouped, aliased or plain).

    Returns None if the line is not a namespace import.
    """
    match = USE_PATTERN.match(line.strip())
    if match is None:
        return None

    kind = match.group("type")
    if kind == "constant":
        kind = "const"

    left = (match.group("left") or "").lstrip("\\")
    statement = UseStatement(kind=kind)
    for expansion in match.group("right").split(","):
        expansion = expansion.strip(_TRIM_CHARS)
        alias_match = ALIAS_PATTERN.search(expansion)
        if not alias_match:
            continue
        suffix = alias_match.group("suffix")
        alias = alias_match.group("alias") or suffix.split("\\")[-1]
        statement.imports[alias] = left + suffix

    return statement


class ImportExtractor:
    """Extract ``SourceFileFacts`` from a PHP file's current text."""

    def extract(self, path: str | Path | None) -> SourceFileFacts:
        facts = SourceFileFacts()
        if not path:
            return facts

        file_path = Path(path)
        if not file_path.is_file():
            logger.debug(f"No such source file: {file_path}")
            return facts

        try:
            text = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug(f"Failed to read {file_path}: {exc}")
            return facts

        for raw_line in text.splitlines():
            class_match = CLASS_PATTERN.match(raw_line)
            if class_match:
                facts.declared_class = class_match.group("class")
                break

            line = raw_line.strip()
            if not line:
                continue

            namespace_match = NAMESPACE_PATTERN.search(line)
            if namespace_match:
                facts.namespace = namespace_match.group("name").strip("\\")
                continue

            if line.startswith("use"):
                statement = parse_use_statement(line)
                # function and constant imports are not tracked in the alias table
                if statement is not None and statement.is_class_import:
                    facts.imports.update(statement.imports)

        return facts
