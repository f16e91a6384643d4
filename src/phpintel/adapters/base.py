"""File-level context shared by source adapters."""

from __future__ import annotations

from pydantic import BaseModel, Field


class FileContext(BaseModel):
    """File-level context for symbol resolution.

    Contains the namespace and class imports in effect at a point of a PHP
    file, used to resolve short names to fully qualified names.
    """

    namespace: str = Field(default="", description="Current namespace, empty for global")
    imports: dict[str, str] = Field(
        default_factory=dict, description="Import aliases (alias -> qualified)"
    )

    def declare(self, short_name: str) -> str:
        """Qualified name of a symbol declared in the current namespace."""
        return f"{self.namespace}\\{short_name}" if self.namespace else short_name

    def qualify(self, name: str) -> str:
        """Resolve a class reference to its fully qualified name (no leading ``\\``)."""
        name = name.strip()
        if name.startswith("\\"):
            return name[1:]

        head, sep, rest = name.partition("\\")
        if head.lower() == "namespace" and sep:
            return self.declare(rest)

        target = self.imports.get(head)
        if target is None:
            target = next(
                (fqn for alias, fqn in self.imports.items() if alias.lower() == head.lower()),
                None,
            )
        if target is not None:
            return f"{target}\\{rest}" if sep else target

        return self.declare(name)
