"""PHP adapter: tree-sitter scanner, builtin catalog and reflection oracle."""

from phpintel.adapters.php.oracle import TreeSitterOracle
from phpintel.adapters.php.runtime import BuiltinCatalog, PhpRuntime
from phpintel.adapters.php.scanner import PhpScanner

__all__ = ["BuiltinCatalog", "PhpRuntime", "PhpScanner", "TreeSitterOracle"]
