"""Source adapters turning PHP files into declaration records.

This module provides the file-level resolution context and the tree-sitter
based PHP adapter used as the reflection oracle.
"""

from phpintel.adapters.base import FileContext
from phpintel.adapters.php import PhpRuntime, PhpScanner, TreeSitterOracle

__all__ = [
    "FileContext",
    "PhpRuntime",
    "PhpScanner",
    "TreeSitterOracle",
]
