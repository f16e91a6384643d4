"""Business services for phpintel."""

from phpintel.services.index_service import IndexService
from phpintel.services.symbol_service import SymbolService, clear_doc, render_modifiers

__all__ = [
    "IndexService",
    "SymbolService",
    "clear_doc",
    "render_modifiers",
]
