"""Core module containing configuration, shared models and the match engine."""

from phpintel.core.config import (
    ConfigurationError,
    MatchType,
    PhpIntelConfig,
    StartMethod,
    get_config,
    reload_config,
)
from phpintel.core.matcher import Matcher
from phpintel.core.models import (
    ClassMapEntry,
    CompletionItem,
    CompletionKind,
    DocResult,
    Location,
    SourceFileFacts,
    StaticMode,
)

__all__ = [
    "ClassMapEntry",
    "CompletionItem",
    "CompletionKind",
    "ConfigurationError",
    "DocResult",
    "Location",
    "MatchType",
    "Matcher",
    "PhpIntelConfig",
    "SourceFileFacts",
    "StartMethod",
    "StaticMode",
    "get_config",
    "reload_config",
]
