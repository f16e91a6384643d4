"""Name filtering for completion candidates."""

from __future__ import annotations

import re

from phpintel.core.config import ConfigurationError, MatchType


class Matcher:
    """Filter candidate names against a typed pattern.

    Two policies are supported:
    - head match: case-insensitive prefix
    - subsequence match: every pattern character appears in order, with
      arbitrary gaps, case-insensitive
    """

    def __init__(self, match_type: MatchType | str = MatchType.HEAD) -> None:
        self._match_type = self._validate(match_type)

    @property
    def match_type(self) -> MatchType:
        return self._match_type

    def set_match_type(self, match_type: MatchType | str) -> None:
        """Switch the matching policy.

        Raises:
            ConfigurationError: If the policy is unknown.
        """
        self._match_type = self._validate(match_type)

    @staticmethod
    def _validate(match_type: MatchType | str) -> MatchType:
        try:
            return MatchType(match_type)
        except ValueError as e:
            raise ConfigurationError(f"Wrong match type: {match_type!r}") from e

    def matches(self, pattern: str | None, candidate: str) -> bool:
        if not pattern:
            return True

        if self._match_type is MatchType.SUBSEQUENCE:
            regex = ".*".join(re.escape(char) for char in pattern)
            return re.search(regex, candidate, re.IGNORECASE) is not None

        return candidate.lower().startswith(pattern.lower())
