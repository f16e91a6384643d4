"""Property tests for completion name matching.

For any candidate name, a head match is also a subsequence match, every
prefix of the name matches, and case never matters.
"""

from __future__ import annotations

from hypothesis import given, strategies as st

from phpintel.core.config import MatchType
from phpintel.core.matcher import Matcher

identifiers = st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,15}", fullmatch=True)

HEAD = Matcher(MatchType.HEAD)
SUBSEQUENCE = Matcher(MatchType.SUBSEQUENCE)


@given(name=identifiers, cut=st.integers(min_value=0, max_value=16))
def test_every_prefix_matches(name: str, cut: int) -> None:
    prefix = name[:cut]
    assert HEAD.matches(prefix, name)
    assert SUBSEQUENCE.matches(prefix, name)


@given(pattern=identifiers, name=identifiers)
def test_head_match_implies_subsequence_match(pattern: str, name: str) -> None:
    if HEAD.matches(pattern, name):
        assert SUBSEQUENCE.matches(pattern, name)


@given(pattern=identifiers, name=identifiers)
def test_case_is_ignored(pattern: str, name: str) -> None:
    for matcher in (HEAD, SUBSEQUENCE):
        assert matcher.matches(pattern, name) == matcher.matches(pattern.swapcase(), name)


@given(name=identifiers, data=st.data())
def test_any_subsequence_matches(name: str, data: st.DataObject) -> None:
    indexes = data.draw(st.lists(st.integers(0, len(name) - 1), unique=True).map(sorted))
    pattern = "".join(name[i] for i in indexes)
    assert SUBSEQUENCE.matches(pattern, name)
