"""Conformance tests against the real libtre.

Loads YAML fixtures from tests/fixtures/ and runs each case through the
public API: exact matching, approximate matching and compile errors.

Run with: uv run pytest tests/test_conformance.py -v
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from tre_regex import (
    ApproximateMatchResult,
    CompileError,
    CompileFlags,
    ErrorCode,
    MatchFlags,
    Span,
    compile,
    parse_approximate_params,
)

pytestmark = pytest.mark.native

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


def _load_cases(filename: str) -> list[dict[str, Any]]:
    """Load the ``cases`` list of a fixture file."""
    with (FIXTURES_DIR / filename).open(encoding="utf-8") as f:
        doc = yaml.safe_load(f)
    return doc["cases"]


def _ids(cases: list[dict[str, Any]]) -> list[str]:
    return [c["name"] for c in cases]


def _compile_flags(case: dict[str, Any]) -> CompileFlags:
    flags = CompileFlags.BASIC
    for name in case.get("flags", []):
        flags |= CompileFlags[name]
    return flags


def _match_flags(case: dict[str, Any]) -> MatchFlags:
    flags = MatchFlags.NONE
    for name in case.get("match_flags", []):
        flags |= MatchFlags[name]
    return flags


def _spans(raw: list[Any]) -> tuple[Span | None, ...]:
    return tuple(Span(*pair) if pair is not None else None for pair in raw)


EXACT_CASES = _load_cases("exact.yaml")
APPROXIMATE_CASES = _load_cases("approximate.yaml")
COMPILE_ERROR_CASES = _load_cases("compile_errors.yaml")


@pytest.mark.parametrize("case", EXACT_CASES, ids=_ids(EXACT_CASES))
def test_exact_conformance(case: dict[str, Any]) -> None:
    with compile(case["pattern"], _compile_flags(case)) as pattern:
        result = pattern.match(case["subject"], _match_flags(case))

    if case["expect"] is None:
        assert result is None
    else:
        assert result is not None
        assert result.captures == _spans(case["expect"])
        assert len(result) == pattern.group_count


@pytest.mark.parametrize("case", APPROXIMATE_CASES, ids=_ids(APPROXIMATE_CASES))
def test_approximate_conformance(case: dict[str, Any]) -> None:
    params = parse_approximate_params(case.get("params", {}))
    with compile(case["pattern"], _compile_flags(case)) as pattern:
        result = pattern.approximate_match(case["subject"], params, _match_flags(case))

    expect = case["expect"]
    if expect is None:
        assert result is None
        return

    assert isinstance(result, ApproximateMatchResult)
    assert result.captures == _spans(expect["captures"])
    for attr in ("cost", "insertions", "deletions", "substitutions"):
        if attr in expect:
            assert getattr(result, attr) == expect[attr], attr


@pytest.mark.parametrize("case", COMPILE_ERROR_CASES, ids=_ids(COMPILE_ERROR_CASES))
def test_compile_error_conformance(case: dict[str, Any]) -> None:
    with pytest.raises(CompileError) as exc_info:
        compile(case["pattern"], _compile_flags(case))

    assert exc_info.value.code == ErrorCode[case["code"]]
    if "description" in case:
        assert exc_info.value.description == case["description"]
