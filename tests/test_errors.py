"""Tests for the error taxonomy and native code conversion."""

import pytest

from tre_regex import (
    CompileError,
    ErrorCode,
    InternalError,
    InvalidParameterError,
    MatchError,
    OutOfMemoryError,
    TreError,
    UnsupportedFeatureError,
    error_from_code,
)
from tre_regex._errors import describe_code


class TestErrorFromCode:
    @pytest.mark.parametrize(
        "code",
        [ErrorCode.BADPAT, ErrorCode.EBRACK, ErrorCode.EPAREN, ErrorCode.ERANGE, ErrorCode.BADRPT],
    )
    def test_compile_stage_gives_compile_error(self, code: ErrorCode) -> None:
        err = error_from_code(code, stage="compile")
        assert isinstance(err, CompileError)
        assert err.code is code
        assert err.description == describe_code(code)

    def test_match_stage_gives_match_error(self) -> None:
        err = error_from_code(ErrorCode.BADPAT, stage="match")
        assert isinstance(err, MatchError)
        assert err.code is ErrorCode.BADPAT

    @pytest.mark.parametrize("stage", ["compile", "match"])
    def test_espace_is_out_of_memory(self, stage: str) -> None:
        err = error_from_code(ErrorCode.ESPACE, stage=stage)
        assert isinstance(err, OutOfMemoryError)
        assert err.stage == stage
        assert err.code is ErrorCode.ESPACE

    def test_engine_description_wins(self) -> None:
        err = error_from_code(ErrorCode.EBRACK, stage="compile", description="Missing ']' here")
        assert err.description == "Missing ']' here"
        assert "Missing ']' here" in str(err)

    def test_ok_is_not_an_error(self) -> None:
        assert isinstance(error_from_code(ErrorCode.OK, stage="compile"), InternalError)

    def test_nomatch_while_matching_is_not_an_error(self) -> None:
        assert isinstance(error_from_code(ErrorCode.NOMATCH, stage="match"), InternalError)

    def test_unknown_code_kept_as_int(self) -> None:
        err = error_from_code(99, stage="match")
        assert isinstance(err, MatchError)
        assert err.code == 99
        assert not isinstance(err.code, ErrorCode)
        assert err.description == "Unknown error code 99"


class TestHierarchy:
    @pytest.mark.parametrize(
        "err",
        [
            CompileError(ErrorCode.EPAREN, "Missing ')'"),
            MatchError(ErrorCode.BADPAT, "Invalid regexp"),
            InvalidParameterError("max_cost", "too small"),
            OutOfMemoryError("match"),
            InternalError("bad offsets"),
            UnsupportedFeatureError("approximate matching"),
        ],
    )
    def test_everything_is_a_tre_error(self, err: TreError) -> None:
        assert isinstance(err, TreError)

    def test_invalid_parameter_names_field(self) -> None:
        err = InvalidParameterError("cost_insert", "cost must be >= 0, got -1")
        assert err.field == "cost_insert"
        assert "cost_insert" in str(err)

    def test_describe_code_matches_engine_strings(self) -> None:
        assert describe_code(ErrorCode.EBRACK) == "Missing ']'"
        assert describe_code(ErrorCode.ESPACE) == "Out of memory"
