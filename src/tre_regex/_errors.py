"""Error taxonomy: every failure surfaces as a TreError subclass.

Native result codes (``reg_errcode_t``) never leak to callers as bare
integers. ``error_from_code()`` is the single conversion point used by
compilation and both matchers, so callers see one error surface no matter
which native entry point failed.

"No match" is not an error: matchers return None for it.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Literal

type Stage = Literal["compile", "match"]


class ErrorCode(IntEnum):
    """Native TRE result codes, mirroring ``reg_errcode_t`` in tre.h."""

    OK = 0
    NOMATCH = 1
    BADPAT = 2
    ECOLLATE = 3
    ECTYPE = 4
    EESCAPE = 5
    ESUBREG = 6
    EBRACK = 7
    EPAREN = 8
    EBRACE = 9
    BADBR = 10
    ERANGE = 11
    ESPACE = 12
    BADRPT = 13


# Same strings tre_regerror() produces, used when the engine cannot be asked.
_DESCRIPTIONS: dict[int, str] = {
    ErrorCode.OK: "No error",
    ErrorCode.NOMATCH: "No match",
    ErrorCode.BADPAT: "Invalid regexp",
    ErrorCode.ECOLLATE: "Unknown collating element",
    ErrorCode.ECTYPE: "Unknown character class name",
    ErrorCode.EESCAPE: "Trailing backslash",
    ErrorCode.ESUBREG: "Invalid back reference",
    ErrorCode.EBRACK: "Missing ']'",
    ErrorCode.EPAREN: "Missing ')'",
    ErrorCode.EBRACE: "Missing '}'",
    ErrorCode.BADBR: "Invalid contents of {}",
    ErrorCode.ERANGE: "Invalid character range",
    ErrorCode.ESPACE: "Out of memory",
    ErrorCode.BADRPT: "Invalid use of repetition operators",
}


def describe_code(code: int) -> str:
    """Human-readable description of a native result code."""
    return _DESCRIPTIONS.get(code, f"Unknown error code {code}")


def _as_code(code: int) -> ErrorCode | int:
    try:
        return ErrorCode(code)
    except ValueError:
        return code


class TreError(Exception):
    """Base class for every error raised by tre_regex."""


class CompileError(TreError):
    """The engine rejected a pattern (syntax or unsupported flag combination)."""

    def __init__(self, code: int, description: str) -> None:
        self.code = _as_code(code)
        self.description = description
        super().__init__(f"cannot compile pattern: {description} (code {int(code)})")


class MatchError(TreError):
    """Match execution failed for a reason other than "no match"."""

    def __init__(self, code: int, description: str) -> None:
        self.code = _as_code(code)
        self.description = description
        super().__init__(f"match failed: {description} (code {int(code)})")


class InvalidParameterError(TreError):
    """A caller-supplied approximate parameter is out of range.

    Always detected before the engine is invoked.
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"invalid parameter {field!r}: {reason}")


class OutOfMemoryError(TreError):
    """The engine failed to allocate memory (``REG_ESPACE``)."""

    def __init__(self, stage: Stage, code: int = ErrorCode.ESPACE) -> None:
        self.stage = stage
        self.code = _as_code(code)
        super().__init__(f"out of memory during {stage}")


class InternalError(TreError):
    """The engine violated its contract (bad offsets, cost over a limit, ...).

    Indicates a broken native layer, never bad input.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"internal error: {detail}")


class ReleasedPatternError(TreError):
    """A Pattern was used after its native handle was released."""

    def __init__(self) -> None:
        super().__init__("pattern has been closed")


class UnsupportedFeatureError(TreError):
    """The loaded engine was built without a required capability."""

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"the TRE library was built without {feature} support")


class EngineUnavailableError(TreError):
    """No usable TRE shared library could be loaded."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"cannot load the TRE library: {source}")


def error_from_code(
    code: int, *, stage: Stage, description: str | None = None
) -> TreError:
    """Convert a non-zero native result code into the matching TreError.

    ``REG_ESPACE`` becomes OutOfMemoryError regardless of stage. Every other
    code becomes CompileError or MatchError depending on ``stage``.
    ``REG_OK`` and ``REG_NOMATCH`` are not errors; handing them over is a
    bug in the caller and yields InternalError.
    """
    if code == ErrorCode.OK or (code == ErrorCode.NOMATCH and stage == "match"):
        return InternalError(f"result code {code} is not an error")
    if code == ErrorCode.ESPACE:
        return OutOfMemoryError(stage, code)
    if description is None:
        description = describe_code(code)
    if stage == "compile":
        return CompileError(code, description)
    return MatchError(code, description)
