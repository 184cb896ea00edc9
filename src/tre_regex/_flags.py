"""Typed flag sets for compilation and matching.

Bit values mirror tre.h. Both classes use a STRICT boundary, so an integer
carrying bits the engine does not define is rejected instead of being
forwarded. The two sets are distinct types: handing MatchFlags to compile()
(or CompileFlags to a matcher) is a TypeError even when the bits happen to
coincide.
"""

from __future__ import annotations

from enum import STRICT, IntFlag


class CompileFlags(IntFlag, boundary=STRICT):
    """Options for ``compile()`` (``tre_regncomp`` cflags)."""

    BASIC = 0
    EXTENDED = 1
    ICASE = 1 << 1
    NEWLINE = 1 << 2
    NOSUB = 1 << 3
    LITERAL = 1 << 4
    RIGHT_ASSOC = 1 << 5
    UNGREEDY = 1 << 6
    USEBYTES = 1 << 7


class MatchFlags(IntFlag, boundary=STRICT):
    """Per-call options for matching (``tre_regnexec``/``tre_reganexec`` eflags)."""

    NONE = 0
    NOTBOL = 1
    NOTEOL = 1 << 1
    APPROX_MATCHER = 1 << 2
    BACKTRACKING_MATCHER = 1 << 3


def coerce_flags[F: (CompileFlags, MatchFlags)](value: object, kind: type[F]) -> F:
    """Validate ``value`` as a member combination of ``kind``.

    Accepts instances of ``kind`` and plain ints whose bits are all known.

    Raises:
        TypeError: value is the other flag type, a bool, or not an int.
        ValueError: value carries undefined bits.
    """
    if isinstance(value, kind):
        return value
    if isinstance(value, (CompileFlags, MatchFlags)):
        msg = f"expected {kind.__name__}, got {type(value).__name__}"
        raise TypeError(msg)
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"expected {kind.__name__} or int, got {type(value).__name__}"
        raise TypeError(msg)
    # IntFlag reads a negative int as the complement of the defined bits.
    if value < 0:
        msg = f"{value} is not a valid {kind.__name__} combination"
        raise ValueError(msg)
    try:
        return kind(value)
    except ValueError as e:
        msg = f"{value:#x} is not a valid {kind.__name__} combination"
        raise ValueError(msg) from e
