"""Core protocols and type aliases for tre_regex.

- Subject is what callers may match against (bytes, or text that is UTF-8
  encoded before it reaches the engine)
- Engine is the port to the native library: the real ctypes binding
  (``tre_regex._native.NativeEngine``) and the scripted test double
  (``tre_regex.testing.ScriptedEngine``) both implement it
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import ctypes

    from tre_regex._native import (
        Capabilities,
        EngineStats,
        RegamatchT,
        RegaparamsT,
        RegexT,
        RegmatchT,
    )

type Subject = bytes | str


def to_bytes(value: object, what: str) -> bytes:
    """Return the byte form of a pattern or subject; text is UTF-8 encoded."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    msg = f"{what} must be bytes or str, got {type(value).__name__}"
    raise TypeError(msg)


@runtime_checkable
class Engine(Protocol):
    """ABI-level access to a TRE implementation.

    Methods take and fill the ctypes structures of tre.h and return the raw
    integer result code. Converting codes to exceptions and structures to
    value objects is the caller's job, never the engine's.
    """

    # Native value meaning "no limit" inside regaparams_t.
    unlimited: int
    stats: EngineStats

    def capabilities(self) -> Capabilities: ...

    def regncomp(self, preg: RegexT, pattern: bytes, cflags: int, /) -> int: ...

    def regnexec(
        self,
        preg: RegexT,
        subject: bytes,
        pmatch: ctypes.Array[RegmatchT],
        eflags: int,
        /,
    ) -> int: ...

    def reganexec(
        self,
        preg: RegexT,
        subject: bytes,
        amatch: RegamatchT,
        params: RegaparamsT,
        eflags: int,
        /,
    ) -> int: ...

    def have_backrefs(self, preg: RegexT, /) -> bool: ...

    def regfree(self, preg: RegexT, /) -> None: ...

    def regerror(self, code: int, preg: RegexT | None, /) -> str: ...
