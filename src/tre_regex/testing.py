"""Test utilities for tre_regex.

ScriptedEngine implements the Engine protocol without a native library: it
replays outcomes you script and records every call made to it. It exists to
exercise the marshalling, validation, error mapping and post-condition
checks of the wrapper in isolation, including engine misbehaviour that a
correct libtre never produces.

It does not match anything. For real matching use the default engine.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tre_regex._errors import ErrorCode, describe_code
from tre_regex._native import C_INT_MAX, Capabilities, EngineStats, RegaparamsT

if TYPE_CHECKING:
    import ctypes

    from tre_regex._native import RegamatchT, RegexT, RegmatchT


@dataclass(frozen=True, slots=True)
class Outcome:
    """What a scripted match call reports.

    ``spans`` are written to the first ``len(spans)`` capture slots; the
    rest keep the unset sentinel the caller pre-filled.
    """

    code: int = ErrorCode.OK
    spans: Sequence[tuple[int, int]] = ()
    cost: int = 0
    insertions: int = 0
    deletions: int = 0
    substitutions: int = 0


NO_MATCH = Outcome(code=ErrorCode.NOMATCH)


@dataclass(frozen=True, slots=True)
class Call:
    """One recorded engine call."""

    name: str
    flags: int | None = None
    subject: bytes | None = None
    params: RegaparamsT | None = None


@dataclass(eq=False)
class ScriptedEngine:
    """Engine double returning scripted results.

    >>> from tre_regex import compile
    >>> from tre_regex.testing import Outcome, ScriptedEngine
    >>> engine = ScriptedEngine(groups=1, match=Outcome(spans=[(0, 2), (1, 2)]))
    >>> compile(b"a(b)", engine=engine).match(b"ab").captures
    (Span(start=0, end=2), Span(start=1, end=2))
    """

    groups: int = 0
    compile_code: int = ErrorCode.OK
    match: Outcome = field(default_factory=Outcome)
    approximate: Outcome = field(default_factory=Outcome)
    approximate_supported: bool = True
    backrefs: bool = False
    unlimited: int = C_INT_MAX
    stats: EngineStats = field(default_factory=EngineStats)
    calls: list[Call] = field(default_factory=list)
    _live: set[int] = field(default_factory=set, repr=False)
    _next_handle: int = field(default=1, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def match_calls(self) -> int:
        """Number of regnexec/reganexec calls made so far."""
        return sum(1 for c in self.calls if c.name in {"regnexec", "reganexec"})

    def capabilities(self) -> Capabilities:
        return Capabilities(
            approximate=self.approximate_supported,
            multibyte=False,
            wide_char=False,
            version="scripted",
        )

    def regncomp(self, preg: RegexT, pattern: bytes, cflags: int, /) -> int:
        self._record(Call("regncomp", flags=cflags, subject=pattern))
        if self.compile_code != ErrorCode.OK:
            return self.compile_code
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._live.add(handle)
        preg.re_nsub = self.groups
        preg.value = handle
        self.stats.record_compile()
        return ErrorCode.OK

    def regnexec(
        self,
        preg: RegexT,
        subject: bytes,
        pmatch: ctypes.Array[RegmatchT],
        eflags: int,
        /,
    ) -> int:
        self._check_live(preg)
        self._record(Call("regnexec", flags=eflags, subject=subject))
        _write_spans(pmatch, len(pmatch), self.match.spans)
        return self.match.code

    def reganexec(
        self,
        preg: RegexT,
        subject: bytes,
        amatch: RegamatchT,
        params: RegaparamsT,
        eflags: int,
        /,
    ) -> int:
        self._check_live(preg)
        snapshot = RegaparamsT.from_buffer_copy(params)
        self._record(Call("reganexec", flags=eflags, subject=subject, params=snapshot))
        outcome = self.approximate
        _write_spans(amatch.pmatch, amatch.nmatch, outcome.spans)
        amatch.cost = outcome.cost
        amatch.num_ins = outcome.insertions
        amatch.num_del = outcome.deletions
        amatch.num_subst = outcome.substitutions
        return outcome.code

    def have_backrefs(self, preg: RegexT, /) -> bool:
        self._check_live(preg)
        self._record(Call("have_backrefs"))
        return self.backrefs

    def regfree(self, preg: RegexT, /) -> None:
        self._record(Call("regfree"))
        with self._lock:
            if preg.value not in self._live:
                msg = f"regfree on handle {preg.value!r} that is not live"
                raise RuntimeError(msg)
            self._live.remove(preg.value)
        self.stats.record_free()

    def regerror(self, code: int, preg: RegexT | None, /) -> str:
        return describe_code(code)

    def _record(self, call: Call) -> None:
        with self._lock:
            self.calls.append(call)

    def _check_live(self, preg: RegexT) -> None:
        if preg.value not in self._live:
            msg = f"match on handle {preg.value!r} that is not live"
            raise RuntimeError(msg)


def _write_spans(
    pmatch: ctypes.Array[RegmatchT] | ctypes._Pointer[RegmatchT],
    capacity: int,
    spans: Sequence[tuple[int, int]],
) -> None:
    for index, (start, end) in enumerate(spans[:capacity]):
        pmatch[index].rm_so = start
        pmatch[index].rm_eo = end
