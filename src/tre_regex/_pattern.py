"""An owned, compiled TRE regex.

A Pattern is compiled once in its constructor and never recompiled. It owns
exactly one native ``regex_t`` handle, released exactly once: by close(), on
leaving a ``with`` block, or when the object is garbage collected, whichever
comes first. A failed compile never produces a Pattern and never calls
``tre_regfree`` (TRE discards its partial state before returning an error).

Both matchers take the compiled handle read-only. Capture buffers and
parameter structures live only for the duration of one call.

The module-level functions are thin wrappers over the object API for
one-shot use.
"""

from __future__ import annotations

import ctypes
import weakref
from typing import TYPE_CHECKING, Self

from loguru import logger

from tre_regex._captures import ApproximateMatchResult, MatchResult, extract_captures
from tre_regex._errors import (
    ErrorCode,
    ReleasedPatternError,
    TreError,
    UnsupportedFeatureError,
    error_from_code,
)
from tre_regex._flags import CompileFlags, MatchFlags, coerce_flags
from tre_regex._native import (
    C_INT_MAX,
    RegamatchT,
    RegexT,
    RegmatchT,
    get_engine,
    new_match_buffer,
)
from tre_regex._params import ApproximateParams, check_approximate_result
from tre_regex._types import to_bytes

if TYPE_CHECKING:
    from types import TracebackType

    from tre_regex._types import Engine, Subject


def _release(engine: Engine, preg: RegexT, source: bytes) -> None:
    # Finalizer callback: must not reference the Pattern itself.
    engine.regfree(preg)
    logger.debug("released pattern {!r}", source)


class Pattern:
    """A compiled regular expression owning one native handle.

    Args:
        pattern: regex source; text is UTF-8 encoded, bytes are used as-is
            (embedded NUL bytes are allowed).
        flags: CompileFlags selecting syntax and options.
        engine: engine to compile with; defaults to the process-wide
            ``libtre`` binding.

    Raises:
        CompileError: the engine rejected the pattern or flag combination.
        OutOfMemoryError: the engine ran out of memory while compiling.
        TypeError, ValueError: ``flags`` is not a valid CompileFlags value.
        EngineUnavailableError: no engine given and libtre cannot be loaded.
    """

    __slots__ = (
        "__weakref__",
        "_engine",
        "_finalizer",
        "_flags",
        "_group_count",
        "_pattern",
        "_preg",
    )

    def __init__(
        self,
        pattern: Subject,
        flags: CompileFlags | int = CompileFlags.EXTENDED,
        *,
        engine: Engine | None = None,
    ) -> None:
        source = to_bytes(pattern, "pattern")
        cflags = coerce_flags(flags, CompileFlags)
        if engine is None:
            engine = get_engine()

        preg = RegexT()
        code = engine.regncomp(preg, source, int(cflags))
        if code != ErrorCode.OK:
            description = engine.regerror(code, preg)
            logger.debug("compile of {!r} failed: {} (code {})", source, description, code)
            raise error_from_code(code, stage="compile", description=description)

        try:
            self._finalizer = weakref.finalize(self, _release, engine, preg, source)
        except BaseException:
            engine.regfree(preg)
            raise
        self._engine = engine
        self._preg = preg
        self._pattern = pattern if isinstance(pattern, str) else source
        self._flags = cflags
        self._group_count = preg.re_nsub + 1
        logger.debug("compiled pattern {!r} with {} groups", source, self._group_count)

    # ── Properties ─────────────────────────────────────────────────────────

    @property
    def pattern(self) -> Subject:
        """The source this Pattern was compiled from."""
        return self._pattern

    @property
    def flags(self) -> CompileFlags:
        return self._flags

    @property
    def group_count(self) -> int:
        """Number of capturing groups plus one for the whole match."""
        return self._group_count

    @property
    def has_backrefs(self) -> bool:
        """Whether the compiled pattern uses back references.

        Raises:
            ReleasedPatternError: the Pattern has been closed.
        """
        return self._engine.have_backrefs(self._handle())

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def close(self) -> None:
        """Release the native handle now. Calling it again is a no-op.

        Must not run concurrently with a match on this Pattern.
        """
        self._finalizer()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __copy__(self) -> Self:
        return self

    def __deepcopy__(self, memo: dict[int, object]) -> Self:
        return self

    def __reduce__(self) -> tuple[type[Pattern], tuple[Subject, CompileFlags]]:
        # Pickles recompile from source; a native handle never crosses processes.
        return (type(self), (self._pattern, self._flags))

    def __repr__(self) -> str:
        state = ", closed" if self.closed else ""
        return f"Pattern({self._pattern!r}, {self._flags!r}{state})"

    # ── Matching ───────────────────────────────────────────────────────────

    def match(
        self, subject: Subject, flags: MatchFlags | int = MatchFlags.NONE
    ) -> MatchResult | None:
        """Search ``subject`` for the leftmost match.

        Returns:
            The captures of the match, or None if the pattern does not match.

        Raises:
            MatchError: the engine reported an error other than "no match".
            OutOfMemoryError: the engine ran out of memory.
            InternalError: the engine returned out-of-range offsets.
            ReleasedPatternError: the Pattern has been closed.
        """
        data = _subject_bytes(subject)
        eflags = coerce_flags(flags, MatchFlags)
        preg = self._handle()

        pmatch = new_match_buffer(self._group_count)
        code = self._engine.regnexec(preg, data, pmatch, int(eflags))
        if code == ErrorCode.NOMATCH:
            return None
        if code != ErrorCode.OK:
            raise self._match_error(code, preg)
        return MatchResult(captures=extract_captures(pmatch, len(data)), subject_length=len(data))

    def approximate_match(
        self,
        subject: Subject,
        params: ApproximateParams | None = None,
        flags: MatchFlags | int = MatchFlags.NONE,
    ) -> ApproximateMatchResult | None:
        """Search ``subject`` allowing edits within the ``params`` cost budget.

        ``params`` defaults to ``ApproximateParams()`` (unit costs, no limits).

        Returns:
            The captures plus the cost and edit counts of the best match, or
            None if nothing matches within the budget.

        Raises:
            InvalidParameterError: ``params`` is out of range (checked before
                the engine is called).
            UnsupportedFeatureError: the engine lacks approximate matching.
            MatchError, OutOfMemoryError, InternalError,
            ReleasedPatternError: as for match(); InternalError is also raised
                when the reported cost or counts exceed the supplied limits.
        """
        if params is None:
            params = ApproximateParams()
        elif not isinstance(params, ApproximateParams):
            msg = f"params must be ApproximateParams, got {type(params).__name__}"
            raise TypeError(msg)
        native_params = params.to_native(self._engine.unlimited)
        data = _subject_bytes(subject)
        eflags = coerce_flags(flags, MatchFlags)
        preg = self._handle()
        if not self._engine.capabilities().approximate:
            raise UnsupportedFeatureError("approximate matching")

        count = self._group_count
        pmatch = new_match_buffer(count)
        amatch = RegamatchT(nmatch=count, pmatch=ctypes.cast(pmatch, ctypes.POINTER(RegmatchT)))
        code = self._engine.reganexec(preg, data, amatch, native_params, int(eflags))
        if code == ErrorCode.NOMATCH:
            return None
        if code != ErrorCode.OK:
            raise self._match_error(code, preg)

        check_approximate_result(amatch, params)
        return ApproximateMatchResult(
            captures=extract_captures(pmatch, len(data)),
            subject_length=len(data),
            cost=amatch.cost,
            insertions=amatch.num_ins,
            deletions=amatch.num_del,
            substitutions=amatch.num_subst,
        )

    # ── Private ────────────────────────────────────────────────────────────

    def _handle(self) -> RegexT:
        if not self._finalizer.alive:
            raise ReleasedPatternError
        return self._preg

    def _match_error(self, code: int, preg: RegexT) -> TreError:
        return error_from_code(code, stage="match", description=self._engine.regerror(code, preg))


def _subject_bytes(subject: Subject) -> bytes:
    data = to_bytes(subject, "subject")
    # regoff_t is a C int: longer subjects cannot be reported in offsets.
    if len(data) > C_INT_MAX:
        msg = f"subject of {len(data)} bytes exceeds the engine limit of {C_INT_MAX}"
        raise ValueError(msg)
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# Function API
# ═══════════════════════════════════════════════════════════════════════════════


def compile(  # noqa: A001
    pattern: Subject,
    flags: CompileFlags | int = CompileFlags.EXTENDED,
    *,
    engine: Engine | None = None,
) -> Pattern:
    """Compile ``pattern`` into a Pattern. See Pattern for the errors raised."""
    return Pattern(pattern, flags, engine=engine)


def match(
    pattern: Subject,
    subject: Subject,
    flags: CompileFlags | int = CompileFlags.EXTENDED,
    match_flags: MatchFlags | int = MatchFlags.NONE,
    *,
    engine: Engine | None = None,
) -> MatchResult | None:
    """Compile ``pattern``, match it once against ``subject``, release it."""
    with Pattern(pattern, flags, engine=engine) as compiled:
        return compiled.match(subject, match_flags)


def approximate_match(
    pattern: Subject,
    subject: Subject,
    params: ApproximateParams | None = None,
    flags: CompileFlags | int = CompileFlags.EXTENDED,
    match_flags: MatchFlags | int = MatchFlags.NONE,
    *,
    engine: Engine | None = None,
) -> ApproximateMatchResult | None:
    """Compile ``pattern``, approximately match it once, release it."""
    with Pattern(pattern, flags, engine=engine) as compiled:
        return compiled.approximate_match(subject, params, match_flags)
