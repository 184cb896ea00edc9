"""ctypes binding to the TRE shared library.

Structure layouts and entry point signatures follow tre.h:

    typedef struct { size_t re_nsub; void *value; } regex_t;
    typedef struct { regoff_t rm_so; regoff_t rm_eo; } regmatch_t;   /* regoff_t is int */
    typedef struct { int cost_ins, cost_del, cost_subst, max_cost,
                     max_ins, max_del, max_subst, max_err; } regaparams_t;
    typedef struct { size_t nmatch; regmatch_t *pmatch;
                     int cost, num_ins, num_del, num_subst; } regamatch_t;

The library is located once per process. ``TRE_LIBRARY`` names an explicit
shared object; otherwise ``ctypes.util.find_library("tre")`` and a few
well-known sonames are tried in order.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import os
import threading
from dataclasses import dataclass, field
from functools import cache
from typing import Any

from loguru import logger

from tre_regex._errors import EngineUnavailableError, describe_code

LIBRARY_ENV_VAR = "TRE_LIBRARY"

_FALLBACK_SONAMES = ("libtre.so.5", "libtre.so", "libtre.5.dylib", "libtre.dylib")

C_INT_MAX = 2**31 - 1

# Unset capture sentinel: both offsets -1.
UNSET_OFFSET = -1

# tre_config() queries
_TRE_CONFIG_APPROX = 0
_TRE_CONFIG_WCHAR = 1
_TRE_CONFIG_MULTIBYTE = 2

# ═══════════════════════════════════════════════════════════════════════════════
# ABI structures
# ═══════════════════════════════════════════════════════════════════════════════


class RegexT(ctypes.Structure):
    _fields_ = [
        ("re_nsub", ctypes.c_size_t),
        ("value", ctypes.c_void_p),
    ]


class RegmatchT(ctypes.Structure):
    _fields_ = [
        ("rm_so", ctypes.c_int),
        ("rm_eo", ctypes.c_int),
    ]


class RegaparamsT(ctypes.Structure):
    _fields_ = [
        ("cost_ins", ctypes.c_int),
        ("cost_del", ctypes.c_int),
        ("cost_subst", ctypes.c_int),
        ("max_cost", ctypes.c_int),
        ("max_ins", ctypes.c_int),
        ("max_del", ctypes.c_int),
        ("max_subst", ctypes.c_int),
        ("max_err", ctypes.c_int),
    ]


class RegamatchT(ctypes.Structure):
    _fields_ = [
        ("nmatch", ctypes.c_size_t),
        ("pmatch", ctypes.POINTER(RegmatchT)),
        ("cost", ctypes.c_int),
        ("num_ins", ctypes.c_int),
        ("num_del", ctypes.c_int),
        ("num_subst", ctypes.c_int),
    ]


def new_match_buffer(count: int) -> ctypes.Array[RegmatchT]:
    """Allocate ``count`` regmatch_t entries, all pre-set to the unset sentinel.

    Entries the engine does not write (e.g. under REG_NOSUB) therefore read
    back as unset instead of a bogus (0, 0) span.
    """
    buffer = (RegmatchT * count)()
    for entry in buffer:
        entry.rm_so = UNSET_OFFSET
        entry.rm_eo = UNSET_OFFSET
    return buffer


# ═══════════════════════════════════════════════════════════════════════════════
# Capabilities and handle accounting
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Capabilities:
    """Features the loaded engine was built with."""

    approximate: bool
    multibyte: bool
    wide_char: bool
    version: str | None = None


@dataclass(slots=True)
class EngineStats:
    """Counts of native handles allocated and released by an engine.

    ``live`` returning to its starting value after a workload is the leak
    check used by the test suite.
    """

    compiled: int = 0
    freed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def live(self) -> int:
        return self.compiled - self.freed

    def record_compile(self) -> None:
        with self._lock:
            self.compiled += 1

    def record_free(self) -> None:
        with self._lock:
            self.freed += 1


# ═══════════════════════════════════════════════════════════════════════════════
# Library loading
# ═══════════════════════════════════════════════════════════════════════════════


def _candidate_paths() -> list[str]:
    explicit = os.environ.get(LIBRARY_ENV_VAR)
    if explicit:
        return [explicit]
    found = ctypes.util.find_library("tre")
    candidates = [found] if found else []
    candidates.extend(name for name in _FALLBACK_SONAMES if name != found)
    return candidates


def load_library() -> ctypes.CDLL:
    """Load the TRE shared library.

    Raises:
        EngineUnavailableError: none of the candidates could be loaded.
    """
    failures = []
    for path in _candidate_paths():
        try:
            lib = ctypes.CDLL(path)
        except OSError as e:
            failures.append(f"{path}: {e}")
            continue
        logger.debug("loaded TRE library from {}", path)
        return lib
    raise EngineUnavailableError("; ".join(failures) or "no candidate library names")


class NativeEngine:
    """Engine implementation backed by a loaded ``libtre``.

    ctypes releases the GIL for the duration of each native call, so
    several threads may execute matches on the same compiled handle.
    """

    unlimited = C_INT_MAX

    def __init__(self, lib: ctypes.CDLL) -> None:
        self.lib = lib
        self.stats = EngineStats()
        self._capabilities: Capabilities | None = None
        self._setup_functions()

    def _setup_functions(self) -> None:
        """Set ctypes argument and result types for the entry points used."""
        preg_p = ctypes.POINTER(RegexT)

        self.lib.tre_regncomp.argtypes = [
            preg_p,  # preg
            ctypes.c_char_p,  # regex
            ctypes.c_size_t,  # len
            ctypes.c_int,  # cflags
        ]
        self.lib.tre_regncomp.restype = ctypes.c_int

        self.lib.tre_regnexec.argtypes = [
            preg_p,  # preg
            ctypes.c_char_p,  # string
            ctypes.c_size_t,  # len
            ctypes.c_size_t,  # nmatch
            ctypes.POINTER(RegmatchT),  # pmatch
            ctypes.c_int,  # eflags
        ]
        self.lib.tre_regnexec.restype = ctypes.c_int

        self.lib.tre_regfree.argtypes = [preg_p]
        self.lib.tre_regfree.restype = None

        self.lib.tre_regerror.argtypes = [
            ctypes.c_int,  # errcode
            preg_p,  # preg
            ctypes.c_char_p,  # errbuf
            ctypes.c_size_t,  # errbuf_size
        ]
        self.lib.tre_regerror.restype = ctypes.c_size_t

        # Absent when TRE was configured with --disable-approx.
        self._reganexec = getattr(self.lib, "tre_reganexec", None)
        if self._reganexec is not None:
            self._reganexec.argtypes = [
                preg_p,  # preg
                ctypes.c_char_p,  # string
                ctypes.c_size_t,  # len
                ctypes.POINTER(RegamatchT),  # match
                RegaparamsT,  # params (by value)
                ctypes.c_int,  # eflags
            ]
            self._reganexec.restype = ctypes.c_int

        # int tre_have_backrefs(const regex_t *preg): a property of one compiled
        # pattern, never of the library.
        self._have_backrefs = getattr(self.lib, "tre_have_backrefs", None)
        if self._have_backrefs is not None:
            self._have_backrefs.argtypes = [preg_p]
            self._have_backrefs.restype = ctypes.c_int

    def capabilities(self) -> Capabilities:
        if self._capabilities is None:
            self._capabilities = self._probe_capabilities()
        return self._capabilities

    def _probe_capabilities(self) -> Capabilities:
        return Capabilities(
            approximate=self._reganexec is not None
            and self._config_flag(_TRE_CONFIG_APPROX, default=True),
            multibyte=self._config_flag(_TRE_CONFIG_MULTIBYTE),
            wide_char=self._config_flag(_TRE_CONFIG_WCHAR),
            version=self._version(),
        )

    def _config_flag(self, query: int, *, default: bool = False) -> bool:
        tre_config = getattr(self.lib, "tre_config", None)
        if tre_config is None:
            return default
        # int tre_config(int query, void *result); the queries used here write an int.
        tre_config.argtypes = [ctypes.c_int, ctypes.POINTER(ctypes.c_int)]
        tre_config.restype = ctypes.c_int
        result = ctypes.c_int(0)
        if tre_config(query, ctypes.byref(result)) != 0:
            return False
        return bool(result.value)

    def _version(self) -> str | None:
        tre_version = getattr(self.lib, "tre_version", None)
        if tre_version is None:
            return None
        tre_version.argtypes = []
        tre_version.restype = ctypes.c_char_p
        raw = tre_version()
        return raw.decode("ascii", errors="replace") if raw else None

    def regncomp(self, preg: RegexT, pattern: bytes, cflags: int, /) -> int:
        code = self.lib.tre_regncomp(ctypes.byref(preg), pattern, len(pattern), cflags)
        if code == 0:
            self.stats.record_compile()
        return code

    def regnexec(
        self,
        preg: RegexT,
        subject: bytes,
        pmatch: ctypes.Array[RegmatchT],
        eflags: int,
        /,
    ) -> int:
        return self.lib.tre_regnexec(
            ctypes.byref(preg), subject, len(subject), len(pmatch), pmatch, eflags
        )

    def reganexec(
        self,
        preg: RegexT,
        subject: bytes,
        amatch: RegamatchT,
        params: RegaparamsT,
        eflags: int,
        /,
    ) -> int:
        if self._reganexec is None:  # pragma: no cover - guarded by capabilities()
            msg = "tre_reganexec is not exported by the loaded library"
            raise AttributeError(msg)
        return self._reganexec(
            ctypes.byref(preg), subject, len(subject), ctypes.byref(amatch), params, eflags
        )

    def have_backrefs(self, preg: RegexT, /) -> bool:
        if self._have_backrefs is None:
            return False
        return bool(self._have_backrefs(ctypes.byref(preg)))

    def regfree(self, preg: RegexT, /) -> None:
        self.lib.tre_regfree(ctypes.byref(preg))
        self.stats.record_free()

    def regerror(self, code: int, preg: RegexT | None, /) -> str:
        preg_ref: Any = ctypes.byref(preg) if preg is not None else None
        size = self.lib.tre_regerror(code, preg_ref, None, 0)
        if size == 0:
            return describe_code(code)
        buffer = ctypes.create_string_buffer(size)
        self.lib.tre_regerror(code, preg_ref, buffer, size)
        return buffer.value.decode("utf-8", errors="replace")


@cache
def get_engine() -> NativeEngine:
    """Return the process-wide engine, loading the library on first use.

    Raises:
        EngineUnavailableError: the TRE library cannot be loaded.
    """
    return NativeEngine(load_library())


def native_available() -> bool:
    """True if the TRE library can be loaded in this process."""
    try:
        get_engine()
    except EngineUnavailableError:
        return False
    return True
