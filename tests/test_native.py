"""Tests for library loading and the ctypes engine."""

import ctypes
import pickle

import pytest

from tre_regex import (
    CompileFlags,
    Engine,
    EngineUnavailableError,
    MatchFlags,
    NativeEngine,
    Pattern,
    Span,
    capabilities,
    compile,
)
from tre_regex._native import (
    LIBRARY_ENV_VAR,
    RegamatchT,
    RegaparamsT,
    RegexT,
    RegmatchT,
    _candidate_paths,
    load_library,
)


class TestLayout:
    def test_regmatch_is_two_ints(self) -> None:
        assert ctypes.sizeof(RegmatchT) == 2 * ctypes.sizeof(ctypes.c_int)

    def test_regaparams_is_eight_ints(self) -> None:
        assert ctypes.sizeof(RegaparamsT) == 8 * ctypes.sizeof(ctypes.c_int)

    def test_regex_t_leads_with_re_nsub(self) -> None:
        assert RegexT.re_nsub.offset == 0

    def test_regamatch_counts_follow_pointer(self) -> None:
        assert RegamatchT.cost.offset > RegamatchT.pmatch.offset


# Argument counts of the tre.h prototypes the binding uses.
PROTOTYPE_ARITY = {
    "tre_regncomp": 4,
    "tre_regnexec": 6,
    "tre_reganexec": 6,
    "tre_regfree": 1,
    "tre_regerror": 4,
    "tre_config": 2,
    "tre_have_backrefs": 1,
    "tre_version": 0,
}


class StandInFunction:
    """Records calls and insists they match the declared argtypes."""

    def __init__(self, name: str, result: object = 0) -> None:
        self.name = name
        self.result = result
        self.argtypes: list[object] | None = None
        self.restype: object = ctypes.c_int
        self.calls: list[tuple[object, ...]] = []

    def __call__(self, *args: object) -> object:
        assert self.argtypes is not None, f"{self.name} called before argtypes were set"
        assert len(self.argtypes) == PROTOTYPE_ARITY[self.name], self.name
        assert len(args) == len(self.argtypes), self.name
        self.calls.append(args)
        return self.result


class StandInLibrary:
    """Attribute access like ctypes.CDLL, without loading anything."""

    def __init__(self, *, missing: tuple[str, ...] = (), **results: object) -> None:
        self.functions = {
            name: StandInFunction(name, results.get(name, 0))
            for name in PROTOTYPE_ARITY
            if name not in missing
        }

    def __getattr__(self, name: str) -> StandInFunction:
        try:
            return self.__dict__["functions"][name]
        except KeyError:
            raise AttributeError(name) from None


class TestEngineBinding:
    def test_capability_probe_honours_prototypes(self) -> None:
        lib = StandInLibrary(tre_version=b"TRE 0.8.0")
        caps = NativeEngine(lib).capabilities()  # type: ignore[arg-type]
        assert caps.version == "TRE 0.8.0"
        assert lib.functions["tre_config"].calls
        assert lib.functions["tre_have_backrefs"].calls == []

    def test_capabilities_are_library_wide(self) -> None:
        caps = NativeEngine(StandInLibrary()).capabilities()  # type: ignore[arg-type]
        assert not hasattr(caps, "backreferences")

    def test_have_backrefs_passes_the_handle(self) -> None:
        lib = StandInLibrary(tre_have_backrefs=1)
        assert NativeEngine(lib).have_backrefs(RegexT()) is True  # type: ignore[arg-type]
        (args,) = lib.functions["tre_have_backrefs"].calls
        assert len(args) == 1

    def test_have_backrefs_without_export(self) -> None:
        lib = StandInLibrary(missing=("tre_have_backrefs",))
        assert NativeEngine(lib).have_backrefs(RegexT()) is False  # type: ignore[arg-type]

    def test_approximate_absent_without_reganexec(self) -> None:
        lib = StandInLibrary(missing=("tre_reganexec",))
        assert NativeEngine(lib).capabilities().approximate is False  # type: ignore[arg-type]

    def test_approximate_assumed_without_tre_config(self) -> None:
        lib = StandInLibrary(missing=("tre_config",))
        caps = NativeEngine(lib).capabilities()  # type: ignore[arg-type]
        assert caps.approximate is True
        assert caps.multibyte is False


class TestLoading:
    def test_env_var_overrides_search(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(LIBRARY_ENV_VAR, "/opt/tre/lib/libtre.so")
        assert _candidate_paths() == ["/opt/tre/lib/libtre.so"]

    def test_search_without_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(LIBRARY_ENV_VAR, raising=False)
        assert "libtre.so" in _candidate_paths()

    def test_bad_path_raises_engine_unavailable(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path
    ) -> None:
        missing = tmp_path / "libtre-missing.so"
        monkeypatch.setenv(LIBRARY_ENV_VAR, str(missing))
        with pytest.raises(EngineUnavailableError) as exc_info:
            load_library()
        assert str(missing) in exc_info.value.source


@pytest.mark.native
class TestNativeEngine:
    def test_is_an_engine(self, native: NativeEngine) -> None:
        assert isinstance(native, Engine)

    def test_capabilities_are_cached(self, native: NativeEngine) -> None:
        assert native.capabilities() is native.capabilities()
        assert capabilities() is native.capabilities()

    def test_regerror_uses_engine_strings(self, native: NativeEngine) -> None:
        assert native.regerror(7, None) == "Missing ']'"

    def test_compile_and_free_counted(self, native: NativeEngine) -> None:
        before = native.stats.live
        p = compile("a(b)c")
        assert native.stats.live == before + 1
        p.close()
        assert native.stats.live == before


@pytest.mark.native
class TestNativeMatching:
    def test_nosub_leaves_every_capture_unset(self) -> None:
        with compile("a(b)", CompileFlags.EXTENDED | CompileFlags.NOSUB) as p:
            result = p.match("xab")
        assert result is not None
        assert all(capture is None for capture in result.captures)

    def test_embedded_nul_in_pattern_and_subject(self) -> None:
        with compile(b"a\x00b") as p:
            result = p.match(b"xa\x00b")
        assert result is not None
        assert result.span() == Span(1, 4)

    def test_empty_subject(self) -> None:
        with compile("^$") as p:
            result = p.match("")
        assert result is not None
        assert result.span() == Span(0, 0)

    def test_notbol_blocks_caret(self) -> None:
        with compile("^a") as p:
            assert p.match("ab") is not None
            assert p.match("ab", MatchFlags.NOTBOL) is None

    def test_has_backrefs_is_per_pattern(self) -> None:
        with compile(r"\(a\)\1", CompileFlags.BASIC) as with_ref, compile("(a)b") as without:
            assert with_ref.has_backrefs is True
            assert without.has_backrefs is False

    def test_pickle_recompiles(self) -> None:
        with compile("(a)b", CompileFlags.EXTENDED | CompileFlags.ICASE) as p:
            clone = pickle.loads(pickle.dumps(p))
        try:
            assert isinstance(clone, Pattern)
            assert clone.flags == CompileFlags.EXTENDED | CompileFlags.ICASE
            assert clone.group_count == 2
            assert clone.match("AB") is not None
        finally:
            clone.close()

    def test_approximate_anchor_passed_through(self) -> None:
        with compile("^abc") as p:
            result = p.approximate_match("abc")
        assert result is not None
        assert result.cost == 0
