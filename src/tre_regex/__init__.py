"""tre_regex: safe Python bindings for the TRE approximate regex engine.

All public types are exported from this module for flat imports:

    from tre_regex import compile, ApproximateParams, CompileFlags

    with compile(r"^(hello).*(world)$", CompileFlags.EXTENDED | CompileFlags.ICASE) as p:
        m = p.approximate_match("hullo warld", ApproximateParams.max_edits(2))
        m.cost, m.groups("hullo warld")

Logging goes through loguru and is disabled for this package by default;
call ``logger.enable("tre_regex")`` to see it.
"""

from loguru import logger

__version__ = "0.1.0"

# Results
from tre_regex._captures import (
    ApproximateMatchResult,
    Capture,
    MatchResult,
    Span,
    extract_captures,
)

# Config loading, see tre_regex._config for details
from tre_regex._config import (
    ConfigParseError,
    load_approximate_params,
    parse_approximate_params,
    parse_compile_flags,
    parse_match_flags,
)

# Errors
from tre_regex._errors import (
    CompileError,
    EngineUnavailableError,
    ErrorCode,
    InternalError,
    InvalidParameterError,
    MatchError,
    OutOfMemoryError,
    ReleasedPatternError,
    TreError,
    UnsupportedFeatureError,
    error_from_code,
)
from tre_regex._flags import CompileFlags, MatchFlags

# Native engine
from tre_regex._native import (
    Capabilities,
    EngineStats,
    NativeEngine,
    get_engine,
    native_available,
)
from tre_regex._params import UNLIMITED, ApproximateParams

# Pattern and function API
from tre_regex._pattern import Pattern, approximate_match, compile, match
from tre_regex._types import Engine, Subject

logger.disable("tre_regex")


def capabilities() -> Capabilities:
    """Features of the process-wide engine.

    Raises:
        EngineUnavailableError: the TRE library cannot be loaded.
    """
    return get_engine().capabilities()


__all__ = [
    # Pattern and function API
    "Pattern",
    "compile",
    "match",
    "approximate_match",
    # Flags
    "CompileFlags",
    "MatchFlags",
    # Approximate parameters
    "ApproximateParams",
    "UNLIMITED",
    # Results
    "Span",
    "Capture",
    "MatchResult",
    "ApproximateMatchResult",
    "extract_captures",
    # Errors
    "TreError",
    "CompileError",
    "MatchError",
    "InvalidParameterError",
    "OutOfMemoryError",
    "InternalError",
    "ReleasedPatternError",
    "UnsupportedFeatureError",
    "EngineUnavailableError",
    "ErrorCode",
    "error_from_code",
    # Engine
    "Engine",
    "NativeEngine",
    "EngineStats",
    "Capabilities",
    "Subject",
    "capabilities",
    "get_engine",
    "native_available",
    # Config
    "ConfigParseError",
    "parse_approximate_params",
    "load_approximate_params",
    "parse_compile_flags",
    "parse_match_flags",
]
