"""Config loading for matching options.

Lets applications keep cost budgets and flag sets in JSON/YAML instead of
code. Parsing path:

  dict → parse_approximate_params() → ApproximateParams
  YAML file → load_approximate_params() → ApproximateParams
  ["EXTENDED", "ICASE"] → parse_compile_flags() → CompileFlags

Expected shape for parameters (every key optional, defaults as in
ApproximateParams)::

    cost_insert: 1
    cost_delete: 1
    cost_substitute: 2
    max_cost: 4
    max_errors: unlimited    # or inf, none, null, -1 (strings are case-insensitive)

Range checks are ApproximateParams' job; this module only checks shape and
reports problems as ConfigParseError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from tre_regex._errors import InvalidParameterError
from tre_regex._flags import CompileFlags, MatchFlags
from tre_regex._params import COST_FIELDS, LIMIT_FIELDS, UNLIMITED, ApproximateParams

_UNLIMITED_SPELLINGS = frozenset({"unlimited", "inf", "none"})


class ConfigParseError(Exception):
    """Error parsing config data into matching options."""


def parse_approximate_params(data: dict[str, Any]) -> ApproximateParams:
    """Parse a dict into ApproximateParams.

    Raises:
        ConfigParseError: the dict is malformed, has unknown keys, or holds
            out-of-range values.
    """
    if not isinstance(data, dict):
        msg = f"expected dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    known = set(COST_FIELDS) | set(LIMIT_FIELDS)
    unknown = sorted(set(data) - known)
    if unknown:
        msg = f"unknown approximate parameter(s) {unknown}, expected some of {sorted(known)}"
        raise ConfigParseError(msg)

    values: dict[str, int] = {}
    for name in COST_FIELDS:
        if name in data:
            values[name] = _parse_int(name, data[name])
    for name in LIMIT_FIELDS:
        if name in data:
            values[name] = _parse_limit(name, data[name])

    try:
        return ApproximateParams(**values)
    except InvalidParameterError as e:
        raise ConfigParseError(str(e)) from e


def load_approximate_params(path: str | Path) -> ApproximateParams:
    """Read a YAML (or JSON) file holding an approximate parameter mapping.

    Raises:
        ConfigParseError: the file is not valid YAML or not a valid mapping.
        OSError: the file cannot be read.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"{path}: invalid YAML: {e}"
        raise ConfigParseError(msg) from e
    if data is None:
        data = {}
    return parse_approximate_params(data)


def parse_compile_flags(names: list[str]) -> CompileFlags:
    """Combine flag names such as ``["EXTENDED", "ICASE"]`` into CompileFlags."""
    return _parse_flags(names, CompileFlags)


def parse_match_flags(names: list[str]) -> MatchFlags:
    """Combine flag names such as ``["NOTBOL"]`` into MatchFlags."""
    return _parse_flags(names, MatchFlags)


def _parse_flags[F: (CompileFlags, MatchFlags)](names: list[str], kind: type[F]) -> F:
    if not isinstance(names, list):
        msg = f"{kind.__name__} must be a list of names, got {type(names).__name__}"
        raise ConfigParseError(msg)
    result = kind(0)
    for name in names:
        if not isinstance(name, str) or name.upper() not in kind.__members__:
            expected = sorted(kind.__members__)
            msg = f"unknown {kind.__name__} name {name!r}, expected one of {expected}"
            raise ConfigParseError(msg)
        result |= kind[name.upper()]
    return result


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {type(value).__name__}"
        raise ConfigParseError(msg)
    return value


def _parse_limit(name: str, value: Any) -> int:
    if value is None:
        return UNLIMITED
    if isinstance(value, str):
        if value.strip().lower() in _UNLIMITED_SPELLINGS:
            return UNLIMITED
        msg = f"{name} must be an integer or 'unlimited', got {value!r}"
        raise ConfigParseError(msg)
    return _parse_int(name, value)
