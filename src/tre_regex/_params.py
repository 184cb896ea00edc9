"""Approximate matching parameters: validation, marshalling, result checks.

ApproximateParams is validated when it is constructed and again right
before an approximate match, so an out-of-range value can never reach the
engine. Limits use ``UNLIMITED`` (-1) for "no ceiling"; the marshalling step
swaps it for whatever value the engine treats as unbounded.

Defaults match ``tre_regaparams_default()``: every edit costs 1 and nothing
is limited.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, NoReturn

from loguru import logger

from tre_regex._errors import InternalError, InvalidParameterError
from tre_regex._native import C_INT_MAX, RegaparamsT

if TYPE_CHECKING:
    from tre_regex._native import RegamatchT

UNLIMITED = -1

COST_FIELDS = ("cost_insert", "cost_delete", "cost_substitute")
LIMIT_FIELDS = ("max_cost", "max_insertions", "max_deletions", "max_substitutions", "max_errors")

# Python field name -> regaparams_t member
_NATIVE_NAMES = {
    "cost_insert": "cost_ins",
    "cost_delete": "cost_del",
    "cost_substitute": "cost_subst",
    "max_cost": "max_cost",
    "max_insertions": "max_ins",
    "max_deletions": "max_del",
    "max_substitutions": "max_subst",
    "max_errors": "max_err",
}


@dataclass(frozen=True, slots=True)
class ApproximateParams:
    """Cost budget for an approximate match.

    Costs weigh each edit kind; limits cap the total cost, each edit kind
    separately, and the total number of edits. All-zero parameters are a
    valid budget that only admits exact matches.

    Raises:
        InvalidParameterError: on construction, if any value is out of range.
    """

    cost_insert: int = 1
    cost_delete: int = 1
    cost_substitute: int = 1
    max_cost: int = UNLIMITED
    max_insertions: int = UNLIMITED
    max_deletions: int = UNLIMITED
    max_substitutions: int = UNLIMITED
    max_errors: int = UNLIMITED

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check every value against its allowed range.

        Raises:
            InvalidParameterError: naming the first offending field.
        """
        for name in COST_FIELDS:
            value = _require_int(name, getattr(self, name))
            if value < 0:
                raise InvalidParameterError(name, f"cost must be >= 0, got {value}")
        for name in LIMIT_FIELDS:
            value = _require_int(name, getattr(self, name))
            if value < UNLIMITED:
                msg = f"limit must be >= 0 or UNLIMITED ({UNLIMITED}), got {value}"
                raise InvalidParameterError(name, msg)

    @classmethod
    def exact(cls) -> ApproximateParams:
        """Budget admitting no edits at all."""
        return cls(0, 0, 0, 0, 0, 0, 0, 0)

    @classmethod
    def max_edits(cls, errors: int) -> ApproximateParams:
        """Unit costs with at most ``errors`` edits of any kind."""
        return cls(max_cost=errors, max_errors=errors)

    def is_limited(self, name: str) -> bool:
        return getattr(self, name) != UNLIMITED

    def to_native(self, unlimited: int) -> RegaparamsT:
        """Marshal into a ``regaparams_t``, mapping UNLIMITED to ``unlimited``."""
        self.validate()
        native = RegaparamsT()
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in LIMIT_FIELDS and value == UNLIMITED:
                value = unlimited
            setattr(native, _NATIVE_NAMES[f.name], value)
        return native


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(name, f"expected int, got {type(value).__name__}")
    if value > C_INT_MAX:
        raise InvalidParameterError(name, f"{value} does not fit a C int (max {C_INT_MAX})")
    return value


def check_approximate_result(amatch: RegamatchT, params: ApproximateParams) -> None:
    """Assert the engine's reported cost and edit counts honour ``params``.

    Raises:
        InternalError: a value is negative or exceeds its supplied limit.
    """
    reported = {
        "cost": amatch.cost,
        "insertions": amatch.num_ins,
        "deletions": amatch.num_del,
        "substitutions": amatch.num_subst,
    }
    for name, value in reported.items():
        if value < 0:
            _breach(f"engine reported negative {name} ({value})")

    limits = (
        ("cost", amatch.cost, "max_cost"),
        ("insertions", amatch.num_ins, "max_insertions"),
        ("deletions", amatch.num_del, "max_deletions"),
        ("substitutions", amatch.num_subst, "max_substitutions"),
        ("errors", amatch.num_ins + amatch.num_del + amatch.num_subst, "max_errors"),
    )
    for name, value, limit_name in limits:
        limit = getattr(params, limit_name)
        if params.is_limited(limit_name) and value > limit:
            _breach(f"engine reported {name} {value} above {limit_name}={limit}")


def _breach(detail: str) -> NoReturn:
    logger.error("approximate match post-condition violated: {}", detail)
    raise InternalError(detail)
