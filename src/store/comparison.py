"""Rule evaluation against flat records.

A ruleset maps field names to rules, and a rule maps comparator tokens to
operands::

    {
        "_tag": {"eq": "bill"},
        "_timestamp": {"date:gte": "2013-01-01", "date:lte": "2013-12-31"},
        "message": {"~": "disk (full|failed)"},
    }

Supported tokens:

* ``=`` ``!=`` ``>`` ``>=``/``=>`` ``<`` ``<=``/``=<``: numeric comparison
* ``eq`` ``ne`` ``gt`` ``gte``/``ge`` ``lt`` ``lte``/``le``: string comparison
* ``~``/``=~`` and ``!~``: case-insensitive regex search and its negation
* ``date:`` and ``time:`` prefixed ``eq lt lte gt gte`` (plus ``before``,
  ``after``, ``le``, ``ge``): granularity-aware comparisons, no ``ne`` form

Rulesets are compiled once per query so unknown tokens and bad patterns are
reported before any record is read.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
import operator
import re
from typing import Any, Callable, Mapping

from core.constants import (
    DATE_COMPARATORS,
    NUMERIC_COMPARATORS,
    REGEX_COMPARATORS,
    STRING_COMPARATORS,
    TIME_COMPARATORS,
)
from core.errors import TagStoreComparisonError, TagStoreValidationError
from core.logging_config import get_logger
from core.types import Ruleset
from store.date_normalization import normalize_dates, normalize_times

_LOGGER = get_logger(__name__)

_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_AGGREGATE_TYPES = (MappingABC, list, tuple)

_ORDERING: Mapping[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "=>": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "=<": operator.le,
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "ge": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "le": operator.le,
    "before": operator.lt,
    "after": operator.gt,
}

Predicate = Callable[[Any], bool]


@dataclass(frozen=True)
class FieldRule:
    """All compiled comparator checks for one field."""

    field_name: str
    checks: tuple[Predicate, ...]


class CompiledRuleset:
    """Validated ruleset ready to be evaluated against many records."""

    def __init__(self, field_rules: tuple[FieldRule, ...]) -> None:
        self._field_rules = field_rules

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(rule.field_name for rule in self._field_rules)

    def matches(self, record: Mapping[str, Any], sloppy: bool = False) -> bool:
        """Evaluate the ruleset against one record.

        In strict mode every named field must exist and pass all of its
        comparators. In sloppy mode fields missing from the record are
        skipped and at least one field must match. Any present field that
        fails a comparator, or holds an aggregate value, fails the record in
        both modes.

        Args:
            record: Flat record mapping.
            sloppy: Whether missing fields are tolerated.

        Returns:
            True when the record satisfies the ruleset.
        """
        matched = 0
        for field_rule in self._field_rules:
            value = record.get(field_rule.field_name)
            if value is None:
                if sloppy:
                    continue
                return False
            if isinstance(value, _AGGREGATE_TYPES):
                _LOGGER.warning("aggregate_field_compared", field=field_rule.field_name)
                return False
            for check in field_rule.checks:
                if not check(value):
                    return False
            matched += 1
        if sloppy:
            return matched > 0
        return True


def compile_ruleset(ruleset: Ruleset) -> CompiledRuleset:
    """Validate a ruleset and build its comparator checks.

    Args:
        ruleset: Mapping of field name to comparator/operand mapping.

    Returns:
        Compiled ruleset.

    Raises:
        TagStoreValidationError: If the ruleset or a rule is not a mapping.
        TagStoreComparisonError: For unknown tokens or invalid regex operands.
    """
    if not isinstance(ruleset, MappingABC):
        raise TagStoreValidationError(
            f"Ruleset must be a mapping of field to rule, got {type(ruleset).__name__}."
        )
    field_rules: list[FieldRule] = []
    for field_name, rule in ruleset.items():
        if not isinstance(rule, MappingABC):
            raise TagStoreValidationError(
                f"Rule for field '{field_name}' must be a mapping of comparator to operand, "
                f"got {type(rule).__name__}."
            )
        checks = tuple(_build_check(str(token), operand) for token, operand in rule.items())
        field_rules.append(FieldRule(field_name=str(field_name), checks=checks))
    return CompiledRuleset(tuple(field_rules))


def matches(
    record: Mapping[str, Any],
    ruleset: Ruleset | CompiledRuleset,
    sloppy: bool = False,
) -> bool:
    """Return whether ``record`` satisfies ``ruleset``.

    Args:
        record: Flat record mapping.
        ruleset: Raw or already compiled ruleset.
        sloppy: Whether fields missing from the record are skipped.

    Returns:
        Match result.
    """
    compiled = ruleset if isinstance(ruleset, CompiledRuleset) else compile_ruleset(ruleset)
    return compiled.matches(record, sloppy=sloppy)


def _build_check(token: str, operand: Any) -> Predicate:
    """Build one comparator predicate bound to its operand."""
    if token in NUMERIC_COMPARATORS:
        compare = _ORDERING[token]
        expected_number = _to_number(operand)
        return lambda value: compare(_to_number(value), expected_number)
    if token in STRING_COMPARATORS:
        compare = _ORDERING[token]
        expected_text = _to_text(operand)
        return lambda value: compare(_to_text(value), expected_text)
    if token in REGEX_COMPARATORS:
        pattern = _compile_pattern(token, operand)
        if token == "!~":
            return lambda value: pattern.search(_to_text(value)) is None
        return lambda value: pattern.search(_to_text(value)) is not None
    if token in DATE_COMPARATORS:
        return _temporal_check(_ORDERING[token.split(":", 1)[1]], operand, normalize_dates)
    if token in TIME_COMPARATORS:
        return _temporal_check(_ORDERING[token.split(":", 1)[1]], operand, normalize_times)
    raise TagStoreComparisonError(
        f"Unknown comparison '{token}'. Use a numeric (=, !=, >, >=, <, <=), string "
        "(eq, ne, gt, gte, lt, lte), regex (~, !~), date: or time: comparator."
    )


def _temporal_check(
    compare: Callable[[Any, Any], bool],
    operand: Any,
    normalize: Callable[[Any, Any], tuple[str, str] | None],
) -> Predicate:
    """Build a date or time predicate; unresolvable values never match."""

    def check(value: Any) -> bool:
        normalized = normalize(value, operand)
        if normalized is None:
            return False
        return bool(compare(normalized[0], normalized[1]))

    return check


def _compile_pattern(token: str, operand: Any) -> re.Pattern[str]:
    """Compile a regex operand in case-insensitive mode."""
    try:
        return re.compile(_to_text(operand), re.IGNORECASE)
    except re.error as error:
        raise TagStoreComparisonError(
            f"Invalid regular expression for '{token}': {operand!r} ({error}). "
            "Fix the pattern syntax."
        ) from error


def _to_number(value: Any) -> float:
    """Coerce a value to a number; text without a numeric prefix is zero."""
    if isinstance(value, (bool, int, float)):
        return float(value)
    match = _NUMERIC_PREFIX.match(str(value).strip())
    return float(match.group(0)) if match else 0.0


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
