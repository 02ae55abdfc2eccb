"""Unit tests for the rule comparison engine."""

from __future__ import annotations

import pytest

from core.errors import TagStoreComparisonError, TagStoreValidationError
from store.comparison import compile_ruleset, matches

_STAMPED = {"when": "2014-06-02 12:34:56", "_timestamp": 1401712496}


def test_strict_requires_every_field() -> None:
    """Strict mode should fail when a ruleset field is missing."""
    ruleset = {"a": {"eq": "X"}, "b": {"eq": "Y"}}

    assert matches({"a": "X"}, ruleset) is False


def test_sloppy_skips_missing_fields() -> None:
    """Sloppy mode should match when at least one present field matches."""
    ruleset = {"a": {"eq": "X"}, "b": {"eq": "Y"}}

    assert matches({"a": "X"}, ruleset, sloppy=True) is True


def test_sloppy_fails_when_present_field_fails() -> None:
    """A present field failing its rule should fail sloppy matching."""
    ruleset = {"a": {"eq": "X"}, "b": {"eq": "Y"}}

    assert matches({"a": "X", "b": "Z"}, ruleset, sloppy=True) is False


def test_sloppy_needs_at_least_one_match() -> None:
    """Sloppy mode with no ruleset field present should not match."""
    assert matches({"c": 1}, {"a": {"eq": "X"}}, sloppy=True) is False


def test_empty_ruleset_matches_only_in_strict_mode() -> None:
    """An empty ruleset is vacuously true strictly and false sloppily."""
    assert (matches({"a": 1}, {}), matches({"a": 1}, {}, sloppy=True)) == (True, False)


def test_numeric_comparators_coerce_both_sides() -> None:
    """Numeric tokens should compare numbers, not strings."""
    record = {"counter": "120"}

    assert matches(record, {"counter": {">=": 100, "=<": "120", "!=": 9}})


def test_numeric_comparison_of_zero_value() -> None:
    """A zero value is present and comparable."""
    assert matches({"counter": 0}, {"counter": {"=": "0"}})


def test_string_comparators_are_lexicographic() -> None:
    """String tokens should order text, so '10' sorts before '9'."""
    assert matches({"size": 10}, {"size": {"lt": "9", "ne": "9", "ge": "10"}})


def test_regex_is_case_insensitive() -> None:
    """Regex match should ignore case."""
    assert matches({"message": "Disk FULL on /var"}, {"message": {"~": "disk full"}})


def test_negated_regex() -> None:
    """The !~ token should succeed when the pattern is absent."""
    assert matches({"message": "all good"}, {"message": {"!~": "error|fail"}})


def test_all_comparators_of_a_field_must_hold() -> None:
    """Multiple comparators on one field are combined with AND."""
    assert not matches({"counter": 150}, {"counter": {">": 100, "<": 140}})


def test_unknown_comparator_raises() -> None:
    """Unknown tokens are fatal rather than a non-match."""
    with pytest.raises(TagStoreComparisonError):
        matches({"a": 1}, {"a": {"like": "1"}})


def test_unknown_comparator_raises_even_when_field_missing() -> None:
    """Tokens are validated when the ruleset is compiled."""
    with pytest.raises(TagStoreComparisonError):
        compile_ruleset({"missing": {"date:ne": "2014-01-01"}})


def test_invalid_regex_raises() -> None:
    """Regex operands must compile."""
    with pytest.raises(TagStoreComparisonError):
        compile_ruleset({"a": {"~": "(unclosed"}})


def test_non_mapping_rule_raises() -> None:
    """Each rule must be a comparator mapping."""
    with pytest.raises(TagStoreValidationError):
        compile_ruleset({"a": "eq"})


@pytest.mark.parametrize("sloppy", [False, True])
def test_aggregate_values_never_match(sloppy: bool) -> None:
    """Sequence and mapping fields cannot satisfy rules in either mode."""
    record = {"items": ["x"], "meta": {"k": "x"}, "name": "x"}

    assert not matches(record, {"items": {"eq": "['x']"}}, sloppy=sloppy)
    assert not matches(record, {"name": {"eq": "x"}, "meta": {"~": "x"}}, sloppy=sloppy)


def test_date_rule_scale_follows_coarser_side() -> None:
    """A day-level rule should match any moment of that day."""
    assert matches(_STAMPED, {"when": {"date:eq": "2014-06-02"}})
    assert matches(_STAMPED, {"when": {"date:lte": "2014-06-02 12:34"}})
    assert not matches(_STAMPED, {"when": {"date:eq": "2014-06-03"}})


def test_date_rule_against_epoch_field() -> None:
    """Epoch second values should be rendered as UTC dates."""
    rules = {"_timestamp": {"date:gte": "2014-06-01", "date:before": "2014-06-03"}}

    assert matches(_STAMPED, rules)


def test_date_rule_with_free_form_operand() -> None:
    """Operands outside the strict pattern go through the date parser."""
    assert matches(_STAMPED, {"when": {"date:after": "June 1, 2014"}})


def test_unparseable_date_is_a_non_match() -> None:
    """Values that cannot be read as dates never match."""
    assert not matches({"when": "gibberish"}, {"when": {"date:lte": "2014-06-02"}})


def test_time_rules_compare_time_of_day() -> None:
    """Time rules should ignore the date part."""
    assert matches(_STAMPED, {"when": {"time:gte": "12:00", "time:eq": "12:34"}})
    assert not matches(_STAMPED, {"when": {"time:lt": "12:30"}})


def test_compiled_ruleset_is_reusable() -> None:
    """A compiled ruleset should evaluate many records."""
    compiled = compile_ruleset({"level": {"eq": "debug"}})

    results = [compiled.matches({"level": level}) for level in ("debug", "info")]

    assert results == [True, False]
