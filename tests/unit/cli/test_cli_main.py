"""Unit tests for CLI command handling."""

from __future__ import annotations

import json

from cli.main import main


def _run(tmp_path, capsys, *args: str) -> tuple[int, str, str]:
    exit_code = main(["--locator", f"file://{tmp_path / 'store'}", *args])
    captured = capsys.readouterr()
    return exit_code, captured.out.strip(), captured.err


def test_cli_add_prints_new_id(tmp_path, capsys) -> None:
    """CLI add should print the allocated record id."""
    exit_code, output, _ = _run(
        tmp_path, capsys, "add", "bill", "--field", "counter=120", "--field", "message=hello"
    )

    assert exit_code == 0 and output == "1"


def test_cli_get_prints_record_json(tmp_path, capsys) -> None:
    """CLI get should print the stored record as JSON."""
    _run(tmp_path, capsys, "add", "bill", "--json", '{"counter": 120, "ok": true}')

    exit_code, output, _ = _run(tmp_path, capsys, "get", "1")
    record = json.loads(output)

    assert exit_code == 0
    assert (record["counter"], record["ok"], record["_tag"]) == (120, True, "bill")


def test_cli_get_missing_record_fails(tmp_path, capsys) -> None:
    """CLI get should report unknown ids on stderr."""
    exit_code, output, error = _run(tmp_path, capsys, "get", "42")

    assert exit_code == 1 and output == "" and "not_found=42" in error


def test_cli_count_and_search_apply_rules(tmp_path, capsys) -> None:
    """Rules given on the command line filter records."""
    for counter in ("5", "50", "500"):
        _run(tmp_path, capsys, "add", "bill", "--field", f"counter={counter}")

    _, count_output, _ = _run(tmp_path, capsys, "count", "--rule", "counter", ">=", "50")
    _, search_output, _ = _run(
        tmp_path, capsys, "search", "--rule", "counter", ">=", "50", "--rule", "_tag", "eq", "bill"
    )

    assert count_output == "2"
    assert [json.loads(line)["counter"] for line in search_output.splitlines()] == [50, 500]


def test_cli_count_without_rules_counts_all(tmp_path, capsys) -> None:
    """CLI count with no rules should count every record."""
    _run(tmp_path, capsys, "add", "bill", "--field", "counter=1")
    _run(tmp_path, capsys, "add", "fred", "--field", "counter=2")

    _, output, _ = _run(tmp_path, capsys, "count")

    assert output == "2"


def test_cli_tags_lists_sorted_tags(tmp_path, capsys) -> None:
    """CLI tags should print one tag per line."""
    _run(tmp_path, capsys, "add", "fred", "--field", "counter=1")
    _run(tmp_path, capsys, "add", "bill", "--field", "counter=2")

    _, output, _ = _run(tmp_path, capsys, "tags")

    assert output.splitlines() == ["bill", "fred"]


def test_cli_purge_removes_matches(tmp_path, capsys) -> None:
    """CLI purge should print how many records were removed."""
    _run(tmp_path, capsys, "add", "bill", "--field", "counter=1")
    _run(tmp_path, capsys, "add", "bill", "--field", "counter=99")

    _, purge_output, _ = _run(tmp_path, capsys, "purge", "--rule", "counter", "<", "10")
    _, count_output, _ = _run(tmp_path, capsys, "count")

    assert (purge_output, count_output) == ("1", "1")


def test_cli_purge_requires_rules(tmp_path, capsys) -> None:
    """CLI purge without rules should fail instead of deleting everything."""
    exit_code, _, error = _run(tmp_path, capsys, "purge")

    assert exit_code == 1 and "purge requires" in error


def test_cli_update_and_delete(tmp_path, capsys) -> None:
    """CLI update keeps the id for a current copy, delete removes it."""
    _run(tmp_path, capsys, "add", "bill", "--field", "counter=1")
    _, record_output, _ = _run(tmp_path, capsys, "get", "1")
    record = json.loads(record_output)
    record["counter"] = 2

    _, update_output, _ = _run(tmp_path, capsys, "update", "--json", json.dumps(record))
    _, delete_output, _ = _run(tmp_path, capsys, "delete", "1")
    exit_code, _, _ = _run(tmp_path, capsys, "get", "1")

    assert (update_output, delete_output, exit_code) == ("1", "deleted=1", 1)


def test_cli_invalid_field_reports_error(tmp_path, capsys) -> None:
    """Malformed --field values should exit non-zero with an error line."""
    exit_code, _, error = _run(tmp_path, capsys, "add", "bill", "--field", "counter")

    assert exit_code == 1 and "error=" in error


def test_cli_unknown_scheme_reports_error(capsys) -> None:
    """Unknown locator schemes should exit non-zero."""
    exit_code = main(["--locator", "mongo://db", "count"])

    assert exit_code == 1 and "error=" in capsys.readouterr().err


def test_cli_reads_yaml_config(tmp_path, capsys) -> None:
    """--config should supply the locator and codec."""
    config_path = tmp_path / "tagstore.yaml"
    config_path.write_text(
        f"locator: file://{tmp_path / 'yaml-store'}\ncodec: msgpack\nsource: cli-test\n",
        encoding="utf-8",
    )

    main(["--config", str(config_path), "add", "bill", "--field", "counter=1"])
    main(["--config", str(config_path), "get", "1"])
    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])

    assert record["_source"] == "cli-test"
    assert (tmp_path / "yaml-store" / "settings.msgpack").is_file()
