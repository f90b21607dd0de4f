import io
import json

import pytest

from turing_machine.cli import EXIT_ACCEPTED, EXIT_BAD_DESCRIPTION, EXIT_REJECTED, main

from .machines import BINARY_INCREMENT, SUCCESSOR


@pytest.fixture
def successor_path(tmp_path):
    path = tmp_path / "successor.tm"
    path.write_text(SUCCESSOR, encoding="utf-8")
    return path


def run_cli(argv, stdin_text=""):
    stdout = io.StringIO()
    code = main([str(arg) for arg in argv], stdin=io.StringIO(stdin_text), stdout=stdout)
    return code, stdout.getvalue()


def test_reads_tapes_from_stdin(successor_path):
    code, output = run_cli([successor_path], "111\n1\n")
    assert output.splitlines() == ["111_", "1_"]
    assert code == EXIT_ACCEPTED


def test_exit_status_follows_last_line(tmp_path):
    path = tmp_path / "ones.tm"
    # acepta solo si la cinta empieza por 1
    path.write_text("0 1\n_\n1\n0\n0 1 1 1 R\n", encoding="utf-8")
    code, output = run_cli([path], "1\n0\n")
    assert output.splitlines() == ["1_", "0"]
    assert code == EXIT_REJECTED

    code, _ = run_cli([path], "0\n1\n")
    assert code == EXIT_ACCEPTED


def test_invalid_tape_symbol_does_not_stop_later_lines(tmp_path):
    path = tmp_path / "binary.tm"
    path.write_text(BINARY_INCREMENT, encoding="utf-8")
    code, output = run_cli([path], "2\n1011\n")
    assert output.splitlines() == ["1100_"]
    assert code == EXIT_ACCEPTED


def test_failed_last_line_counts_as_rejected(successor_path):
    code, output = run_cli([successor_path], "111\nx\n")
    assert output.splitlines() == ["111_"]
    assert code == EXIT_REJECTED


def test_trace_prints_descriptions(successor_path):
    code, output = run_cli([successor_path, "--trace", "-s", "1"])
    assert output.splitlines() == ["(0)1", "1(0)_", "(1)1_", "1_"]
    assert code == EXIT_ACCEPTED


def test_json_output(successor_path):
    code, output = run_cli([successor_path, "--json", "--trace", "-s", "11", "-s", "a"])
    payload = json.loads(output)
    assert payload[0]["input"] == "11"
    assert payload[0]["tape"] == "11_"
    assert payload[0]["accepted"] is True
    assert payload[0]["ids"][0] == "(0)11"
    assert payload[1]["accepted"] is False
    assert "error" in payload[1]
    assert code == EXIT_REJECTED


def test_bad_description_exits_with_two(tmp_path):
    path = tmp_path / "broken.tm"
    path.write_text("1\n_\n1\n0\n0 1 0 1 X\n", encoding="utf-8")
    code, output = run_cli([path], "1\n")
    assert code == EXIT_BAD_DESCRIPTION
    assert output == ""


def test_missing_description_file(tmp_path):
    code, _ = run_cli([tmp_path / "missing.tm"], "1\n")
    assert code == EXIT_BAD_DESCRIPTION


def test_duplicate_rules_need_flag(tmp_path):
    path = tmp_path / "dup.tm"
    path.write_text(SUCCESSOR + "0 _ 1 1 L\n", encoding="utf-8")
    code, _ = run_cli([path], "1\n")
    assert code == EXIT_BAD_DESCRIPTION

    code, output = run_cli([path, "--last-rule-wins"], "1\n")
    assert output.splitlines() == ["11"]
    assert code == EXIT_ACCEPTED


def test_max_steps_limits_runaway_machine(tmp_path):
    path = tmp_path / "loop.tm"
    path.write_text("a\n_\n1\n0\n0 _ 0 a R\n", encoding="utf-8")
    code, output = run_cli([path, "--max-steps", "3"], "\n")
    assert output.splitlines() == ["aaa_"]
    assert code == EXIT_REJECTED


def test_yaml_simulation_strings_are_used(tmp_path):
    path = tmp_path / "successor.yml"
    path.write_text(
        "machine:\n"
        "  alphabet: ['1']\n"
        "  blank: _\n"
        "  accepting: [1]\n"
        "  initial: 0\n"
        "  delta:\n"
        "    - 0 1 0 1 R\n"
        "    - 0 _ 1 _ L\n"
        "simulation_strings: ['1', '11']\n",
        encoding="utf-8",
    )
    code, output = run_cli([path], "ignored\n")
    assert output.splitlines() == ["1_", "11_"]
    assert code == EXIT_ACCEPTED


def test_empty_input_exits_with_zero(successor_path):
    """Sin líneas de entrada no hay ninguna ejecución rechazada."""
    code, output = run_cli([successor_path], "")
    assert output == ""
    assert code == EXIT_ACCEPTED
