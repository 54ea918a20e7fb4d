#!/usr/bin/env python3

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from pina_idl.pina_idl import pina_idl

COUNTER = Path(__file__).parent / "test_data" / "programs" / "counter"


@pytest.fixture
def runner():
    return CliRunner()


class TestIdlCommand:
    """Test the `idl` command"""

    def test_prints_schema(self, runner):
        """Test the schema goes to stdout by default"""
        result = runner.invoke(pina_idl, ["idl", "--path", str(COUNTER)])
        assert result.exit_code == 0, result.output
        schema = json.loads(result.output)
        assert schema["program"]["name"] == "counter_program"
        assert result.output.endswith("}\n")

    def test_compact_output(self, runner):
        result = runner.invoke(pina_idl, ["idl", "-p", str(COUNTER), "--compact"])
        assert result.exit_code == 0, result.output
        assert result.output.count("\n") == 1

    def test_name_override(self, runner):
        result = runner.invoke(pina_idl, ["idl", "-p", str(COUNTER), "--name", "custom"])
        assert json.loads(result.output)["program"]["name"] == "custom"

    def test_output_file(self, runner, tmp_path):
        """Test writing to a file, refusing to overwrite it, then forcing"""
        output = tmp_path / "idl.json"

        result = runner.invoke(pina_idl, ["idl", "-p", str(COUNTER), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert result.output == ""
        written = output.read_text()
        assert json.loads(written)["program"]["address"] == "GJQcuWrT2f3f4KNuJcXhhwUa1ZQTYbxzzJ1hotzKu8hS"

        result = runner.invoke(pina_idl, ["idl", "-p", str(COUNTER), "-o", str(output)])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "--force" in result.output

        result = runner.invoke(pina_idl, ["idl", "-p", str(COUNTER), "-o", str(output), "--force"])
        assert result.exit_code == 0, result.output
        assert output.read_text() == written

    def test_failure_exit_code(self, runner, tmp_path):
        """Test a pipeline error prints a message and exits with 1"""
        (tmp_path / "Cargo.toml").write_text('[package]\nname = "broken"\n')
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "lib.rs").write_text("pub struct Broken {\n")

        result = runner.invoke(pina_idl, ["idl", "-p", str(tmp_path)])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "lib.rs" in result.output

    def test_missing_address(self, runner, tmp_path):
        (tmp_path / "Cargo.toml").write_text('[package]\nname = "anon"\n')
        (tmp_path / "lib.rs").write_text("pub fn nothing() {}\n")

        result = runner.invoke(pina_idl, ["idl", "-p", str(tmp_path)])
        assert result.exit_code == 1
        assert "declare_id!" in result.output


class TestInitCommand:
    """Test the `init` command"""

    def test_init_then_generate(self, runner, tmp_path):
        target = tmp_path / "my_counter"
        result = runner.invoke(pina_idl, ["init", "my_counter", "--path", str(target)])
        assert result.exit_code == 0, result.output
        assert "Initialized new Pina project" in result.output
        assert (target / "Cargo.toml").exists()
        assert (target / "src" / "lib.rs").exists()

        result = runner.invoke(pina_idl, ["idl", "-p", str(target)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["program"]["name"] == "my_counter"

    def test_init_refuses_existing_files(self, runner, tmp_path):
        target = tmp_path / "proj"
        assert runner.invoke(pina_idl, ["init", "proj", "-p", str(target)]).exit_code == 0

        result = runner.invoke(pina_idl, ["init", "proj", "-p", str(target)])
        assert result.exit_code == 1
        assert "Error:" in result.output

        result = runner.invoke(pina_idl, ["init", "proj", "-p", str(target), "--force"])
        assert result.exit_code == 0, result.output

    def test_init_default_path(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(pina_idl, ["init", "fresh"])
            assert result.exit_code == 0, result.output
            assert Path("fresh", "src", "lib.rs").exists()


if __name__ == "__main__":
    pytest.main([__file__])
