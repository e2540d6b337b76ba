import json
from unittest.mock import patch

import yaml
from typer.testing import CliRunner

from mathdelim.cli import app

runner = CliRunner()


def test_app_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "convert-all" in result.stdout


class TestConvert:
    def test_stdin_to_stdout(self, isolated_config):
        result = runner.invoke(app, ["convert"], input="Let \\(x\\) be")
        assert result.exit_code == 0
        assert result.stdout == "Let $x$ be"

    def test_option_flag(self, isolated_config):
        result = runner.invoke(app, ["convert", "--parens"], input="the vector (x) is")
        assert result.exit_code == 0
        assert result.stdout == "the vector $x$ is"

    def test_config_options_used(self, isolated_config):
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text(
            yaml.safe_dump({"conversion": {"plainBracketsAsDelimiters": True}}),
            encoding="utf-8",
        )
        result = runner.invoke(app, ["convert"], input="value [x^2] here")
        assert result.stdout == "value $x^2$ here"

        result = runner.invoke(app, ["convert", "--no-brackets"], input="value [x^2] here")
        assert result.stdout == "value [x^2] here"

    def test_in_place(self, isolated_config, tmp_path):
        note = tmp_path / "note.md"
        note.write_text("\\[E=mc^2\\]", encoding="utf-8")
        result = runner.invoke(app, ["convert", str(note), "--in-place"])
        assert result.exit_code == 0
        assert note.read_text(encoding="utf-8") == "$$\nE=mc^2\n$$"

    def test_output_file(self, isolated_config, tmp_path):
        note = tmp_path / "note.md"
        out = tmp_path / "out.md"
        note.write_text("\\(a\\)", encoding="utf-8")
        result = runner.invoke(app, ["convert", str(note), "-o", str(out)])
        assert result.exit_code == 0
        assert out.read_text(encoding="utf-8") == "$a$"
        assert note.read_text(encoding="utf-8") == "\\(a\\)"

    def test_check(self, isolated_config, tmp_path):
        note = tmp_path / "note.md"
        note.write_text("\\(a\\)", encoding="utf-8")
        assert runner.invoke(app, ["convert", str(note), "--check"]).exit_code == 1
        note.write_text("$a$", encoding="utf-8")
        assert runner.invoke(app, ["convert", str(note), "--check"]).exit_code == 0

    def test_in_place_needs_file(self, isolated_config):
        result = runner.invoke(app, ["convert", "--in-place"], input="x")
        assert result.exit_code == 1
        assert "--in-place needs a FILE" in result.stdout

    def test_invalid_config(self, isolated_config):
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text("conversion:\n  bogus: true\n", encoding="utf-8")
        result = runner.invoke(app, ["convert"], input="x")
        assert result.exit_code == 1
        assert "Error" in result.stdout


class TestConvertAll:
    def make_vault(self, root):
        (root / "sub").mkdir(parents=True)
        (root / ".obsidian").mkdir()
        (root / "a.md").write_text("\\(x\\)", encoding="utf-8")
        (root / "sub" / "b.md").write_text("plain", encoding="utf-8")
        (root / ".obsidian" / "c.md").write_text("\\(y\\)", encoding="utf-8")

    def test_converts_vault(self, isolated_config, tmp_path):
        vault = tmp_path / "vault"
        self.make_vault(vault)
        result = runner.invoke(app, ["convert-all", str(vault)])
        assert result.exit_code == 0
        assert (vault / "a.md").read_text(encoding="utf-8") == "$x$"
        assert (vault / "sub" / "b.md").read_text(encoding="utf-8") == "plain"
        assert (vault / ".obsidian" / "c.md").read_text(encoding="utf-8") == "\\(y\\)"
        assert "1 of 2 files converted" in result.stdout

    def test_check_writes_nothing(self, isolated_config, tmp_path):
        vault = tmp_path / "vault"
        self.make_vault(vault)
        result = runner.invoke(app, ["convert-all", str(vault), "--check"])
        assert result.exit_code == 1
        assert (vault / "a.md").read_text(encoding="utf-8") == "\\(x\\)"
        assert "a.md" in result.stdout

    def test_report(self, isolated_config, tmp_path):
        vault = tmp_path / "vault"
        self.make_vault(vault)
        report = tmp_path / "report.json"
        result = runner.invoke(app, ["convert-all", str(vault), "--report", str(report)])
        assert result.exit_code == 0
        data = json.loads(report.read_text(encoding="utf-8"))
        assert [entry["path"] for entry in data["files"]] == ["a.md", "sub/b.md"]


@patch("mathdelim.cli.set_clipboard", return_value=True)
@patch("mathdelim.cli.get_clipboard", return_value="\\(x\\) and \\[y\\]")
def test_paste(mock_get, mock_set, isolated_config):
    result = runner.invoke(app, ["paste"])
    assert result.exit_code == 0
    mock_set.assert_called_once_with("$x$ and \n$$\ny\n$$")
    assert "Clipboard converted" in result.stdout


@patch("mathdelim.cli.set_clipboard")
@patch("mathdelim.cli.get_clipboard", return_value="")
def test_paste_empty(mock_get, mock_set, isolated_config):
    result = runner.invoke(app, ["paste"])
    assert result.exit_code == 0
    mock_set.assert_not_called()


class TestValidate:
    def test_valid(self, tmp_path):
        original = tmp_path / "a.md"
        converted = tmp_path / "b.md"
        original.write_text("\\(x\\)", encoding="utf-8")
        converted.write_text("$x$", encoding="utf-8")
        result = runner.invoke(app, ["validate", str(original), str(converted)])
        assert result.exit_code == 0
        assert "File is valid!" in result.stdout

    def test_invalid(self, tmp_path):
        original = tmp_path / "a.md"
        converted = tmp_path / "b.md"
        original.write_text("```\nx\n```\n", encoding="utf-8")
        converted.write_text("x\n", encoding="utf-8")
        result = runner.invoke(app, ["validate", str(original), str(converted)])
        assert result.exit_code == 1
        assert "Missing code blocks" in result.stdout


class TestConfigCommands:
    def test_show(self, isolated_config):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "plain_parens_as_delimiters" in result.stdout

    def test_set(self, isolated_config):
        result = runner.invoke(
            app, ["config", "set", "conversion.plainParensAsDelimiters", "true"]
        )
        assert result.exit_code == 0
        assert "Updated" in result.stdout
        data = yaml.safe_load(isolated_config.read_text(encoding="utf-8"))
        assert data == {"conversion": {"plain_parens_as_delimiters": True}}

    def test_set_unknown_key(self, isolated_config):
        result = runner.invoke(app, ["config", "set", "conversion.colourMath", "true"])
        assert result.exit_code == 1
        assert not isolated_config.exists()

    def test_set_non_boolean(self, isolated_config):
        result = runner.invoke(
            app, ["config", "set", "conversion.plain_parens_as_delimiters", "maybe"]
        )
        assert result.exit_code == 1
        assert not isolated_config.exists()

    def test_set_string_value(self, isolated_config):
        result = runner.invoke(app, ["config", "set", "files.pattern", "*.markdown"])
        assert result.exit_code == 0
        data = yaml.safe_load(isolated_config.read_text(encoding="utf-8"))
        assert data["files"]["pattern"] == "*.markdown"
