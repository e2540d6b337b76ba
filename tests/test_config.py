import pytest
import yaml
from pydantic import ValidationError

from mathdelim.rules.config import (
    Config,
    ConfigError,
    ConversionOptions,
    build_config,
    deep_merge,
    load_config,
    load_defaults,
    save_user_config,
)


class TestConversionOptions:
    def test_defaults(self):
        options = ConversionOptions()
        assert options.enable_default_paste_conversion is True
        assert options.wrap_matrix_envs_in_display_math is True
        assert options.plain_parens_as_delimiters is False
        assert options.plain_brackets_as_delimiters is False
        assert options.convert_bare_inline_latex is False
        assert options.wrap_bare_math_single_lines is False

    def test_camel_case_aliases(self):
        options = ConversionOptions.model_validate({"plainParensAsDelimiters": True})
        assert options.plain_parens_as_delimiters is True

    def test_frozen(self):
        options = ConversionOptions()
        with pytest.raises(ValidationError):
            options.plain_parens_as_delimiters = True

    def test_rejects_non_boolean(self):
        with pytest.raises(ValidationError):
            ConversionOptions(plain_parens_as_delimiters="maybe")

    def test_rejects_unknown_option(self):
        with pytest.raises(ValidationError):
            ConversionOptions.model_validate({"colourMath": True})


class TestLoading:
    def test_packaged_defaults(self):
        data = load_defaults()
        assert data["conversion"]["wrap_matrix_envs_in_display_math"] is True
        assert data["files"]["pattern"] == "*.md"

    def test_defaults_build(self):
        config = build_config(load_defaults())
        assert config == Config()

    def test_user_file_overrides(self, tmp_path):
        user_file = tmp_path / "config.yaml"
        user_file.write_text(
            yaml.safe_dump({"conversion": {"plainParensAsDelimiters": True}}),
            encoding="utf-8",
        )
        config = load_config(user_file)
        assert config.conversion.plain_parens_as_delimiters is True
        assert config.conversion.wrap_matrix_envs_in_display_math is True
        assert config.files.exclude_dirs == [".git", ".obsidian", ".trash", "node_modules"]

    def test_missing_user_file(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml") == Config()

    def test_unknown_key_rejected(self, tmp_path):
        user_file = tmp_path / "config.yaml"
        user_file.write_text("report:\n  colour: red\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(user_file)

    def test_save_user_config(self, tmp_path):
        path = save_user_config({"report": {"enabled": True}}, tmp_path / "sub" / "c.yaml")
        assert yaml.safe_load(path.read_text(encoding="utf-8")) == {"report": {"enabled": True}}


def test_deep_merge():
    base = {"a": {"x": 1, "y": 2}, "b": 1}
    merged = deep_merge(base, {"a": {"y": 3}, "c": 4})
    assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
    assert base["a"]["y"] == 2
