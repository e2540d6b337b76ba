"""Shared fixtures for conversion tests."""

from unittest.mock import patch

import pytest

from mathdelim.rules.config import ConversionOptions


@pytest.fixture
def default_options():
    return ConversionOptions()


@pytest.fixture
def all_options():
    """Every optional stage switched on."""
    return ConversionOptions(
        wrap_matrix_envs_in_display_math=True,
        plain_parens_as_delimiters=True,
        plain_brackets_as_delimiters=True,
        convert_bare_inline_latex=True,
        wrap_bare_math_single_lines=True,
    )


@pytest.fixture
def options_with():
    """Factory: default options with some flags overridden."""

    def _factory(**flags):
        return ConversionOptions(**flags)

    return _factory


@pytest.fixture
def isolated_config(tmp_path):
    """Point the CLI at a config file under tmp_path."""
    config_file = tmp_path / "home" / "config.yaml"
    with patch("mathdelim.cli.CONFIG_FILE", config_file):
        yield config_file
