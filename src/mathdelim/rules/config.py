import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError
from pydantic.alias_generators import to_camel, to_snake

CONFIG_DIR = Path.home() / ".mathdelim"
USER_CONFIG_FILE = CONFIG_DIR / "config.yaml"


class ConfigError(ValueError):
    """Raised when merged configuration data does not validate."""


class ConversionOptions(BaseModel):
    """
    Independent switches for the conversion stages.

    Attributes use snake_case; the camelCase aliases match the settings
    record saved by editor integrations.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Host-side only: whether pasting converts automatically.
    enable_default_paste_conversion: StrictBool = True
    wrap_matrix_envs_in_display_math: StrictBool = True
    plain_parens_as_delimiters: StrictBool = False
    plain_brackets_as_delimiters: StrictBool = False
    convert_bare_inline_latex: StrictBool = False
    wrap_bare_math_single_lines: StrictBool = False


class FilesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pattern: str = "*.md"
    exclude_dirs: List[str] = Field(
        default_factory=lambda: [".git", ".obsidian", ".trash", "node_modules"]
    )


class ReportConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    path: str = "mathdelim-report.json"


class Config(BaseModel):
    model_config = ConfigDict(extra="forbid")

    conversion: ConversionOptions = Field(default_factory=ConversionOptions)
    files: FilesConfig = Field(default_factory=FilesConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)


def normalize_option_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Accept both ``plainParensAsDelimiters`` and ``plain_parens_as_delimiters``."""
    return {to_snake(key): value for key, value in data.items()}


def load_defaults() -> Dict[str, Any]:
    """Load default configuration from the package."""
    base_path = Path(__file__).parent.parent
    default_path = base_path / "defaults" / "config.yaml"

    if default_path.exists():
        with open(default_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


def load_user_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load user configuration from ~/.mathdelim/config.yaml."""
    path = path or USER_CONFIG_FILE
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


def save_user_config(data: Dict[str, Any], path: Optional[Path] = None) -> Path:
    path = path or USER_CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path


def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries."""
    result = base.copy()
    for k, v in update.items():
        if isinstance(v, dict) and k in result and isinstance(result[k], dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def build_config(data: Dict[str, Any]) -> Config:
    data = dict(data)
    if isinstance(data.get("conversion"), dict):
        data["conversion"] = normalize_option_keys(data["conversion"])
    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def load_config(user_file: Optional[Path] = None) -> Config:
    """Load and merge configuration from defaults and user overrides."""
    config_data = load_defaults()
    user_data = load_user_config(user_file)
    if isinstance(user_data.get("conversion"), dict):
        user_data["conversion"] = normalize_option_keys(user_data["conversion"])
    merged_data = deep_merge(config_data, user_data)
    return build_config(merged_data)
