"""Configuration handling for the rfcpath CLI."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TypeGuard, cast

import typer

from rfcpath.output_format import OutputFormat
from rfcpath.query import is_valid_query


DEFAULT_CONFIG_NAME = ".rfcpath.json"

COMMAND_OPTION_NAMES = {
    "color_flag",
    "max_depth",
    "max_nodes_visited",
    "max_results",
    "offset",
    "out",
    "out_theme",
    "verbose",
}

VALIDATE_OPTION_NAMES = {"color_flag"}


CONFIG_DEFAULTS: dict[str, object] = {}
CONFIG_SAVED_QUERIES: dict[str, str] = {}


DEST_TO_OPTION_NAME: dict[str, str] = {
    "color_flag": "--color/--no-color",
    "max_depth": "--max-depth",
    "max_nodes_visited": "--max-nodes-visited",
    "max_results": "--max-results",
    "offset": "--offset",
    "out": "--out",
    "out_theme": "--out-theme",
    "verbose": "--verbose",
}

INT_OPTIONS: dict[str, tuple[str, int | None]] = {
    "--max-results": ("max_results", 0),
    "--offset": ("offset", 0),
    "--max-depth": ("max_depth", 1),
    "--max-nodes-visited": ("max_nodes_visited", 1),
}

BOOL_OPTIONS: dict[str, str] = {
    "--verbose": "verbose",
}

STR_OPTIONS: dict[str, str] = {
    "--out": "out",
    "--out-theme": "out_theme",
}


logger = logging.getLogger("rfcpath")


@dataclass
class LoadedCliConfig:
    """Fully parsed CLI config payload."""

    defaults: dict[str, object]
    saved_queries: dict[str, str]


def load_config(filepath: str) -> tuple[dict[str, object], bool]:
    """Load config from JSON file.

    Args:
        filepath: Path to config file

    Returns:
        Tuple of (config dict, malformed flag)
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return ({}, False)
    except OSError:
        return ({}, True)
    except json.JSONDecodeError:
        return ({}, True)

    if not isinstance(config, dict):
        return ({}, True)

    return (config, False)


def is_string_dict(value: object) -> TypeGuard[dict[str, str]]:
    """Check if value is dict[str, str]."""
    return isinstance(value, dict) and all(
        isinstance(key, str) and isinstance(item, str) for key, item in value.items()
    )


def parse_color_defaults(config: dict[str, object]) -> tuple[dict[str, object], bool]:
    """Parse color-related config defaults."""
    defaults: dict[str, object] = {}
    color_value = config.get("--color")
    no_color_value = config.get("--no-color")

    if "--color" in config and not isinstance(color_value, bool):
        return ({}, False)
    if "--no-color" in config and not isinstance(no_color_value, bool):
        return ({}, False)
    if color_value is True and no_color_value is True:
        return ({}, False)

    if color_value is True:
        defaults["color_flag"] = True
    if no_color_value is True:
        defaults["color_flag"] = False

    return (defaults, True)


def validate_int_option(value: object, min_value: int | None) -> int | None:
    """Validate integer option value."""
    if not isinstance(value, int) or isinstance(value, bool):
        return None
    if min_value is not None and value < min_value:
        return None
    return value


def validate_str_option(key: str, value: object) -> str | None:
    """Validate string option value."""
    if not isinstance(value, str) or not value.strip():
        return None
    if key == "--out" and value.strip().lower() not in {item.value for item in OutputFormat}:
        return None
    return value


def apply_config_entry(key: str, value: object, defaults: dict[str, object]) -> bool:
    """Apply a config entry to defaults if valid."""
    if key in INT_OPTIONS:
        dest, min_value = INT_OPTIONS[key]
        int_value = validate_int_option(value, min_value)
        if int_value is None:
            return False
        defaults[dest] = int_value
        return True

    if key in BOOL_OPTIONS:
        if not isinstance(value, bool):
            return False
        defaults[BOOL_OPTIONS[key]] = value
        return True

    if key in STR_OPTIONS:
        str_value = validate_str_option(key, value)
        if str_value is None:
            return False
        defaults[STR_OPTIONS[key]] = str_value
        return True

    return False


def parse_config_sections(
    raw_config: dict[str, object],
) -> tuple[dict[str, object], dict[str, str]] | None:
    """Parse top-level config sections.

    Accepted shape:
      {
        "defaults": {"--out": "nodes", ...},
        "queries": {"name": "$.jsonpath.query"}
      }
    """
    allowed_keys = {"defaults", "queries"}
    if any(key not in allowed_keys for key in raw_config):
        return None

    defaults_section = raw_config.get("defaults", {})
    if not isinstance(defaults_section, dict):
        return None

    queries_section = raw_config.get("queries", {})
    if not is_string_dict(queries_section):
        return None

    return (cast(dict[str, object], defaults_section), dict(queries_section))


def build_config_defaults(config: dict[str, object]) -> dict[str, object] | None:
    """Validate config values and build defaults.

    Args:
        config: Raw "defaults" section

    Returns:
        Defaults keyed by command parameter name, or None if malformed
    """
    defaults, color_valid = parse_color_defaults(config)
    if not color_valid:
        return None

    for key, value in config.items():
        if key in ("--color", "--no-color"):
            continue
        if not apply_config_entry(key, value, defaults):
            return None

    return defaults


def validate_saved_queries(queries: dict[str, str]) -> bool:
    """Check that every saved query has a usable name and parses."""
    return all(name.strip() and is_valid_query(text) for name, text in queries.items())


def parse_config_argument(argv: list[str]) -> str:
    """Parse only the --config argument from argv."""
    default = DEFAULT_CONFIG_NAME
    for idx, arg in enumerate(argv[1:], start=1):
        if arg == "--config" and idx + 1 < len(argv):
            return argv[idx + 1]
        if arg.startswith("--config="):
            return arg.split("=", 1)[1]
    return default


def load_cli_config(argv: list[str]) -> LoadedCliConfig:
    """Load config defaults and saved queries from the configured file path.

    Raises:
        typer.BadParameter: If the config file exists but is malformed
    """
    config_name = parse_config_argument(argv)
    config_path = Path(config_name)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_name
    config, load_error = load_config(str(config_path))

    if load_error:
        raise typer.BadParameter("Malformed config")

    config_sections = parse_config_sections(config)
    if config_sections is None:
        raise typer.BadParameter("Malformed config")

    defaults_config, saved_queries = config_sections

    defaults = build_config_defaults(defaults_config)
    if defaults is None:
        raise typer.BadParameter("Malformed config")

    if not validate_saved_queries(saved_queries):
        raise typer.BadParameter("Malformed config")

    filtered_defaults = {
        key: value for key, value in defaults.items() if key in COMMAND_OPTION_NAMES
    }
    return LoadedCliConfig(defaults=filtered_defaults, saved_queries=saved_queries)


def build_default_map(defaults: dict[str, object]) -> dict[str, dict[str, object]]:
    """Build Click default_map for Typer commands."""
    query_defaults = {key: value for key, value in defaults.items() if key != "verbose"}
    validate_defaults = {
        key: value for key, value in defaults.items() if key in VALIDATE_OPTION_NAMES
    }
    return {"query": query_defaults, "validate": validate_defaults}


def resolve_saved_query(query: str) -> str:
    """Return the saved query text for a config name, or query unchanged."""
    saved = CONFIG_SAVED_QUERIES.get(query)
    if saved is None:
        return query
    logger.info("Using saved query '%s': %s", query, saved)
    return saved


def log_applied_config_defaults(command_name: str) -> None:
    """Log config defaults loaded from config file."""
    if not logger.isEnabledFor(logging.INFO):
        return

    entries = [
        f"{DEST_TO_OPTION_NAME[dest]}={value!r}"
        for dest, value in sorted(CONFIG_DEFAULTS.items(), key=lambda item: item[0])
        if dest in DEST_TO_OPTION_NAME
    ]
    if entries:
        logger.info("Config defaults applied (%s): %s", command_name, ", ".join(entries))


def log_command_arguments(args: object, command_name: str) -> None:
    """Log all final argument values used to run a command."""
    if not logger.isEnabledFor(logging.INFO):
        return

    try:
        arg_items = vars(args).items()
    except TypeError:
        return

    entries = [
        f"{arg_name}={arg_value!r}"
        for arg_name, arg_value in sorted(arg_items, key=lambda item: item[0])
    ]
    logger.info("Command arguments (%s): %s", command_name, ", ".join(entries))
