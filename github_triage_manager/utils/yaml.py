"""Contains utility functions for working with YAML files."""

from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

yaml = YAML(typ="safe")


def load_yaml_file(path: Path) -> Any:
    """Loads a YAML file and returns its content as plain Python objects."""
    with open(path, encoding="utf-8") as f:
        return yaml.load(f)


def create_round_trip_yaml() -> YAML:
    """Creates a YAML object that preserves comments and key order when rewriting a file."""
    round_trip_yaml = YAML()
    round_trip_yaml.default_flow_style = False
    round_trip_yaml.indent(mapping=2, sequence=4, offset=2)  # type: ignore[attr-defined]
    round_trip_yaml.width = 4096
    round_trip_yaml.preserve_quotes = True
    return round_trip_yaml


def load_yaml_file_round_trip(path: Path) -> Any:
    """Loads a YAML file into ruamel's comment-preserving structures."""
    with open(path, encoding="utf-8") as f:
        return create_round_trip_yaml().load(f)


def dump_yaml_to_file(data: Any, file_path: Path) -> None:
    """Dumps data to a YAML file, keeping any comments carried by round-trip structures."""
    with open(file_path, "w", encoding="utf-8") as f:
        create_round_trip_yaml().dump(data, f)
