"""Loading resource configuration documents.

A configuration document is a YAML or JSON mapping of resource attribute
names to values, for example::

    file: image.pkr.hcl
    force: true
    variables:
      env: prod
    additional_params:
      - -debug
"""

import json
from pathlib import Path
from typing import Any

import yaml

from packer_provider.resources.schema import ConfigurationError


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as a dictionary.

    Raises:
        ConfigurationError: If the file cannot be read or is not a valid
            YAML mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a YAML mapping, got {type(data).__name__}"
        )
    return data


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file and return its contents as a dict.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed JSON content as a dictionary.

    Raises:
        ConfigurationError: If the file cannot be read or is not a valid
            JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a JSON object, got {type(data).__name__}"
        )
    return data


def load_config_document(path: Path) -> dict[str, Any]:
    """Load a configuration document, choosing the parser by extension.

    ``.json`` files are parsed as JSON; anything else as YAML.

    Args:
        path: Path to the document.

    Returns:
        Raw attribute mapping (not yet validated).

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")
    if path.suffix.lower() == ".json":
        return load_json(path)
    return load_yaml(path)


__all__ = ["load_config_document", "load_json", "load_yaml"]
