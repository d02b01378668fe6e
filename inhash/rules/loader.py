from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from inhash.rules.models import Rules


def load_rules(path: Path | str) -> Rules:
    """
    Load rules.yaml into a validated Rules model.

    An empty file yields the defaults. Raises FileNotFoundError when the file
    is missing, ValueError when the YAML or a section is invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Rules file must contain a mapping, got {type(data).__name__}")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e
