"""Snapshot loading for the CLI and other callers.

A snapshot document is YAML (or JSON, which PyYAML also reads) with
top-level keys: providers, benchmarks, actuals, adjustments.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import InvalidInput
from .schemas import CompensationSnapshot

logger = logging.getLogger(__name__)


def parse_snapshot(data: dict) -> CompensationSnapshot:
    """Validate a snapshot dict.

    Raises:
        InvalidInput: With one line per validation problem
    """
    try:
        return CompensationSnapshot.model_validate(data or {})
    except ValidationError as e:
        problems = "\n  ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidInput(f"Invalid snapshot:\n  {problems}")


def load_snapshot(path: Path) -> CompensationSnapshot:
    """Load and validate a snapshot file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidInput: If the file is not valid YAML/JSON or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidInput(f"Cannot parse {path}: {e}")

    if data is not None and not isinstance(data, dict):
        raise InvalidInput(f"{path} must contain a mapping at the top level")

    snapshot = parse_snapshot(data)
    logger.debug(
        f"Loaded {path.name}: {len(snapshot.providers)} providers, "
        f"{len(snapshot.benchmarks)} benchmarks, {len(snapshot.actuals)} actuals, "
        f"{len(snapshot.adjustments)} adjustments"
    )
    return snapshot
