"""YAML-driven lookup table declarations.

Example ``config/lookup_tables.yaml``::

    lookup_tables:
      - attribute: car_type        # -> car_types(id, name)
      - name: fuel_kinds
        name_column: label
        name_max_length: 64
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from lookupcache.exceptions import ConfigurationError
from lookupcache.models import LookupTable


def parse_table(raw: Any) -> LookupTable:
    """Build a LookupTable from one YAML mapping.

    Raises:
        ConfigurationError: If the mapping is not a valid declaration
    """
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Lookup table declaration must be a mapping, got {raw!r}")

    fields = dict(raw)
    attribute = fields.pop("attribute", None)
    try:
        if attribute is not None:
            if "name" in fields:
                raise ConfigurationError(
                    f"Declare either 'attribute' or 'name' for {attribute!r}, not both"
                )
            return LookupTable.for_attribute(attribute, **fields)
        return LookupTable(**fields)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid lookup table declaration {raw!r}: {e}") from e


def load_tables(config_path: Path) -> list[LookupTable]:
    """Load lookup table declarations from YAML.

    Raises:
        ConfigurationError: If the file is missing, not valid YAML, or declares
            the same table twice
    """
    if not config_path.exists():
        raise ConfigurationError(f"Lookup table config not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    raw_tables = config.get("lookup_tables") if isinstance(config, dict) else None
    if not raw_tables:
        raise ConfigurationError(f"No lookup_tables defined in {config_path}")

    tables: list[LookupTable] = []
    seen: set[str] = set()
    for raw in raw_tables:
        table = parse_table(raw)
        if table.name in seen:
            raise ConfigurationError(f"Lookup table '{table.name}' declared twice")
        seen.add(table.name)
        tables.append(table)

    return tables
