"""SQLAlchemy table definitions for declared lookup tables.

Each ``LookupTable`` declaration maps to one ``Table`` with an integer
primary key and a unique name column. Uniqueness on the name column is what
arbitrates concurrent find-or-create races between processes.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import Column, Integer, MetaData, String, Table, UniqueConstraint

from lookupcache.exceptions import ConfigurationError
from lookupcache.models import LookupTable


def _columns(table: Table) -> tuple[str, ...]:
    return tuple(column.name for column in table.columns)


def build_table(metadata: MetaData, lookup_table: LookupTable) -> Table:
    """Return the ``Table`` for ``lookup_table``, defining it on first use."""
    existing = metadata.tables.get(lookup_table.name)
    if existing is not None:
        if _columns(existing) != (lookup_table.id_column, lookup_table.name_column):
            raise ConfigurationError(
                f"Lookup table '{lookup_table.name}' is already defined with columns "
                f"{_columns(existing)}, not {(lookup_table.id_column, lookup_table.name_column)}"
            )
        return existing

    return Table(
        lookup_table.name,
        metadata,
        Column(lookup_table.id_column, Integer, primary_key=True, autoincrement=True),
        Column(
            lookup_table.name_column,
            String(lookup_table.name_max_length),
            nullable=False,
        ),
        UniqueConstraint(
            lookup_table.name_column,
            name=f"uq_{lookup_table.name}_{lookup_table.name_column}",
        ),
    )


def build_metadata(lookup_tables: Iterable[LookupTable]) -> MetaData:
    """Create a fresh MetaData holding every declared lookup table."""
    metadata = MetaData()
    for lookup_table in lookup_tables:
        build_table(metadata, lookup_table)
    return metadata
