"""Error taxonomy for lookupcache.

Store failures surface as StoreError. DuplicateNameError is raised by stores
when a create loses a uniqueness race; InternCache recovers from it and it
never reaches callers of ``id_for``.
"""

from __future__ import annotations


class LookupCacheError(Exception):
    """Base class for all lookupcache errors."""

    pass


class NotFoundError(LookupCacheError, KeyError):
    """No persisted entry exists for the requested id."""

    def __init__(self, table: str, entry_id: int):
        self.table = table
        self.entry_id = entry_id
        super().__init__(f"No entry with id {entry_id} in lookup table '{table}'")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return self.args[0]


class StoreError(LookupCacheError):
    """Underlying store call failed (connectivity, timeout, unexpected constraint)."""

    pass


class DuplicateNameError(LookupCacheError):
    """A concurrent create already used this name."""

    def __init__(self, table: str, name: str):
        self.table = table
        self.name = name
        super().__init__(f"Name {name!r} already exists in lookup table '{table}'")


class InvalidNameError(LookupCacheError, ValueError):
    """Lookup names must be non-empty strings."""

    pass


class ConfigurationError(LookupCacheError):
    """Lookup table declarations are invalid or missing."""

    pass
