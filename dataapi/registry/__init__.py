"""
Entity registry for the tabular data API.

This module maps logical entity names to tables or raw queries.
"""

from .entities import (
    EntityMeta,
    EntityTarget,
    Registry,
    VIEWS_SCHEMA,
    parse_object_name,
)

__all__ = [
    "EntityMeta",
    "EntityTarget",
    "Registry",
    "VIEWS_SCHEMA",
    "parse_object_name",
]
