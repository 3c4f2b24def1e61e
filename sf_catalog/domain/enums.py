"""Domain enums for the object catalog."""
from enum import IntEnum


class ProvenanceTier(IntEnum):
    """How much is known about a field. Ordered: a merge never lowers it."""
    DOCS_ONLY = 1
    DESCRIBE_ENRICHED = 2
