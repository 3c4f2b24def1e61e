"""Shared key names for catalog documents.

Object documents, index entries and field descriptors are persisted with the
camelCase keys below; the dataclasses in ``models`` map them to attributes.
"""

# ── Field descriptor ─────────────────────────────────────────────────────

# Attributes only a live-schema describe supplies. Presence of any of them
# marks a field as DESCRIBE_ENRICHED.
ENRICHMENT_KEYS = frozenset({
    'format', 'enum', 'x-object', 'x-objects', 'maxLength', 'nullable',
    'readOnly', 'unique', 'externalId', 'autoNumber', 'calculated',
    'permissionable', 'multipleOf',
})

# ── Object record ────────────────────────────────────────────────────────

RECORD_CORE_KEYS = (
    'name', 'description', 'properties', 'module', 'clouds', 'sourceUrl', 'accessRules',
)

# ── Index entry ──────────────────────────────────────────────────────────

# Index key → object record key it is copied from when the record has a value
INDEX_ENRICHMENT_SOURCES: dict[str, str] = {
    'keyPrefix': 'keyPrefix',
    'label': 'label',
    'sourceUrl': 'sourceUrl',
    'icon': 'iconUrl',
    'accessRules': 'accessRules',
}
