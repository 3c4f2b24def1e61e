"""Additive merge of an incoming object record into the stored one.

Nothing already captured is ever dropped: incoming values only add to or
overwrite existing values when they are concretely supplied. The merge is
idempotent, so re-running a batch (or resuming after an interruption)
converges on the same documents.
"""

import copy

from sf_catalog.config import DEFAULT_CLOUD
from sf_catalog.domain.models import FieldDescriptor, ObjectRecord, is_provided
from sf_catalog.type_normalizer import TypeNormalizer


def merge_records(existing: ObjectRecord | None, incoming: ObjectRecord) -> ObjectRecord:
    """Merge ``incoming`` into ``existing`` and return a new record."""
    if existing is None:
        return _new_record(incoming)

    merged = copy.deepcopy(existing)
    if _is_empty(incoming):
        return merged

    if incoming.properties:
        for name, descriptor in incoming.properties.items():
            current = merged.properties.get(name)
            if current is None:
                merged.properties[name] = _complete_field(descriptor)
            else:
                merged.properties[name] = merge_fields(current, descriptor)

    if is_provided(incoming.description):
        merged.description = incoming.description
    if is_provided(incoming.source_url):
        merged.source_url = incoming.source_url
    if is_provided(incoming.module):
        merged.module = incoming.module
    if is_provided(incoming.access_rules):
        merged.access_rules = copy.deepcopy(incoming.access_rules)
    for key, value in incoming.extras.items():
        if is_provided(value):
            merged.extras[key] = copy.deepcopy(value)

    merged.clouds = merge_clouds(existing, incoming)
    return merged


def merge_fields(existing: FieldDescriptor, incoming: FieldDescriptor) -> FieldDescriptor:
    """Overlay the supplied keys of ``incoming`` onto ``existing``.

    A docs-only type never replaces the type of a describe-enriched field.
    """
    merged = FieldDescriptor(
        type=existing.type,
        description=existing.description,
        attributes=copy.deepcopy(existing.attributes),
    )
    if is_provided(incoming.type) and incoming.tier >= existing.tier:
        merged.type = incoming.type
    if is_provided(incoming.description):
        merged.description = incoming.description
    for key, value in incoming.attributes.items():
        if value is not None:
            merged.attributes[key] = copy.deepcopy(value)
    if merged.type is None:
        merged.type = TypeNormalizer.DEFAULT_TYPE
    return merged


def merge_clouds(existing: ObjectRecord | None, incoming: ObjectRecord) -> list[str]:
    """Sorted union of both records' clouds and modules."""
    clouds: set[str] = set()
    if existing is not None:
        clouds.update(existing.clouds or [])
        if not existing.clouds and existing.module:
            clouds.add(existing.module)
    clouds.update(c for c in incoming.clouds if c)
    if incoming.module:
        clouds.add(incoming.module)
    return sorted(clouds)


def _is_empty(record: ObjectRecord) -> bool:
    return not (
        record.properties
        or is_provided(record.description)
        or is_provided(record.source_url)
        or is_provided(record.module)
        or is_provided(record.access_rules)
        or any(c for c in record.clouds)
        or any(is_provided(v) for v in record.extras.values())
    )


def _new_record(incoming: ObjectRecord) -> ObjectRecord:
    record = copy.deepcopy(incoming)
    record.properties = {k: _complete_field(v) for k, v in record.properties.items()}
    if not record.module:
        record.module = record.clouds[0] if record.clouds else DEFAULT_CLOUD
    record.clouds = merge_clouds(None, record)
    return record


def _complete_field(descriptor: FieldDescriptor) -> FieldDescriptor:
    return FieldDescriptor(
        type=descriptor.type or TypeNormalizer.DEFAULT_TYPE,
        description=descriptor.description if descriptor.description is not None else '',
        attributes={k: copy.deepcopy(v) for k, v in descriptor.attributes.items() if v is not None},
    )
