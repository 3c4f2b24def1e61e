"""Removes custom fields (``__c``/``__r``) from documents already in the store."""

import logging
from dataclasses import dataclass, field

from sf_catalog.exclusion import ExclusionPolicy
from sf_catalog.maintenance.rebuild import RebuildResult, rebuild_indexes
from sf_catalog.output.json_writer import JSONWriter
from sf_catalog.store.object_store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class FieldCleanupResult:
    """Fields removed per object (or, on a dry run, that would be removed)."""

    fields_removed: dict[str, list[str]] = field(default_factory=dict)
    dry_run: bool = False
    rebuild: RebuildResult | None = None

    @property
    def total_removed(self) -> int:
        return sum(len(names) for names in self.fields_removed.values())


def remove_custom_fields(
    root: str,
    policy: ExclusionPolicy | None = None,
    dry_run: bool = False,
    version: str | None = None,
    pretty: bool = True,
) -> FieldCleanupResult:
    """Drop every stored field the policy would not admit, then rebuild the indexes."""
    policy = policy or ExclusionPolicy()
    store = ObjectStore(root, JSONWriter(pretty=pretty))
    result = FieldCleanupResult(dry_run=dry_run)

    for _, record in store.iter_records():
        doomed = sorted(name for name in record.properties if not policy.should_admit_field(name))
        if not doomed:
            continue
        result.fields_removed[record.name] = doomed
        if dry_run:
            continue
        for name in doomed:
            del record.properties[name]
        store.write_object(record)
        logger.debug('%s: removed %d custom field(s)', record.name, len(doomed))

    if dry_run:
        return result

    logger.info(
        'Removed %d custom field(s) from %d object(s)',
        result.total_removed, len(result.fields_removed),
    )
    result.rebuild = rebuild_indexes(root, version=version, pretty=pretty)
    return result
