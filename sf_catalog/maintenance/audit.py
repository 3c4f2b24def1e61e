"""Consistency checks between the store, ``index.json`` and the cloud indexes.

Audit findings are reports; ``rebuild_indexes`` repairs every one of them
except unreadable store documents.
"""

import logging
import os
from dataclasses import dataclass

from sf_catalog.domain.models import ObjectRecord
from sf_catalog.output.cloud_index_builder import CloudIndexBuilder, entry_clouds
from sf_catalog.output.global_index_builder import GlobalIndexBuilder
from sf_catalog.store.object_store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class AuditCheck:
    """Result of one consistency check."""

    name: str
    ok: bool
    detail: str


@dataclass
class _Snapshot:
    root: str
    index: dict
    records: dict[str, ObjectRecord]
    clouds: dict[str, dict]

    @property
    def entries(self) -> dict[str, dict]:
        return self.index.get('objects', {})


def _load_snapshot(root: str) -> _Snapshot:
    store = ObjectStore(root)
    return _Snapshot(
        root=root,
        index=GlobalIndexBuilder(root).load() or {},
        records={record.name: record for _, record in store.iter_records()},
        clouds=CloudIndexBuilder(root).load_all(),
    )


def _sample(names: list[str], limit: int = 5) -> str:
    shown = ', '.join(names[:limit])
    return f'{shown}, …' if len(names) > limit else shown


def check_index_files_exist(snap: _Snapshot) -> tuple[bool, str]:
    """Every index entry references an existing store document."""
    missing = sorted(
        name for name, entry in snap.entries.items()
        if not os.path.isfile(os.path.join(snap.root, *str(entry.get('file', '')).split('/')))
    )
    if missing:
        return False, f'{len(missing)} entries without a file: {_sample(missing)}'
    return True, f'{len(snap.entries)} entries resolve'


def check_store_indexed(snap: _Snapshot) -> tuple[bool, str]:
    """Every store document has an index entry."""
    unindexed = sorted(set(snap.records) - set(snap.entries))
    if unindexed:
        return False, f'{len(unindexed)} unindexed documents: {_sample(unindexed)}'
    return True, f'{len(snap.records)} documents indexed'


def check_field_counts(snap: _Snapshot) -> tuple[bool, str]:
    """fieldCount matches the number of properties in the store document."""
    wrong = sorted(
        name for name, record in snap.records.items()
        if name in snap.entries and snap.entries[name].get('fieldCount') != record.field_count
    )
    if wrong:
        return False, f'{len(wrong)} stale field counts: {_sample(wrong)}'
    return True, 'field counts match'


def check_cloud_counts(snap: _Snapshot) -> tuple[bool, str]:
    """Each cloud document's objectCount equals the length of its objects list."""
    wrong = sorted(
        cloud for cloud, doc in snap.clouds.items()
        if doc.get('objectCount') != len(doc.get('objects', []))
    )
    if wrong:
        return False, f'objectCount mismatch in: {_sample(wrong)}'
    return True, f'{len(snap.clouds)} cloud files consistent'


def check_cloud_members(snap: _Snapshot) -> tuple[bool, str]:
    """Cloud members are indexed and tagged with that cloud."""
    problems = []
    for cloud, doc in snap.clouds.items():
        for name in doc.get('objects', []):
            entry = snap.entries.get(name)
            if entry is None or cloud not in entry_clouds(entry):
                problems.append(f'{cloud}:{name}')
    if problems:
        return False, f'{len(problems)} untagged members: {_sample(sorted(problems))}'
    return True, 'cloud members tagged'


def check_total_objects(snap: _Snapshot) -> tuple[bool, str]:
    """totalObjects equals the number of index entries."""
    total = snap.index.get('totalObjects')
    actual = len(snap.entries)
    return total == actual, f'totalObjects={total}, entries={actual}'


CHECKS = [
    ('Index entries resolve', check_index_files_exist),
    ('Store documents indexed', check_store_indexed),
    ('Field counts', check_field_counts),
    ('Cloud object counts', check_cloud_counts),
    ('Cloud membership', check_cloud_members),
    ('Total objects', check_total_objects),
]


def audit_catalog(root: str) -> list[AuditCheck]:
    snap = _load_snapshot(root)
    results = []
    for name, check_fn in CHECKS:
        try:
            ok, detail = check_fn(snap)
        except Exception as e:
            logger.exception('Audit check %r failed to run', name)
            ok, detail = False, f'ERROR: {e}'
        results.append(AuditCheck(name=name, ok=ok, detail=detail))
    return results
