"""Purge pass: delete store documents matching a predicate, then rebuild."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sf_catalog.maintenance.rebuild import rebuild_indexes
from sf_catalog.output.global_index_builder import GlobalIndexBuilder
from sf_catalog.store.object_store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class PurgeResult:
    """What a purge removed (or, on a dry run, would remove)."""

    files_deleted: list[str] = field(default_factory=list)
    index_entries_removed: list[str] = field(default_factory=list)
    cloud_indexes_adjusted: list[str] = field(default_factory=list)
    dry_run: bool = False


def purge(
    root: str,
    predicate: Callable[[str], bool],
    dry_run: bool = False,
    version: str | None = None,
    pretty: bool = True,
) -> PurgeResult:
    """Delete every stored object whose name satisfies ``predicate``.

    Files are deleted first and the indexes are then rebuilt from what is
    left, so an interrupted purge is repaired by running the rebuild alone.
    """
    store = ObjectStore(root)
    doomed = [name for name in store.iter_names() if predicate(name)]

    if dry_run:
        previous = GlobalIndexBuilder(root).load() or {}
        indexed = set(previous.get('objects', {}))
        return PurgeResult(
            files_deleted=[store.relative_path(n) for n in doomed],
            index_entries_removed=sorted(n for n in indexed if predicate(n)),
            dry_run=True,
        )

    deleted = []
    for name in doomed:
        if store.delete_object(name):
            deleted.append(store.relative_path(name))
    logger.info('Purged %d object document(s)', len(deleted))

    rebuilt = rebuild_indexes(root, version=version, pretty=pretty)
    return PurgeResult(
        files_deleted=deleted,
        index_entries_removed=rebuilt.entries_removed,
        cloud_indexes_adjusted=rebuilt.clouds_written,
    )
