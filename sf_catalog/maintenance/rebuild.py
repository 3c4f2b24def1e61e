"""Full re-derivation of the Global Index and cloud indexes from the store."""

import logging
from dataclasses import dataclass, field

from sf_catalog.output.cloud_index_builder import CloudIndexBuilder
from sf_catalog.output.global_index_builder import GlobalIndexBuilder
from sf_catalog.output.json_writer import JSONWriter
from sf_catalog.store.object_store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class RebuildResult:
    """Outcome of a rebuild pass."""

    total_objects: int
    total_clouds: int
    entries_removed: list[str] = field(default_factory=list)
    clouds_written: list[str] = field(default_factory=list)
    index_written: bool = False

    @property
    def changed(self) -> bool:
        return self.index_written or bool(self.clouds_written)


def rebuild_indexes(root: str, version: str | None = None, pretty: bool = True) -> RebuildResult:
    """Recompute every index entry and cloud file from the store.

    Cloud tags come from each record's clouds plus any cloud file that lists
    the object. Enrichment already in the previous index entry is kept.
    Entries without a store document are dropped. Running it twice in a row
    writes nothing the second time.
    """
    writer = JSONWriter(pretty=pretty)
    store = ObjectStore(root, writer)
    index_builder = GlobalIndexBuilder(root, writer)
    cloud_builder = CloudIndexBuilder(root, writer)

    previous_index = index_builder.load()
    previous_objects = (previous_index or {}).get('objects', {})
    existing_docs = cloud_builder.load_all()

    listed_in = CloudIndexBuilder.memberships(existing_docs)

    objects: dict[str, dict] = {}
    for rel_path, record in store.iter_records():
        objects[record.name] = GlobalIndexBuilder.build_entry(
            record, rel_path, previous_objects.get(record.name), listed_in.get(record.name, set()),
        )

    removed = sorted(set(previous_objects) - set(objects))
    for name in removed:
        logger.info('Dropping index entry with no store document: %s', name)

    docs = cloud_builder.build(objects, existing_docs)
    clouds_written = cloud_builder.write_all(docs, existing_docs)

    index = GlobalIndexBuilder.assemble(
        objects,
        CloudIndexBuilder.summaries(docs),
        GlobalIndexBuilder.resolve_version(version, previous_index),
    )
    index_written = index_builder.write(index, previous_index)

    return RebuildResult(
        total_objects=len(objects),
        total_clouds=len(docs),
        entries_removed=removed,
        clouds_written=clouds_written,
        index_written=index_written,
    )
