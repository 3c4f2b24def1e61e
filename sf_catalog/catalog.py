"""Single-writer view over a catalog directory.

A ``Catalog`` loads ``index.json`` once, admits records one at a time
(read → merge → write → upsert index entry) and flushes the Global Index
and the cloud index files of touched clouds at checkpoints.
"""

import logging

from sf_catalog.domain.models import ObjectRecord
from sf_catalog.merger import merge_records
from sf_catalog.output.cloud_index_builder import CloudIndexBuilder, entry_clouds
from sf_catalog.output.global_index_builder import GlobalIndexBuilder
from sf_catalog.output.json_writer import JSONWriter
from sf_catalog.store.object_store import ObjectStore

logger = logging.getLogger(__name__)


class Catalog:
    """Incremental maintenance of the store and its indexes."""

    def __init__(self, root: str, version: str | None = None, pretty: bool = True) -> None:
        writer = JSONWriter(pretty=pretty)
        self.store = ObjectStore(root, writer)
        self._index_builder = GlobalIndexBuilder(root, writer)
        self._cloud_builder = CloudIndexBuilder(root, writer)

        self._loaded_index = self._index_builder.load()
        self._objects: dict[str, dict] = dict((self._loaded_index or {}).get('objects', {}))
        self._version = GlobalIndexBuilder.resolve_version(version, self._loaded_index)
        self._listed_in = CloudIndexBuilder.memberships(self._cloud_builder.load_all())
        self._touched_clouds: set[str] = set()
        self._dirty = False

    def admit(self, incoming: ObjectRecord) -> ObjectRecord:
        """Merge ``incoming`` into the store and upsert its index entry."""
        existing = self.store.read_object(incoming.name)
        merged = merge_records(existing, incoming)
        rel_path = self.store.write_object(merged)

        previous = self._objects.get(merged.name)
        # Tags held only by the previous entry or a cloud file are kept
        kept = set(entry_clouds(previous or {})) | self._listed_in.get(merged.name, set())
        entry = GlobalIndexBuilder.build_entry(merged, rel_path, previous, kept)
        self._touched_clouds.update(entry['clouds'])
        self._objects[merged.name] = entry
        self._dirty = True

        logger.debug('Admitted %s (%d fields) → %s', merged.name, merged.field_count, rel_path)
        return merged

    def flush(self) -> bool:
        """Write touched cloud files and the Global Index; returns True if anything changed."""
        if not self._dirty and self._loaded_index is not None:
            return False

        existing_docs = self._cloud_builder.load_all()
        docs = self._cloud_builder.build(self._objects, existing_docs, only_clouds=self._touched_clouds)
        written_clouds = self._cloud_builder.write_all(docs, existing_docs)

        all_docs = {**existing_docs, **docs}
        index = GlobalIndexBuilder.assemble(
            self._objects, CloudIndexBuilder.summaries(all_docs), self._version,
        )
        wrote_index = self._index_builder.write(index, self._loaded_index)

        self._loaded_index = index
        self._touched_clouds.clear()
        self._dirty = False
        return wrote_index or bool(written_clouds)

