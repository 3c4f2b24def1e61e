"""Alphabetically sharded per-object document store.

Layout::

    root/
    └── objects/{FirstLetterUpper}/{ObjectName}.json   →   {"<ObjectName>": {...}}

The single-key envelope is part of the published format and must be kept.
"""

import logging
import os
from collections.abc import Iterator

from sf_catalog.config import OBJECTS_DIR
from sf_catalog.domain.models import ObjectRecord
from sf_catalog.output.json_writer import JSONWriter

logger = logging.getLogger(__name__)


class ObjectStoreError(Exception):
    """A store document does not have the expected envelope."""
    pass


class ObjectStore:
    """System of record for object definitions."""

    def __init__(self, root: str, writer: JSONWriter | None = None) -> None:
        self._root = root
        self._writer = writer or JSONWriter()

    @staticmethod
    def relative_path(name: str) -> str:
        """Catalog-relative path of an object document (always '/'-separated)."""
        if not name:
            raise ObjectStoreError('Object name must not be empty')
        return f'{OBJECTS_DIR}/{name[0].upper()}/{name}.json'

    def path_for(self, name: str) -> str:
        return os.path.join(self._root, *self.relative_path(name).split('/'))

    def read_object(self, name: str) -> ObjectRecord | None:
        path = self.path_for(name)
        if not os.path.isfile(path):
            return None
        return self._load(path, name)

    def write_object(self, record: ObjectRecord) -> str:
        """Overwrite the document for ``record.name``; returns its relative path."""
        rel_path = self.relative_path(record.name)
        self._writer.write(self.path_for(record.name), {record.name: record.to_dict()})
        return rel_path

    def delete_object(self, name: str) -> bool:
        path = self.path_for(name)
        if not os.path.isfile(path):
            return False
        os.remove(path)
        return True

    def iter_names(self) -> list[str]:
        """All stored object names, sorted."""
        objects_dir = os.path.join(self._root, OBJECTS_DIR)
        if not os.path.isdir(objects_dir):
            return []
        names = []
        for shard in sorted(os.listdir(objects_dir)):
            shard_dir = os.path.join(objects_dir, shard)
            if not os.path.isdir(shard_dir):
                continue
            for file in os.listdir(shard_dir):
                if file.endswith('.json') and not file.startswith('.'):
                    names.append(file[:-len('.json')])
        return sorted(names)

    def iter_records(self) -> Iterator[tuple[str, ObjectRecord]]:
        """Yield ``(relative_path, record)`` for every readable document."""
        for name in self.iter_names():
            try:
                record = self._load(self.path_for(name), name)
            except (ObjectStoreError, ValueError) as e:
                logger.warning('Skipping unreadable object document %s: %s', name, e)
                continue
            yield self.relative_path(name), record

    def _load(self, path: str, name: str) -> ObjectRecord:
        data = self._writer.read(path)
        if not isinstance(data, dict) or len(data) != 1:
            raise ObjectStoreError(f'{path}: expected a single-object envelope')
        key, body = next(iter(data.items()))
        if not isinstance(body, dict):
            raise ObjectStoreError(f'{path}: object body for {key} is not a JSON object')
        return ObjectRecord.from_dict(body, name=key or name)
