"""Builds the monolithic ``index.json``: a flat name → entry lookup for every stored object."""

import logging
import os
from datetime import datetime, timezone
from typing import Any

from sf_catalog.config import DEFAULT_CLOUD, INDEX_FILE
from sf_catalog.diff_hash import DiffHashService
from sf_catalog.domain.constants import INDEX_ENRICHMENT_SOURCES
from sf_catalog.domain.models import ObjectRecord, is_provided
from sf_catalog.output.json_writer import JSONWriter

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = 'unknown'


class GlobalIndexBuilder:
    """Loads, derives and writes the Global Index.

    Entries are kept as plain dicts so that entries the current run does not
    touch are written back exactly as they were loaded.
    """

    def __init__(self, root: str, writer: JSONWriter | None = None) -> None:
        self._root = root
        self._writer = writer or JSONWriter()

    @property
    def path(self) -> str:
        return os.path.join(self._root, INDEX_FILE)

    def load(self) -> dict[str, Any] | None:
        """The on-disk index, or None when there is none yet."""
        if not os.path.isfile(self.path):
            return None
        data = self._writer.read(self.path)
        if not isinstance(data, dict):
            logger.warning('%s is not a JSON object; starting from an empty index', self.path)
            return None
        data.setdefault('objects', {})
        data.setdefault('clouds', {})
        return data

    @staticmethod
    def build_entry(
        record: ObjectRecord,
        rel_path: str,
        previous: dict[str, Any] | None = None,
        extra_clouds: list[str] | set[str] = (),
    ) -> dict[str, Any]:
        """Index entry for a just-written record, layered over its previous entry."""
        previous = previous or {}
        entry: dict[str, Any] = {**previous}
        entry['cloud'] = record.module or previous.get('cloud') or DEFAULT_CLOUD
        entry['file'] = rel_path
        entry['description'] = record.description or previous.get('description', '')
        entry['fieldCount'] = record.field_count

        data = record.to_dict()
        for entry_key, record_key in INDEX_ENRICHMENT_SOURCES.items():
            value = data.get(record_key)
            if is_provided(value):
                entry[entry_key] = value

        clouds = set(record.clouds) | set(extra_clouds)
        clouds.add(entry['cloud'])
        entry['clouds'] = sorted(c for c in clouds if c)
        return entry

    @staticmethod
    def assemble(
        objects: dict[str, dict],
        cloud_section: dict[str, dict],
        version: str,
    ) -> dict[str, Any]:
        return {
            'generated': datetime.now(timezone.utc).isoformat(),
            'version': version,
            'totalObjects': len(objects),
            'totalClouds': len(cloud_section),
            'objects': {name: objects[name] for name in sorted(objects)},
            'clouds': cloud_section,
        }

    @staticmethod
    def resolve_version(requested: str | None, existing: dict[str, Any] | None) -> str:
        if requested:
            return requested
        if existing and existing.get('version'):
            return existing['version']
        return UNKNOWN_VERSION

    def write(self, index: dict[str, Any], previous: dict[str, Any] | None) -> bool:
        """Write ``index`` unless only its timestamp differs from ``previous``."""
        if DiffHashService.same_content(index, previous):
            logger.debug('Global index unchanged; not rewriting %s', self.path)
            return False
        self._writer.write(self.path, index)
        logger.info(
            'Wrote %s (%d objects, %d clouds)', INDEX_FILE, index['totalObjects'], index['totalClouds'],
        )
        return True
