"""Per-cloud index documents (``<root>/<cloud-file-name>.json``)."""

import logging
import os
import re
from typing import Any

from sf_catalog.config import RESERVED_FILES, cloud_description
from sf_catalog.diff_hash import DiffHashService
from sf_catalog.output.json_writer import JSONWriter

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r'\s+')
_INVALID_CHARS_RE = re.compile(r'[^a-z0-9-]')

# Keys the builder owns; everything else in an existing cloud document is kept
_OWNED_KEYS = ('cloud', 'description', 'objectCount', 'objects')


def cloud_name_to_file_name(cloud: str) -> str:
    """'Financial Services Cloud' → 'financial-services-cloud'."""
    name = _WHITESPACE_RE.sub('-', cloud.strip().lower())
    return _INVALID_CHARS_RE.sub('', name)


def entry_clouds(entry: dict[str, Any]) -> list[str]:
    """Clouds an index entry is tagged with (``clouds``, falling back to ``cloud``)."""
    clouds = entry.get('clouds')
    if clouds:
        return list(clouds)
    return [entry['cloud']] if entry.get('cloud') else []


class CloudIndexBuilder:
    """Derives cloud index documents from Global Index entries."""

    def __init__(self, root: str, writer: JSONWriter | None = None) -> None:
        self._root = root
        self._writer = writer or JSONWriter()

    def path_for(self, cloud: str) -> str:
        return os.path.join(self._root, f'{cloud_name_to_file_name(cloud)}.json')

    def load_all(self) -> dict[str, dict]:
        """Every cloud document on disk, keyed by cloud name."""
        docs: dict[str, dict] = {}
        if not os.path.isdir(self._root):
            return docs
        for file in sorted(os.listdir(self._root)):
            if not file.endswith('.json') or file in RESERVED_FILES or file.startswith('.'):
                continue
            path = os.path.join(self._root, file)
            if not os.path.isfile(path):
                continue
            try:
                data = self._writer.read(path)
            except ValueError as e:
                logger.warning('Skipping unreadable cloud index %s: %s', file, e)
                continue
            if isinstance(data, dict) and 'cloud' in data and 'objects' in data:
                docs[data['cloud']] = data
        return docs

    @staticmethod
    def memberships(docs: dict[str, dict]) -> dict[str, set[str]]:
        """Object name → clouds whose documents list it."""
        listed_in: dict[str, set[str]] = {}
        for cloud, doc in docs.items():
            for name in doc.get('objects', []):
                listed_in.setdefault(name, set()).add(cloud)
        return listed_in

    @staticmethod
    def build_doc(cloud: str, objects: list[str], existing: dict | None = None) -> dict[str, Any]:
        existing = existing or {}
        members = sorted(set(objects))
        doc: dict[str, Any] = {
            'cloud': cloud,
            'description': existing.get('description') or cloud_description(cloud),
            'objectCount': len(members),
            'objects': members,
        }
        for key, value in existing.items():
            if key not in _OWNED_KEYS:
                doc[key] = value
        return doc

    def build(
        self,
        index_objects: dict[str, dict],
        existing_docs: dict[str, dict],
        only_clouds: set[str] | None = None,
    ) -> dict[str, dict]:
        """Recompute cloud documents from index membership.

        With ``only_clouds`` just those clouds are recomputed; otherwise every
        cloud that is either tagged in the index or already has a file.
        Clouds left with no members keep their file with ``objectCount`` 0.
        """
        members: dict[str, list[str]] = {}
        for name, entry in index_objects.items():
            for cloud in entry_clouds(entry):
                members.setdefault(cloud, []).append(name)

        clouds = set(only_clouds) if only_clouds is not None else set(members) | set(existing_docs)
        return {
            cloud: self.build_doc(cloud, members.get(cloud, []), existing_docs.get(cloud))
            for cloud in sorted(clouds)
        }

    def write_all(self, docs: dict[str, dict], existing_docs: dict[str, dict]) -> list[str]:
        """Write documents whose content changed; returns the clouds written."""
        written = []
        for cloud, doc in docs.items():
            if DiffHashService.same_content(doc, existing_docs.get(cloud)):
                continue
            self._writer.write(self.path_for(cloud), doc)
            written.append(cloud)
        if written:
            logger.debug('Wrote %d cloud index file(s): %s', len(written), ', '.join(written))
        return written

    @staticmethod
    def summaries(docs: dict[str, dict]) -> dict[str, dict]:
        """The ``clouds`` section of the Global Index, keyed by file key."""
        section: dict[str, dict] = {}
        for cloud in sorted(docs):
            doc = docs[cloud]
            file_key = cloud_name_to_file_name(cloud)
            summary: dict[str, Any] = {
                'cloud': cloud,
                'fileName': f'{file_key}.json',
                'description': doc.get('description', ''),
                'objectCount': doc.get('objectCount', len(doc.get('objects', []))),
            }
            for key in ('emoji', 'iconFile'):
                if doc.get(key):
                    summary[key] = doc[key]
            section[file_key] = summary
        return section
