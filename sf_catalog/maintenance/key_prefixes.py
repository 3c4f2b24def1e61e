"""Key-prefix enrichment: copy record id prefixes from a saved global describe into the store."""

import logging
import os
from dataclasses import dataclass, field

from sf_catalog.config import GLOBAL_DESCRIBE_FILE
from sf_catalog.maintenance.rebuild import RebuildResult, rebuild_indexes
from sf_catalog.output.json_writer import JSONWriter
from sf_catalog.store.object_store import ObjectStore

logger = logging.getLogger(__name__)


class KeyPrefixError(Exception):
    """The global describe document is missing or malformed."""
    pass


@dataclass
class KeyPrefixResult:
    """Objects whose prefix was set, and stored objects the describe has no prefix for."""

    updated: list[str] = field(default_factory=list)
    without_prefix: list[str] = field(default_factory=list)
    rebuild: RebuildResult | None = None


def load_key_prefixes(path: str) -> dict[str, str]:
    """Object name → key prefix from a global describe document."""
    if not os.path.isfile(path):
        raise KeyPrefixError(f'{path} not found; run `sf-catalog describe` first')
    try:
        data = JSONWriter.read(path)
    except ValueError as e:
        raise KeyPrefixError(f'{path} is not valid JSON: {e}') from e
    if not isinstance(data, dict) or not isinstance(data.get('sobjects'), list):
        raise KeyPrefixError(f'{path} has no sobjects list')
    return {
        s['name']: s['keyPrefix']
        for s in data['sobjects']
        if isinstance(s, dict) and s.get('name') and s.get('keyPrefix')
    }


def apply_key_prefixes(
    root: str,
    prefixes: dict[str, str] | None = None,
    version: str | None = None,
    pretty: bool = True,
) -> KeyPrefixResult:
    """Set ``keyPrefix`` on every stored object the describe knows, then rebuild.

    Prefixes default to ``<root>/globalDescribe.json``. Records that already
    carry the same prefix are not rewritten.
    """
    if prefixes is None:
        prefixes = load_key_prefixes(os.path.join(root, GLOBAL_DESCRIBE_FILE))

    store = ObjectStore(root, JSONWriter(pretty=pretty))
    result = KeyPrefixResult()
    for _, record in store.iter_records():
        prefix = prefixes.get(record.name)
        if not prefix:
            result.without_prefix.append(record.name)
            continue
        if record.extras.get('keyPrefix') == prefix:
            continue
        record.extras['keyPrefix'] = prefix
        store.write_object(record)
        result.updated.append(record.name)

    logger.info(
        'Key prefixes set on %d object(s); %d stored object(s) have none',
        len(result.updated), len(result.without_prefix),
    )
    result.rebuild = rebuild_indexes(root, version=version, pretty=pretty)
    return result
