"""Shared data models used across catalog modules."""

import copy
from dataclasses import dataclass, field
from typing import Any

from sf_catalog.domain.constants import ENRICHMENT_KEYS, RECORD_CORE_KEYS
from sf_catalog.domain.enums import ProvenanceTier


def is_provided(value: Any) -> bool:
    """True for a concrete value: not None and not an empty string/list/dict."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
        return False
    return True


@dataclass
class FieldDescriptor:
    """One property of an object.

    ``type``/``description`` of None mean "not supplied" (an incoming partial
    descriptor); persisted descriptors always carry a type.
    """

    type: str | None = None
    description: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def tier(self) -> ProvenanceTier:
        if any(k in ENRICHMENT_KEYS for k in self.attributes):
            return ProvenanceTier.DESCRIBE_ENRICHED
        return ProvenanceTier.DOCS_ONLY

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.type is not None:
            data['type'] = self.type
        if self.description is not None:
            data['description'] = self.description
        data.update(self.attributes)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> 'FieldDescriptor':
        data = data if isinstance(data, dict) else {}
        return cls(
            type=data.get('type'),
            description=data.get('description'),
            attributes={
                k: v for k, v in data.items()
                if k not in ('type', 'description') and v is not None
            },
        )


@dataclass
class ObjectRecord:
    """One Salesforce object definition, as stored in ``objects/<L>/<name>.json``.

    Used both for stored records and for incoming partial records: empty
    strings, empty collections and None mean "not supplied".
    """

    name: str
    description: str = ''
    properties: dict[str, FieldDescriptor] = field(default_factory=dict)
    module: str = ''
    clouds: list[str] = field(default_factory=list)
    source_url: str | None = None
    access_rules: Any = None
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def field_count(self) -> int:
        return len(self.properties)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'name': self.name,
            'description': self.description,
            'properties': {k: v.to_dict() for k, v in self.properties.items()},
            'module': self.module,
        }
        if self.clouds:
            data['clouds'] = list(self.clouds)
        if self.source_url is not None:
            data['sourceUrl'] = self.source_url
        if self.access_rules is not None:
            data['accessRules'] = copy.deepcopy(self.access_rules)
        for key, value in self.extras.items():
            data[key] = copy.deepcopy(value)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], name: str | None = None) -> 'ObjectRecord':
        properties = data.get('properties') or {}
        return cls(
            name=data.get('name') or name or '',
            description=data.get('description') or '',
            properties={k: FieldDescriptor.from_dict(v) for k, v in properties.items()},
            module=data.get('module') or '',
            clouds=list(data.get('clouds') or []),
            source_url=data.get('sourceUrl'),
            access_rules=copy.deepcopy(data.get('accessRules')),
            extras={
                k: copy.deepcopy(v) for k, v in data.items()
                if k not in RECORD_CORE_KEYS and v is not None
            },
        )


@dataclass
class FetchFailure:
    """A fetch or parse failure for a single object."""

    name: str
    error: str
    stage: str = 'fetch'


@dataclass
class RunOptions:
    """Options controlling a pipeline run."""

    objects: list[str] | None = None
    exclude_custom: bool = True
    exclude_suffixes: frozenset[str] | None = None
    chunk_size: int = 50
    chunk_delay: float = 1.0
    checkpoint_every: int = 10
    resume: bool = True
    start_from_index: int | None = None
    version: str | None = None
    pretty: bool = True


@dataclass
class RunResult:
    """Result summary of a pipeline run."""

    candidates: int
    fetched: int
    written: int
    skipped: int
    errors: list[FetchFailure]
    output_dir: str
    resumed_from: int = 0

    @property
    def errors_count(self) -> int:
        return len(self.errors)
