"""Shared test fixtures."""

import copy
import json
import os

import pytest

from sf_catalog.domain.models import FieldDescriptor, ObjectRecord
from sf_catalog.sources.base import Candidate, ObjectSource


# ── Sample documentation payloads ────────────────────────────────────────

ACCOUNT_PAGE_HTML = """\
<div>
  <div id="summary"><p>Represents an individual   account, which is an organization
  or person involved with your business.</p></div>
  <table>
    <tr>
      <td data-title="Field Name">Name</td>
      <td data-title="Details"><dl>
        <dt>Type</dt><dd>string</dd>
        <dt>Properties</dt><dd>Create, Filter, Group</dd>
        <dt>Description</dt><dd>Required. Name of the account.</dd>
      </dl></td>
    </tr>
    <tr>
      <td data-title="Field Name">AnnualRevenue</td>
      <td data-title="Details"><dl>
        <dt>Type</dt><dd>currency</dd>
        <dt>Properties</dt><dd>Create, Filter</dd>
        <dt>Description</dt><dd>Estimated annual revenue.</dd>
      </dl></td>
    </tr>
    <tr>
      <td data-title="Field Name">ParentId</td>
      <td data-title="Details"><dl>
        <dt>Type</dt><dd>reference (Account)</dd>
      </dl></td>
    </tr>
  </table>
</div>
"""

OBJECT_REFERENCE_TOC = {
    'deliverable': 'object_reference',
    'version': {'doc_version': '264.0'},
    'toc': [
        {'id': 'sforce_api_objects_intro', 'text': 'Introduction', 'children': [
            {'id': 'sforce_api_objects_contact', 'text': 'Contact',
             'a_attr': {'href': 'sforce_api_objects_contact.htm'}},
            {'id': 'sforce_api_objects_account', 'text': 'Account',
             'a_attr': {'href': 'sforce_api_objects_account.htm'}},
        ]},
        {'id': 'sforce_api_objects_account', 'text': 'Account',
         'a_attr': {'href': 'sforce_api_objects_account.htm'}},
        {'id': 'data_model_overview', 'text': 'Data Model',
         'a_attr': {'href': 'data_model.htm'}},
    ],
}


# ── Helpers ──────────────────────────────────────────────────────────────

def make_record(name: str, fields: dict | None = None, module: str = 'Core Salesforce', **kwargs) -> ObjectRecord:
    """ObjectRecord with docs-only fields given as ``{name: type}``."""
    properties = {
        field_name: FieldDescriptor(type=field_type, description=f'{field_name} field')
        for field_name, field_type in (fields or {}).items()
    }
    return ObjectRecord(name=name, properties=properties, module=module, **kwargs)


def read_json(path) -> dict:
    with open(path, encoding='utf-8') as f:
        return json.load(f)


def read_bytes(path) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


def write_store_doc(root, name: str, body: dict) -> str:
    """Write a raw store document, bypassing the store's serializer."""
    path = os.path.join(str(root), 'objects', name[0].upper(), f'{name}.json')
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump({name: body}, f, indent=2)
    return path


class FakeSource(ObjectSource):
    """In-memory source: name → ObjectRecord, or an exception to raise."""

    def __init__(self, records: dict, candidates: list[str] | None = None, cloud: str = '',
                 version: str | None = None):
        self._records = records
        self._names = candidates if candidates is not None else list(records)
        self._cloud = cloud
        self._version = version
        self.fetched: list[str] = []

    @property
    def version(self) -> str | None:
        return self._version

    def list_candidates(self) -> list[Candidate]:
        return [Candidate(name=name, cloud=self._cloud) for name in self._names]

    def fetch_object(self, candidate: Candidate) -> ObjectRecord | None:
        self.fetched.append(candidate.name)
        result = self._records.get(candidate.name)
        if isinstance(result, Exception):
            raise result
        return copy.deepcopy(result)


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def catalog_dir(tmp_path):
    """Empty catalog directory."""
    path = tmp_path / 'doc'
    path.mkdir()
    return str(path)


@pytest.fixture
def account_record():
    return make_record(
        'Account',
        {'Name': 'string', 'AnnualRevenue': 'number'},
        description='Represents an individual account.',
        source_url='https://developer.salesforce.com/docs/atlas.en-us.object_reference.meta/object_reference/sforce_api_objects_account.htm',
    )


@pytest.fixture
def enriched_field():
    """Describe-enriched picklist field."""
    return FieldDescriptor(
        type='string',
        description='Industry of the account.',
        attributes={'enum': ['Agriculture', 'Banking'], 'nullable': True},
    )
