"""Tests for the MCP server tools."""

import pytest

from mcp_server import server
from sf_catalog.datasource import LocalDataSource
from sf_catalog.domain.models import FieldDescriptor, ObjectRecord
from sf_catalog.maintenance.rebuild import rebuild_indexes
from sf_catalog.store.object_store import ObjectStore


@pytest.fixture
def loaded_server(catalog_dir, monkeypatch):
    ObjectStore(catalog_dir).write_object(ObjectRecord(
        name='Account', description='An account.', module='Core Salesforce',
        properties={
            'Name': FieldDescriptor(type='string', description='Account name.'),
            'Industry': FieldDescriptor(type='string', description='', attributes={'enum': ['Banking']}),
        },
    ))
    rebuild_indexes(catalog_dir, version='264.0')
    monkeypatch.setattr(server, '_ds', LocalDataSource(catalog_dir))
    return server


class TestMCPTools:
    """Tests for tool functions called directly."""

    def test_uninitialized(self, monkeypatch):
        monkeypatch.setattr(server, '_ds', None)
        with pytest.raises(RuntimeError):
            server.catalog_overview()

    def test_catalog_overview(self, loaded_server):
        overview = loaded_server.catalog_overview()
        assert overview['version'] == '264.0'
        assert overview['totalObjects'] == 1

    def test_list_and_get_cloud(self, loaded_server):
        clouds = loaded_server.list_clouds()
        assert clouds[0]['key'] == 'core-salesforce'
        assert loaded_server.get_cloud('core-salesforce')['objects'] == ['Account']

    def test_search_objects(self, loaded_server):
        assert loaded_server.search_objects('acc')[0]['name'] == 'Account'

    def test_get_object_without_fields(self, loaded_server):
        record = loaded_server.get_object('Account', include_fields=False)
        assert record['properties'] == ['Industry', 'Name']

    def test_get_field_case_insensitive(self, loaded_server):
        field = loaded_server.get_field('Account', 'industry')
        assert field['name'] == 'Industry'
        assert field['enum'] == ['Banking']

    def test_get_missing_field(self, loaded_server):
        with pytest.raises(ValueError):
            loaded_server.get_field('Account', 'Nope')
