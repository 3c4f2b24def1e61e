"""Tests for the purge pass."""

import os

from sf_catalog.exclusion import ExclusionPolicy
from sf_catalog.maintenance.purge import purge
from sf_catalog.maintenance.rebuild import rebuild_indexes
from sf_catalog.store.object_store import ObjectStore
from tests.conftest import make_record, read_json


class TestPurge:
    """Tests for predicate-driven deletion."""

    def setup_method(self):
        self.policy = ExclusionPolicy()

    def _seed(self, root):
        store = ObjectStore(root)
        store.write_object(make_record('Account', {'Name': 'string'}, clouds=['Core Salesforce', 'Sales Cloud']))
        store.write_object(make_record('AccountShare', {'AccessLevel': 'string'}, clouds=['Core Salesforce', 'Sales Cloud']))
        store.write_object(make_record('CaseHistory', {'Field': 'string'}, module='Service Cloud'))
        rebuild_indexes(root)

    def test_purge_share_object(self, catalog_dir):
        self._seed(catalog_dir)

        result = purge(catalog_dir, self.policy.should_remove)

        assert 'objects/A/AccountShare.json' in result.files_deleted
        assert 'AccountShare' in result.index_entries_removed
        assert not os.path.exists(os.path.join(catalog_dir, 'objects', 'A', 'AccountShare.json'))

        index = read_json(os.path.join(catalog_dir, 'index.json'))
        assert 'AccountShare' not in index['objects']
        for cloud_file in ('core-salesforce.json', 'sales-cloud.json'):
            doc = read_json(os.path.join(catalog_dir, cloud_file))
            assert 'AccountShare' not in doc['objects']
            assert doc['objectCount'] == len(doc['objects'])
        assert index['clouds']['sales-cloud']['objectCount'] == 1

    def test_purge_completeness(self, catalog_dir):
        self._seed(catalog_dir)
        purge(catalog_dir, self.policy.should_remove)

        index = read_json(os.path.join(catalog_dir, 'index.json'))
        assert all(self.policy.should_admit(name) for name in index['objects'])
        assert ObjectStore(catalog_dir).iter_names() == ['Account']
        service = read_json(os.path.join(catalog_dir, 'service-cloud.json'))
        assert service['objects'] == []
        assert service['objectCount'] == 0

    def test_dry_run_deletes_nothing(self, catalog_dir):
        self._seed(catalog_dir)

        result = purge(catalog_dir, self.policy.should_remove, dry_run=True)

        assert result.dry_run
        assert sorted(result.files_deleted) == ['objects/A/AccountShare.json', 'objects/C/CaseHistory.json']
        assert result.index_entries_removed == ['AccountShare', 'CaseHistory']
        assert ObjectStore(catalog_dir).iter_names() == ['Account', 'AccountShare', 'CaseHistory']

    def test_interrupted_purge_repaired_by_rebuild(self, catalog_dir):
        self._seed(catalog_dir)
        ObjectStore(catalog_dir).delete_object('AccountShare')

        rebuild_indexes(catalog_dir)

        index = read_json(os.path.join(catalog_dir, 'index.json'))
        assert 'AccountShare' not in index['objects']
