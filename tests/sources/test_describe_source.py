"""Tests for the Describe API collaborator."""

import pytest
from simple_salesforce.exceptions import SalesforceAuthenticationFailed, SalesforceResourceNotFound

from sf_catalog.config import SalesforceConnectionConfig
from sf_catalog.domain.enums import ProvenanceTier
from sf_catalog.sources import describe_source
from sf_catalog.sources.base import AuthenticationError, Candidate, FetchError
from sf_catalog.sources.describe_source import DescribeSource, connect, convert_describe, convert_field

ACCOUNT_DESCRIBE = {
    'name': 'Account',
    'label': 'Account',
    'keyPrefix': '001',
    'createable': True,
    'updateable': True,
    'deletable': True,
    'queryable': True,
    'searchable': True,
    'fields': [
        {'name': 'Id', 'type': 'id', 'nillable': False, 'updateable': False, 'length': 18},
        {'name': 'Name', 'type': 'string', 'nillable': False, 'updateable': True, 'length': 255,
         'nameField': True},
        {'name': 'Industry', 'type': 'picklist', 'nillable': True, 'updateable': True, 'length': 255,
         'inlineHelpText': 'Primary business.',
         'picklistValues': [{'value': 'Banking', 'active': True}, {'value': 'Legacy', 'active': False}]},
        {'name': 'ParentId', 'type': 'reference', 'referenceTo': ['Account'], 'nillable': True,
         'updateable': True},
        {'name': 'OwnerId', 'type': 'reference', 'referenceTo': ['User', 'Group'], 'updateable': True},
        {'name': 'AnnualRevenue', 'type': 'currency', 'scale': 2, 'updateable': True},
        {'name': 'Total__c', 'type': 'double', 'calculated': True, 'updateable': False},
        {'name': 'AccountNumber', 'type': 'string', 'externalId': True, 'unique': True, 'updateable': True},
    ],
    'childRelationships': [
        {'childSObject': 'Contact', 'field': 'AccountId', 'relationshipName': 'Contacts', 'cascadeDelete': False},
        {'childSObject': 'AccountFeed', 'field': 'ParentId', 'relationshipName': 'Feeds'},
        {'childSObject': 'OldThing', 'field': 'AccountId', 'deprecatedAndHidden': True},
    ],
    'themeInfo': {'iconUrl': 'https://x.my.salesforce.com/img/icon/t4v35/standard/account_120.png',
                  'color': '7F8DE1'},
}


class TestConvertField:
    """Tests for field conversion."""

    def setup_method(self):
        self.fields = {f['name']: f for f in ACCOUNT_DESCRIBE['fields']}

    def test_id_field(self):
        field = convert_field(self.fields['Id'])
        assert field.type == 'string'
        assert field.attributes['format'] == 'salesforce-id'
        assert field.attributes['readOnly'] is True
        assert field.attributes['nullable'] is False
        assert field.tier == ProvenanceTier.DESCRIBE_ENRICHED

    def test_picklist_active_values_only(self):
        field = convert_field(self.fields['Industry'])
        assert field.attributes['enum'] == ['Banking']
        assert field.description == 'Primary business.'
        assert field.attributes['maxLength'] == 255

    def test_missing_help_text_is_not_supplied(self):
        assert convert_field(self.fields['Name']).description is None

    def test_references(self):
        assert convert_field(self.fields['ParentId']).attributes['x-object'] == 'Account'
        assert convert_field(self.fields['OwnerId']).attributes['x-objects'] == ['User', 'Group']

    def test_currency(self):
        field = convert_field(self.fields['AnnualRevenue'])
        assert field.type == 'number'
        assert field.attributes['format'] == 'currency'
        assert field.attributes['multipleOf'] == pytest.approx(0.01)

    def test_flags(self):
        field = convert_field(self.fields['AccountNumber'])
        assert field.attributes['unique'] is True
        assert field.attributes['externalId'] is True
        assert 'autoNumber' not in field.attributes


class TestConvertDescribe:
    """Tests for object conversion."""

    def test_object_metadata(self):
        record = convert_describe(ACCOUNT_DESCRIBE)
        assert record.name == 'Account'
        assert record.module == ''
        assert record.extras['keyPrefix'] == '001'
        assert record.extras['nameField'] == 'Name'
        assert record.extras['iconUrl'] == 'standard/account_120.png'
        assert record.extras['iconColor'] == '7F8DE1'

    def test_custom_fields_dropped(self):
        record = convert_describe(ACCOUNT_DESCRIBE)
        assert 'Total__c' not in record.properties
        assert 'Industry' in record.properties

    def test_child_relationships_filtered(self):
        children = convert_describe(ACCOUNT_DESCRIBE).extras['childRelationships']
        assert [c['childObject'] for c in children] == ['Contact']


class FakeSalesforce:
    session_id = 'token'
    sf_instance = 'example.my.salesforce.com'
    sf_version = '60.0'

    def describe(self):
        return {'sobjects': [{'name': 'Contact', 'keyPrefix': '003'}, {'name': 'Account', 'keyPrefix': '001'},
                             {'name': 'AccountFeed', 'keyPrefix': None}]}


class TestDescribeSource:
    """Tests for the source with a fake client."""

    def setup_method(self):
        self.source = DescribeSource(SalesforceConnectionConfig(), client=FakeSalesforce())

    def test_list_candidates(self):
        assert [c.name for c in self.source.list_candidates()] == ['Account', 'AccountFeed', 'Contact']

    def test_list_candidates_keeps_key_prefixes(self):
        candidates = {c.name: c for c in self.source.list_candidates()}
        assert candidates['Contact'].ref == {'keyPrefix': '003'}
        assert candidates['AccountFeed'].ref == {}
        assert len(self.source.global_describe['sobjects']) == 3

    def test_fetch_object(self, monkeypatch):
        class FakeSFType:
            def __init__(self, name, session_id, sf_instance, sf_version=None, session=None):
                self.name = name

            def describe(self):
                return ACCOUNT_DESCRIBE

        monkeypatch.setattr(describe_source, 'SFType', FakeSFType)
        record = self.source.fetch_object(Candidate(name='Account'))
        assert record.properties['Industry'].attributes['enum'] == ['Banking']

    def test_fetch_object_fills_key_prefix_from_candidate(self, monkeypatch):
        class NoPrefixSFType:
            def __init__(self, *args, **kwargs):
                pass

            def describe(self):
                return {**ACCOUNT_DESCRIBE, 'keyPrefix': None}

        monkeypatch.setattr(describe_source, 'SFType', NoPrefixSFType)
        record = self.source.fetch_object(Candidate(name='Account', ref={'keyPrefix': '001'}))
        assert record.extras['keyPrefix'] == '001'

    def test_missing_object_returns_none(self, monkeypatch):
        class MissingSFType:
            def __init__(self, *args, **kwargs):
                pass

            def describe(self):
                raise SalesforceResourceNotFound('url', 404, 'Nope', [])

        monkeypatch.setattr(describe_source, 'SFType', MissingSFType)
        assert self.source.fetch_object(Candidate(name='Nope')) is None

    def test_network_error_becomes_fetch_error(self, monkeypatch):
        import requests

        class TimeoutSFType:
            def __init__(self, *args, **kwargs):
                pass

            def describe(self):
                raise requests.Timeout('read timed out')

        monkeypatch.setattr(describe_source, 'SFType', TimeoutSFType)
        with pytest.raises(FetchError):
            self.source.fetch_object(Candidate(name='Account'))


class TestConnect:
    """Tests for authentication handling."""

    def test_no_credentials(self):
        with pytest.raises(AuthenticationError, match='SF_ACCESS_TOKEN'):
            connect(SalesforceConnectionConfig())

    def test_token_login(self, monkeypatch):
        captured = {}
        monkeypatch.setattr(describe_source, 'Salesforce', lambda **kwargs: captured.update(kwargs) or 'client')
        config = SalesforceConnectionConfig(access_token='tok', instance_url='https://x.my.salesforce.com')
        assert connect(config) == 'client'
        assert captured['session_id'] == 'tok'
        assert captured['instance_url'] == 'https://x.my.salesforce.com'

    def test_soap_disabled_gives_remediation(self, monkeypatch):
        def fail(**kwargs):
            raise SalesforceAuthenticationFailed('INVALID_OPERATION', 'SOAP API login() is disabled by default')

        monkeypatch.setattr(describe_source, 'Salesforce', fail)
        config = SalesforceConnectionConfig(username='u', password='p')
        with pytest.raises(AuthenticationError, match='SF_ACCESS_TOKEN and SF_INSTANCE_URL'):
            connect(config)

    def test_bad_password(self, monkeypatch):
        def fail(**kwargs):
            raise SalesforceAuthenticationFailed('INVALID_LOGIN', 'Invalid username or password')

        monkeypatch.setattr(describe_source, 'Salesforce', fail)
        with pytest.raises(AuthenticationError, match='login failed'):
            connect(SalesforceConnectionConfig(username='u', password='p'))


class TestConnectionConfig:
    """Tests for environment configuration."""

    def test_from_env(self, monkeypatch, tmp_path):
        for key in ('SF_USERNAME', 'SF_PASSWORD', 'SF_DOMAIN', 'SF_LOGIN_URL'):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv('SF_ACCESS_TOKEN', 'tok')
        monkeypatch.setenv('SF_INSTANCE_URL', 'https://x.my.salesforce.com')
        config = SalesforceConnectionConfig.from_env(str(tmp_path / 'missing.env'))
        assert config.has_token
        assert not config.has_password

    def test_domain(self):
        assert SalesforceConnectionConfig().domain is None
        assert SalesforceConnectionConfig(login_url='https://test.salesforce.com').domain == 'test'
        assert SalesforceConnectionConfig(login_url='https://acme.my.salesforce.com').domain == 'acme.my'
        assert SalesforceConnectionConfig(login_domain='custom').domain == 'custom'
