"""Tests for DocumentationSource."""

import pytest
import requests

from sf_catalog.sources.base import FetchError, ParseFailure
from sf_catalog.sources.docs_source import (
    DocumentationSource,
    clean_whitespace,
    collect_object_entries,
    parse_object_page,
)
from tests.conftest import ACCOUNT_PAGE_HTML, OBJECT_REFERENCE_TOC

DOC_ID = 'atlas.en-us.object_reference.meta'


class FakeResponse:
    def __init__(self, payload=None, status=200, text=None):
        self._payload = payload
        self.status_code = status
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} Error')

    def json(self):
        if self._text is not None:
            raise ValueError('not json')
        return self._payload


class FakeSession:
    """Maps URL → FakeResponse and records requested URLs and timeouts."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if url not in self.routes:
            raise requests.ConnectionError(f'no route for {url}')
        return self.routes[url]


class TestParsing:
    """Tests for TOC and page parsing."""

    def test_clean_whitespace(self):
        assert clean_whitespace('  a \n  b\t c ') == 'a b c'
        assert clean_whitespace(None) == ''

    def test_collect_object_entries_dedupes_and_sorts(self):
        entries = collect_object_entries(OBJECT_REFERENCE_TOC['toc'])
        assert [e['text'] for e in entries] == ['Account', 'Contact']

    def test_parse_object_page(self):
        summary, properties = parse_object_page(ACCOUNT_PAGE_HTML)
        assert summary.startswith('Represents an individual account, which is')
        assert list(properties) == ['Name', 'AnnualRevenue', 'ParentId']
        assert properties['Name'].type == 'string'
        assert properties['Name'].description == 'Required. Name of the account.'
        assert properties['AnnualRevenue'].type == 'number'
        assert properties['ParentId'].type == 'string'
        assert properties['ParentId'].description == ''

    def test_parse_field_header_fallback(self):
        html = ('<table><tr><td data-title="Field">Status</td>'
                '<td data-title="Details"><dl><dd>picklist</dd></dl></td></tr></table>')
        _, properties = parse_object_page(html)
        assert properties['Status'].type == 'string'

    def test_parse_page_without_fields(self):
        summary, properties = parse_object_page('<p>Nothing here</p>')
        assert summary == ''
        assert properties == {}


class TestDocumentationSource:
    """Tests for listing and fetching via a fake session."""

    def setup_method(self):
        base = 'https://developer.salesforce.com/docs'
        self.session = FakeSession({
            f'{base}/get_document/{DOC_ID}': FakeResponse(OBJECT_REFERENCE_TOC),
            f'{base}/get_document_content/object_reference/sforce_api_objects_account.htm/en-us/264.0':
                FakeResponse({'title': 'Account', 'content': ACCOUNT_PAGE_HTML}),
            f'{base}/get_document_content/object_reference/sforce_api_objects_contact.htm/en-us/264.0':
                FakeResponse(status=500),
        })
        self.source = DocumentationSource([DOC_ID], session=self.session, timeout=5)

    def test_list_candidates(self):
        candidates = self.source.list_candidates()
        assert [c.name for c in candidates] == ['Account', 'Contact']
        assert candidates[0].cloud == 'Core Salesforce'
        assert candidates[0].ref == {'documentationId': DOC_ID, 'href': 'sforce_api_objects_account.htm'}
        assert self.source.version == '264.0'

    def test_every_request_has_timeout(self):
        self.source.list_candidates()
        assert all(timeout == 5 for _, timeout in self.session.calls)

    def test_fetch_object(self):
        account = self.source.list_candidates()[0]
        record = self.source.fetch_object(account)
        assert record.name == 'Account'
        assert record.module == 'Core Salesforce'
        assert record.source_url == (
            f'https://developer.salesforce.com/docs/{DOC_ID}/object_reference/sforce_api_objects_account.htm'
        )
        assert record.field_count == 3

    def test_http_error_becomes_fetch_error(self):
        contact = self.source.list_candidates()[1]
        with pytest.raises(FetchError):
            self.source.fetch_object(contact)

    def test_non_json_becomes_parse_failure(self):
        self.source.list_candidates()
        url = ('https://developer.salesforce.com/docs/get_document_content/'
               'object_reference/sforce_api_objects_account.htm/en-us/264.0')
        self.session.routes[url] = FakeResponse(text='<html>')
        with pytest.raises(ParseFailure):
            self.source.fetch_object(self.source.list_candidates()[0])

    def test_unreachable_documentation_set_skipped(self):
        source = DocumentationSource(['atlas.en-us.loyalty.meta'], session=FakeSession({}))
        assert source.list_candidates() == []
        assert source.version is None
