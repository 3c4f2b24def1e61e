"""Scrapes object reference pages from the public Salesforce developer docs."""

import logging
import re
from typing import Any

import requests
from bs4 import BeautifulSoup

from sf_catalog.config import (
    DOCS_BASE_URL,
    DOCUMENTATION_SETS,
    FETCH_TIMEOUT_SECONDS,
)
from sf_catalog.domain.models import FieldDescriptor, ObjectRecord
from sf_catalog.sources.base import Candidate, FetchError, ObjectSource, ParseFailure
from sf_catalog.type_normalizer import normalize

logger = logging.getLogger(__name__)

OBJECT_TOC_PREFIXES = ('sforce_api_objects_', 'tooling_api_objects_')

_WHITESPACE_RE = re.compile(r'\s+')


def clean_whitespace(text: str | None) -> str:
    return _WHITESPACE_RE.sub(' ', text or '').strip()


def collect_object_entries(toc: list[dict] | None) -> list[dict]:
    """Leaf TOC entries that document an object, deduplicated by id and sorted by text."""
    found: list[dict] = []

    def _walk(items):
        for item in items or []:
            if item.get('children'):
                _walk(item['children'])
            elif str(item.get('id', '')).startswith(OBJECT_TOC_PREFIXES):
                found.append(item)

    _walk(toc)
    unique: dict[str, dict] = {}
    for item in found:
        unique.setdefault(item['id'], item)
    return sorted(unique.values(), key=lambda x: x.get('text') or '')


def parse_object_page(html: str) -> tuple[str, dict[str, FieldDescriptor]]:
    """(summary, properties) from the HTML body of an object reference page."""
    soup = BeautifulSoup(html, 'html.parser')

    summary_el = soup.select_one('[id="summary"]')
    summary = clean_whitespace(summary_el.get_text()) if summary_el else ''

    name_cells = soup.select('[data-title="Field Name"]') or soup.select('[data-title="Field"]')
    names = [clean_whitespace(el.get_text()) for el in name_cells]

    types: list[str] = []
    descriptions: list[str] = []
    for cell in soup.select('[data-title="Details"]'):
        dds = cell.find_all('dd')
        types.append(clean_whitespace(dds[0].get_text()) if dds else '')
        descriptions.append(clean_whitespace(dds[2].get_text()) if len(dds) > 2 else '')

    properties: dict[str, FieldDescriptor] = {}
    for i, name in enumerate(names):
        if not name:
            continue
        properties[name] = FieldDescriptor(
            type=normalize(types[i] if i < len(types) else None),
            description=descriptions[i] if i < len(descriptions) else '',
        )
    return summary, properties


class DocumentationSource(ObjectSource):
    """Object definitions from the developer documentation sets.

    Args:
        documentation_ids: Documentation set ids to scrape (default: all configured).
        session: HTTP session to use; one is created when omitted.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        documentation_ids: list[str] | None = None,
        session: requests.Session | None = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self.documentation_ids = documentation_ids or list(DOCUMENTATION_SETS)
        self._session = session or requests.Session()
        self._timeout = timeout
        self._headers: dict[str, dict] = {}

    @property
    def version(self) -> str | None:
        """Documentation version of the first loaded set, used as the catalog version."""
        for header in self._headers.values():
            doc_version = (header.get('version') or {}).get('doc_version')
            if doc_version:
                return str(doc_version)
        return None

    def list_candidates(self) -> list[Candidate]:
        candidates: list[Candidate] = []
        for doc_id in self.documentation_ids:
            config = DOCUMENTATION_SETS.get(doc_id)
            if config is None:
                logger.error('Unknown documentation id: %s', doc_id)
                continue
            logger.info('Fetching %s (%s)...', config['label'], doc_id)
            try:
                header = self._get_json(f'{DOCS_BASE_URL}/get_document/{doc_id}')
            except (FetchError, ParseFailure) as e:
                logger.error('Error fetching %s: %s', doc_id, e)
                continue
            self._headers[doc_id] = header
            items = collect_object_entries(header.get('toc'))
            logger.info('  Found %d objects', len(items))
            for item in items:
                href = (item.get('a_attr') or {}).get('href')
                if not href:
                    continue
                candidates.append(Candidate(
                    name=clean_whitespace(item.get('text')),
                    cloud=config['label'],
                    ref={'documentationId': doc_id, 'href': href},
                ))
        return candidates

    def fetch_object(self, candidate: Candidate) -> ObjectRecord | None:
        doc_id = candidate.ref['documentationId']
        href = candidate.ref['href']
        header = self._headers.get(doc_id)
        if header is None:
            raise FetchError(f'Documentation set {doc_id} was not loaded')
        try:
            deliverable = header['deliverable']
            doc_version = header['version']['doc_version']
        except (KeyError, TypeError) as e:
            raise ParseFailure(f'Documentation header for {doc_id} is missing {e}') from e

        data = self._get_json(
            f'{DOCS_BASE_URL}/get_document_content/{deliverable}/{href}/en-us/{doc_version}'
        )
        title = clean_whitespace(data.get('title'))
        content = data.get('content')
        if not title or not isinstance(content, str):
            raise ParseFailure(f'Unexpected content document for {href}')

        summary, properties = parse_object_page(content)
        return ObjectRecord(
            name=title,
            description=summary,
            properties=properties,
            module=DOCUMENTATION_SETS[doc_id]['label'],
            source_url=f'{DOCS_BASE_URL}/{doc_id}/{deliverable}/{href}',
        )

    def _get_json(self, url: str) -> dict[str, Any]:
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f'GET {url} failed: {e}') from e
        try:
            data = response.json()
        except ValueError as e:
            raise ParseFailure(f'GET {url} did not return JSON: {e}') from e
        if not isinstance(data, dict):
            raise ParseFailure(f'GET {url} returned {type(data).__name__}, expected an object')
        return data
