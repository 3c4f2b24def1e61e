"""Catalog configuration: documentation sets, batching and Salesforce credentials.

Constants are grouped by concern. Salesforce credentials are read from the
environment (optionally via a ``.env`` file) by ``SalesforceConnectionConfig``.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# ── Documentation sets ───────────────────────────────────────────────────

DOCS_BASE_URL = 'https://developer.salesforce.com/docs'

# Documentation id → cloud label and description
DOCUMENTATION_SETS: dict[str, dict[str, str]] = {
    'atlas.en-us.object_reference.meta': {
        'label': 'Core Salesforce',
        'description': 'Standard Salesforce objects including Account, Contact, Opportunity, Case, Lead, and other core CRM functionality.',
    },
    'atlas.en-us.api_tooling.meta': {
        'label': 'Tooling API',
        'description': 'Salesforce Tooling API objects for metadata management, deployment, and development operations.',
    },
    'atlas.en-us.salesforce_feedback_management_dev_guide.meta': {
        'label': 'Feedback Management',
        'description': 'Objects for collecting, managing, and analyzing customer feedback and survey responses.',
    },
    'atlas.en-us.salesforce_scheduler_developer_guide.meta': {
        'label': 'Scheduler',
        'description': 'Objects for scheduling appointments, managing availability, and coordinating resources.',
    },
    'atlas.en-us.field_service_dev.meta': {
        'label': 'Field Service Lightning',
        'description': 'Objects for managing field service operations, work orders, service appointments, and mobile workforce.',
    },
    'atlas.en-us.loyalty.meta': {
        'label': 'Loyalty',
        'description': 'Objects for loyalty program management including member enrollment, points, rewards, and promotions.',
    },
    'atlas.en-us.psc_api.meta': {
        'label': 'Public Sector Cloud',
        'description': 'Objects for government and public sector organizations including permits, inspections, and regulatory compliance.',
    },
    'atlas.en-us.netzero_cloud_dev_guide.meta': {
        'label': 'Net Zero Cloud',
        'description': 'Objects for sustainability management, carbon accounting, emissions tracking, and environmental reporting.',
    },
    'atlas.en-us.edu_cloud_dev_guide.meta': {
        'label': 'Education Cloud',
        'description': 'Objects for educational institutions including student recruitment, enrollment, academic programs, and alumni relations.',
    },
    'atlas.en-us.automotive_cloud.meta': {
        'label': 'Automotive Cloud',
        'description': 'Objects for automotive industry including vehicle inventory, sales, service, warranties, and dealership management.',
    },
    'atlas.en-us.eu_developer_guide.meta': {
        'label': 'Energy and Utilities Cloud',
        'description': 'Objects for energy and utility companies including meter management, billing, consumption tracking, and grid operations.',
    },
    'atlas.en-us.health_cloud_object_reference.meta': {
        'label': 'Health Cloud',
        'description': 'Objects for healthcare and life sciences including patient care, clinical data, care plans, and health assessments.',
    },
    'atlas.en-us.retail_api.meta': {
        'label': 'Consumer Goods Cloud',
        'description': 'Objects for consumer goods and retail including store operations, promotions, product assortment, and retail execution.',
    },
    'atlas.en-us.financial_services_cloud_object_reference.meta': {
        'label': 'Financial Services Cloud',
        'description': 'Objects for financial services including banking, wealth management, insurance, client relationships, and financial accounts.',
    },
    'atlas.en-us.mfg_api_devguide.meta': {
        'label': 'Manufacturing Cloud',
        'description': 'Objects for manufacturing operations including sales agreements, forecasting, production planning, and partner management.',
    },
    'atlas.en-us.nonprofit_cloud.meta': {
        'label': 'Nonprofit Cloud',
        'description': 'Objects for nonprofit organizations including fundraising, donor management, grant tracking, and program management.',
    },
    'atlas.en-us.revenue_lifecycle_management_dev_guide.meta': {
        'label': 'Revenue Lifecycle Management',
        'description': 'Objects for revenue lifecycle management including product configuration, pricing, billing, and revenue recognition.',
    },
    'atlas.en-us.sales_cloud.meta': {
        'label': 'Sales Cloud',
        'description': 'Objects for sales operations including leads, opportunities, quotes, forecasts, and sales performance management.',
    },
    'atlas.en-us.service_cloud.meta': {
        'label': 'Service Cloud',
        'description': 'Objects for customer service and support including cases, knowledge articles, service contracts, and omnichannel routing.',
    },
}

# ── Clouds ───────────────────────────────────────────────────────────────

DEFAULT_CLOUD = 'Core Salesforce'


def cloud_description(cloud: str) -> str:
    """Description of a cloud from the documentation sets, or ''."""
    for entry in DOCUMENTATION_SETS.values():
        if entry['label'] == cloud:
            return entry['description']
    return ''


def documentation_ids_for(clouds: list[str] | None) -> list[str]:
    """Documentation ids whose label or id is in ``clouds`` (all when None)."""
    if not clouds:
        return list(DOCUMENTATION_SETS)
    wanted = {c.strip().lower() for c in clouds}
    return [
        doc_id for doc_id, entry in DOCUMENTATION_SETS.items()
        if doc_id.lower() in wanted or entry['label'].lower() in wanted
    ]


# ── Batching & rate limits ───────────────────────────────────────────────

CHUNK_SIZE = 50
DESCRIBE_BATCH_SIZE = 10
CHUNK_DELAY_SECONDS = 1.0
FETCH_TIMEOUT_SECONDS = 30.0
CHECKPOINT_EVERY = 10

# ── Exclusion ────────────────────────────────────────────────────────────

CUSTOM_OBJECT_MARKER = '__'
CUSTOM_FIELD_MARKERS = ('__c', '__r')
DEFAULT_EXCLUDED_SUFFIXES = frozenset({'History', 'Event', 'Feed', 'Share'})

# ── Catalog layout ───────────────────────────────────────────────────────

OBJECTS_DIR = 'objects'
INDEX_FILE = 'index.json'
PROGRESS_FILE = '.catalog-progress.json'
GLOBAL_DESCRIBE_FILE = 'globalDescribe.json'

# Top-level JSON files that are never cloud index documents
RESERVED_FILES = frozenset({
    INDEX_FILE, GLOBAL_DESCRIBE_FILE, 'toolingGlobalDescribe.json', 'metadata.json',
})

# ── Salesforce connection ────────────────────────────────────────────────

DEFAULT_LOGIN_URL = 'https://login.salesforce.com'
DEFAULT_API_VERSION = '60.0'


@dataclass
class SalesforceConnectionConfig:
    """Credentials for the live-org Describe API."""

    login_url: str = DEFAULT_LOGIN_URL
    username: str | None = None
    password: str | None = None
    security_token: str | None = None
    access_token: str | None = None
    instance_url: str | None = None
    api_version: str = DEFAULT_API_VERSION
    login_domain: str | None = None

    @classmethod
    def from_env(cls, env_file: str | None = None) -> 'SalesforceConnectionConfig':
        load_dotenv(env_file)
        return cls(
            login_url=os.environ.get('SF_LOGIN_URL', DEFAULT_LOGIN_URL),
            username=os.environ.get('SF_USERNAME') or None,
            password=os.environ.get('SF_PASSWORD') or None,
            security_token=os.environ.get('SF_SECURITY_TOKEN') or None,
            access_token=os.environ.get('SF_ACCESS_TOKEN') or None,
            instance_url=os.environ.get('SF_INSTANCE_URL') or None,
            api_version=os.environ.get('SF_API_VERSION', DEFAULT_API_VERSION),
            login_domain=os.environ.get('SF_DOMAIN') or None,
        )

    @property
    def has_token(self) -> bool:
        return bool(self.access_token and self.instance_url)

    @property
    def has_password(self) -> bool:
        return bool(self.username and self.password)

    @property
    def domain(self) -> str | None:
        """simple-salesforce login domain: ``SF_DOMAIN``, else derived from the login URL."""
        if self.login_domain:
            return self.login_domain
        if 'test.salesforce.com' in self.login_url:
            return 'test'
        if 'login.salesforce.com' in self.login_url:
            return None
        host = self.login_url.split('://', 1)[-1].rstrip('/')
        return host[:-len('.salesforce.com')] if host.endswith('.salesforce.com') else host
