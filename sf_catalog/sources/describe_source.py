"""Live-org object definitions from the REST Describe API (simple-salesforce)."""

import logging
import re
from typing import Any

import requests
from simple_salesforce import Salesforce, SFType
from simple_salesforce.exceptions import (
    SalesforceAuthenticationFailed,
    SalesforceError,
    SalesforceExpiredSession,
    SalesforceResourceNotFound,
)

from sf_catalog.config import FETCH_TIMEOUT_SECONDS, SalesforceConnectionConfig
from sf_catalog.domain.models import FieldDescriptor, ObjectRecord
from sf_catalog.exclusion import ExclusionPolicy
from sf_catalog.sources.base import (
    AuthenticationError,
    Candidate,
    FetchError,
    ObjectSource,
    ParseFailure,
)
from sf_catalog.type_normalizer import format_for, normalize

logger = logging.getLogger(__name__)

SOAP_DISABLED_MARKER = 'SOAP API login() is disabled'

SOAP_DISABLED_HELP = (
    'SOAP API login is disabled in your org. Use token authentication instead:\n'
    '  1. Obtain an access token (for example: sf org display --json)\n'
    '  2. Set SF_ACCESS_TOKEN and SF_INSTANCE_URL in your environment or .env file'
)

_ICON_PATH_RE = re.compile(r'/icon/[^/]+/(.+)$')


class TimeoutSession(requests.Session):
    """``requests.Session`` that applies a default timeout to every request."""

    def __init__(self, timeout: float = FETCH_TIMEOUT_SECONDS) -> None:
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault('timeout', self.timeout)
        return super().request(method, url, **kwargs)


def connect(config: SalesforceConnectionConfig, session: requests.Session | None = None) -> Salesforce:
    """Log in with an access token, or with username/password/security token.

    Raises:
        AuthenticationError: No usable credentials, or the org rejected them.
    """
    session = session or TimeoutSession()
    if config.has_token:
        logger.info('Connecting to %s with an access token', config.instance_url)
        return Salesforce(
            instance_url=config.instance_url,
            session_id=config.access_token,
            version=config.api_version,
            session=session,
        )
    if not config.has_password:
        raise AuthenticationError(
            'No Salesforce credentials found. Set SF_ACCESS_TOKEN and SF_INSTANCE_URL, '
            'or SF_USERNAME, SF_PASSWORD and SF_SECURITY_TOKEN.'
        )

    logger.info('Logging in as %s', config.username)
    try:
        return Salesforce(
            username=config.username,
            password=config.password,
            security_token=config.security_token or '',
            domain=config.domain,
            version=config.api_version,
            session=session,
        )
    except SalesforceAuthenticationFailed as e:
        if SOAP_DISABLED_MARKER in str(e):
            raise AuthenticationError(SOAP_DISABLED_HELP) from e
        raise AuthenticationError(f'Salesforce login failed: {e}') from e


def convert_field(field: dict[str, Any]) -> FieldDescriptor:
    """Shape one describe field into a describe-enriched descriptor."""
    raw_type = field.get('type')
    canonical = normalize(raw_type)
    attributes: dict[str, Any] = {}

    fmt = format_for(raw_type)
    if fmt:
        attributes['format'] = fmt

    if raw_type in ('picklist', 'multipicklist'):
        active = [pv['value'] for pv in field.get('picklistValues') or [] if pv.get('active')]
        if active:
            attributes['enum'] = active

    reference_to = field.get('referenceTo') or []
    if raw_type == 'reference' and reference_to:
        if len(reference_to) == 1:
            attributes['x-object'] = reference_to[0]
        else:
            attributes['x-objects'] = list(reference_to)

    if field.get('length') and canonical == 'string':
        attributes['maxLength'] = field['length']

    scale = field.get('scale')
    if canonical == 'number' and isinstance(scale, int) and 0 < scale <= 8:
        attributes['multipleOf'] = 10 ** -scale

    if field.get('nillable') is not None:
        attributes['nullable'] = field['nillable']
    if field.get('calculated'):
        attributes['calculated'] = True
    if field.get('calculated') or not field.get('updateable', True):
        attributes['readOnly'] = True
    for flag in ('unique', 'externalId', 'autoNumber'):
        if field.get(flag):
            attributes[flag] = True
    if field.get('permissionable') is not None:
        attributes['permissionable'] = field['permissionable']

    return FieldDescriptor(
        type=canonical,
        description=field.get('inlineHelpText') or None,
        attributes=attributes,
    )


def convert_describe(describe: dict[str, Any], policy: ExclusionPolicy | None = None) -> ObjectRecord:
    """Shape an ``SObject.describe()`` result into an incoming record.

    ``module`` is left empty so the merge keeps the documented cloud.
    """
    policy = policy or ExclusionPolicy()
    try:
        name = describe['name']
        fields = describe['fields']
    except (KeyError, TypeError) as e:
        raise ParseFailure(f'Describe result is missing {e}') from e

    properties = {
        f['name']: convert_field(f)
        for f in fields
        if f.get('name') and policy.should_admit_field(f['name'])
    }

    extras: dict[str, Any] = {}
    for key in ('label', 'keyPrefix', 'createable', 'updateable', 'deletable', 'queryable', 'searchable'):
        if describe.get(key) is not None:
            extras[key] = describe[key]

    name_fields = describe.get('nameFields') or [f['name'] for f in fields if f.get('nameField')]
    if name_fields:
        extras['nameField'] = name_fields[0]

    theme = describe.get('themeInfo') or {}
    icon_match = _ICON_PATH_RE.search(theme.get('iconUrl') or '')
    if icon_match:
        extras['iconUrl'] = icon_match.group(1)
    if theme.get('color'):
        extras['iconColor'] = theme['color']

    children = [
        {
            'childObject': rel['childSObject'],
            'field': rel.get('field'),
            'relationshipName': rel.get('relationshipName'),
            'cascadeDelete': rel.get('cascadeDelete'),
        }
        for rel in describe.get('childRelationships') or []
        if rel.get('childSObject')
        and not rel.get('deprecatedAndHidden')
        and not rel['childSObject'].endswith('Feed')
    ]
    if children:
        extras['childRelationships'] = children

    return ObjectRecord(name=name, properties=properties, extras=extras)


class DescribeSource(ObjectSource):
    """Object definitions from a live org.

    Args:
        config: Connection settings.
        policy: Field admission policy (custom fields are dropped by default).
        timeout: Per-request timeout in seconds.
        client: An already connected ``Salesforce`` client.
    """

    def __init__(
        self,
        config: SalesforceConnectionConfig,
        policy: ExclusionPolicy | None = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        client: Salesforce | None = None,
    ) -> None:
        self.config = config
        self.policy = policy or ExclusionPolicy()
        self._session = TimeoutSession(timeout)
        self._sf = client
        self.global_describe: dict | None = None

    @property
    def version(self) -> str | None:
        return self.config.api_version

    @property
    def client(self) -> Salesforce:
        if self._sf is None:
            self._sf = connect(self.config, self._session)
        return self._sf

    def list_candidates(self) -> list[Candidate]:
        try:
            result = self.client.describe()
        except SalesforceExpiredSession as e:
            raise AuthenticationError(f'Salesforce session expired: {e}') from e
        except (SalesforceError, requests.RequestException) as e:
            raise FetchError(f'Global describe failed: {e}') from e
        self.global_describe = result or {}
        sobjects = [s for s in self.global_describe.get('sobjects', []) if s.get('name')]
        logger.info('Global describe returned %d objects', len(sobjects))
        return [
            Candidate(name=s['name'], ref={'keyPrefix': s['keyPrefix']} if s.get('keyPrefix') else {})
            for s in sorted(sobjects, key=lambda s: s['name'])
        ]

    def fetch_object(self, candidate: Candidate) -> ObjectRecord | None:
        sf = self.client
        sf_object = SFType(
            candidate.name, sf.session_id, sf.sf_instance,
            sf_version=sf.sf_version, session=self._session,
        )
        try:
            describe = sf_object.describe()
        except SalesforceResourceNotFound:
            logger.warning('%s is not available in this org', candidate.name)
            return None
        except SalesforceExpiredSession as e:
            raise AuthenticationError(f'Salesforce session expired: {e}') from e
        except (SalesforceError, requests.RequestException) as e:
            raise FetchError(f'Describe of {candidate.name} failed: {e}') from e
        record = convert_describe(describe, self.policy)
        if candidate.ref.get('keyPrefix') and not record.extras.get('keyPrefix'):
            record.extras['keyPrefix'] = candidate.ref['keyPrefix']
        return record
