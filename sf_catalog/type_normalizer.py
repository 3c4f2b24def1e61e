"""Canonical type mapping for Salesforce field type tokens."""

import re

CANONICAL_TYPES = frozenset({
    'string', 'integer', 'number', 'boolean', 'date', 'dateTime', 'time', 'object',
})

_LEADING_TOKEN_RE = re.compile(r'[a-z0-9]+')


class TypeNormalizer:
    """Maps documentation and describe type tokens onto ``CANONICAL_TYPES``.

    Unknown tokens map to ``string``: one odd field must never abort a batch.
    """

    TYPE_MAP = {
        # String types
        'string': 'string',
        'id': 'string',
        'reference': 'string',
        'lookup': 'string',
        'masterdetail': 'string',
        'email': 'string',
        'url': 'string',
        'phone': 'string',
        'picklist': 'string',
        'multipicklist': 'string',
        'textarea': 'string',
        'encryptedstring': 'string',
        'combobox': 'string',
        'base64': 'string',
        'anytype': 'string',
        'text': 'string',
        # Number types
        'int': 'integer',
        'integer': 'integer',
        'long': 'integer',
        'double': 'number',
        'currency': 'number',
        'percent': 'number',
        'number': 'number',
        # Boolean
        'boolean': 'boolean',
        'checkbox': 'boolean',
        # Date/Time types
        'date': 'date',
        'datetime': 'dateTime',
        'time': 'time',
        # Compound types
        'address': 'object',
        'location': 'object',
        'json': 'object',
        'object': 'object',
    }

    FORMAT_MAP = {
        'id': 'salesforce-id',
        'reference': 'salesforce-id',
        'email': 'email',
        'url': 'uri',
        'phone': 'phone',
        'currency': 'currency',
        'percent': 'percent',
        'date': 'date',
        'datetime': 'date-time',
        'time': 'time',
        'base64': 'byte',
    }

    DEFAULT_TYPE = 'string'

    def normalize(self, raw_type: str | None) -> str:
        key = self._key(raw_type)
        if key is None:
            return self.DEFAULT_TYPE
        if key in self.TYPE_MAP:
            return self.TYPE_MAP[key]
        # Documentation cells like "reference (Account)" or "picklist, restricted"
        match = _LEADING_TOKEN_RE.match(key)
        if match and match.group(0) in self.TYPE_MAP:
            return self.TYPE_MAP[match.group(0)]
        return self.DEFAULT_TYPE

    def format_for(self, raw_type: str | None) -> str | None:
        """JSON-schema style format hint for a describe type token."""
        key = self._key(raw_type)
        if key is None:
            return None
        return self.FORMAT_MAP.get(key)

    @staticmethod
    def _key(raw_type: str | None) -> str | None:
        if not isinstance(raw_type, str):
            return None
        key = raw_type.strip().lower()
        return key or None


_default = TypeNormalizer()


def normalize(raw_type: str | None) -> str:
    """Canonical type for ``raw_type``; never raises."""
    return _default.normalize(raw_type)


def format_for(raw_type: str | None) -> str | None:
    return _default.format_for(raw_type)
