#
#
#

"""DNS record kinds understood by the Cloudflare API and their local rules.

Every kind carries three fixed pieces of behaviour: whether it can be served
through the Cloudflare proxy, whether the API requires a ``priority`` for it,
and how its ``content`` is checked before anything is sent.
"""

from collections import namedtuple
from enum import Enum
from ipaddress import IPv4Address, IPv6Address

from .exceptions import ValidationError


class DnsRecordType(Enum):
    A = 'A'
    AAAA = 'AAAA'
    CNAME = 'CNAME'
    MX = 'MX'
    TXT = 'TXT'
    NS = 'NS'
    SRV = 'SRV'
    CAA = 'CAA'
    PTR = 'PTR'
    # Kinds we don't model yet. Only ever produced when reading records and
    # never written back.
    OTHER = None

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.OTHER
        return None

    @classmethod
    def all(cls):
        """The concrete kinds, in the order they are offered for editing."""
        return _ALL

    @property
    def wire_value(self):
        if self is DnsRecordType.OTHER:
            raise ValueError('record type OTHER has no wire representation')
        return self.value

    @property
    def label(self):
        if self is DnsRecordType.OTHER:
            return 'Other'
        return self.value

    def is_proxiable(self):
        return _RULES[self].proxiable

    def requires_priority(self):
        return _RULES[self].requires_priority

    def validate_content(self, content):
        """Raise ValidationError when ``content`` is unusable for this kind."""
        validate = _RULES[self].validate
        if validate is not None:
            validate(content)

    def __str__(self):
        return self.label


def _validate_ipv4(content):
    try:
        IPv4Address(content)
    except ValueError:
        raise ValidationError('Invalid IPv4 address')


def _validate_ipv6(content):
    # ipaddress accepts a trailing %scope, which is not part of an address
    if '%' in content:
        raise ValidationError('Invalid IPv6 address')
    try:
        IPv6Address(content)
    except ValueError:
        raise ValidationError('Invalid IPv6 address')


def _validate_not_empty(content):
    if not content:
        raise ValidationError('Content cannot be empty')


_Rule = namedtuple('_Rule', ('proxiable', 'requires_priority', 'validate'))

_RULES = {
    DnsRecordType.A: _Rule(True, False, _validate_ipv4),
    DnsRecordType.AAAA: _Rule(True, False, _validate_ipv6),
    DnsRecordType.CNAME: _Rule(True, False, _validate_not_empty),
    DnsRecordType.MX: _Rule(False, True, _validate_not_empty),
    DnsRecordType.TXT: _Rule(False, False, None),
    DnsRecordType.NS: _Rule(False, False, _validate_not_empty),
    # SRV needs a priority but its content is not checked
    DnsRecordType.SRV: _Rule(False, True, None),
    DnsRecordType.CAA: _Rule(False, False, None),
    DnsRecordType.PTR: _Rule(False, False, _validate_not_empty),
    DnsRecordType.OTHER: _Rule(False, False, None),
}

_ALL = tuple(t for t in DnsRecordType if t is not DnsRecordType.OTHER)


def all_variants():
    return DnsRecordType.all()


def is_proxiable(record_type):
    return record_type.is_proxiable()


def requires_priority(record_type):
    return record_type.requires_priority()


def validate_content(record_type, content):
    record_type.validate_content(content)
