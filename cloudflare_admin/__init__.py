#
#
#

import logging
import shlex
from collections import defaultdict

from octodns.provider.base import BaseProvider
from octodns.record import Record

from .exceptions import (
    ApiError,
    CloudflareClientException,
    CloudflareClientNotFound,
    DecodeError,
    EmptyResultError,
    SecretStoreError,
    TransportError,
    ValidationError,
)
from .models import CreateDnsRecord, DnsRecord, UpdateDnsRecord, Zone
from .record_types import DnsRecordType

__version__ = '0.1.0'

# Modules below import __version__ from the package
from .api_client import CloudflareClient  # noqa: E402
from .session import AdminSession  # noqa: E402
from .storage import KeyringSecretStore, get_token  # noqa: E402

__all__ = [
    'AdminSession',
    'ApiError',
    'CloudflareAdminProvider',
    'CloudflareClient',
    'CloudflareClientException',
    'CloudflareClientNotFound',
    'CreateDnsRecord',
    'DecodeError',
    'DnsRecord',
    'DnsRecordType',
    'EmptyResultError',
    'KeyringSecretStore',
    'SecretStoreError',
    'TransportError',
    'UpdateDnsRecord',
    'ValidationError',
    'Zone',
]


class CloudflareAdminProvider(BaseProvider):
    SUPPORTS_GEO = False
    SUPPORTS_DYNAMIC = False
    SUPPORTS_ROOT_NS = False
    SUPPORTS = set(t.wire_value for t in DnsRecordType.all())

    # Cloudflare reports "automatic" as a TTL of 1, which resolves to 300s
    AUTO_TTL = 300

    def __init__(self, id, token=None, base_url=None, *args, **kwargs):
        self.log = logging.getLogger(f'CloudflareAdminProvider[{id}]')
        self.log.debug('__init__: id=%s, token=***, base_url=%s', id, base_url)
        super().__init__(id, *args, **kwargs)

        if token is None:
            token = get_token(KeyringSecretStore())
            if token is None:
                raise ValueError(
                    f'{id}: no token configured and none stored in the keyring'
                )

        self._client = CloudflareClient(token, base_url=base_url)

        # Cache structures
        self._zone_records = {}
        self._zone_name_to_id = None

    def _append_dot(self, value):
        if value == '@' or value[-1] == '.':
            return value
        return f'{value}.'

    def _strip_dot(self, value):
        return value[:-1] if value.endswith('.') else value

    def _zone_id(self, zone_name):
        if self._zone_name_to_id is None:
            self._zone_name_to_id = {
                f'{z.name}.': z.id for z in self._client.list_zones()
            }
        try:
            return self._zone_name_to_id[zone_name]
        except KeyError:
            raise CloudflareClientNotFound()

    def _record_name(self, zone, fqdn):
        zone_name = zone.name[:-1]
        if fqdn == zone_name:
            return ''
        suffix = f'.{zone_name}'
        if fqdn.endswith(suffix):
            return fqdn[: -len(suffix)]
        return fqdn

    def _record_ttl(self, record):
        return self.AUTO_TTL if record.ttl == 1 else record.ttl

    def _data_for_multiple(self, _type, records):
        return {
            'ttl': self._record_ttl(records[0]),
            'type': _type,
            'values': [r.content for r in records],
        }

    _data_for_A = _data_for_multiple
    _data_for_AAAA = _data_for_multiple

    def _data_for_TXT(self, _type, records):
        return {
            'ttl': self._record_ttl(records[0]),
            'type': _type,
            'values': [r.content.replace(';', '\\;') for r in records],
        }

    def _data_for_CAA(self, _type, records):
        values = []
        for record in records:
            raw = record.content
            try:
                flags, tag, value = shlex.split(raw)[:3]
                values.append({'flags': int(flags), 'tag': tag, 'value': value})
            except ValueError as e:
                self.log.warning(
                    '_data_for_CAA: failed to parse CAA record %r: %s, '
                    'using fallback values (flags=0, tag=issue)',
                    raw,
                    e,
                )
                values.append({'flags': 0, 'tag': 'issue', 'value': raw})
        return {
            'ttl': self._record_ttl(records[0]),
            'type': _type,
            'values': values,
        }

    def _data_for_single(self, _type, records):
        record = records[0]
        return {
            'ttl': self._record_ttl(record),
            'type': _type,
            'value': self._append_dot(record.content),
        }

    _data_for_CNAME = _data_for_single
    _data_for_PTR = _data_for_single

    def _data_for_MX(self, _type, records):
        values = []
        for record in records:
            values.append(
                {
                    'preference': record.priority or 0,
                    'exchange': self._append_dot(record.content),
                }
            )
        return {
            'ttl': self._record_ttl(records[0]),
            'type': _type,
            'values': values,
        }

    def _data_for_NS(self, _type, records):
        return {
            'ttl': self._record_ttl(records[0]),
            'type': _type,
            'values': [self._append_dot(r.content) for r in records],
        }

    def _data_for_SRV(self, _type, records):
        values = []
        for record in records:
            # priority travels separately, content is "weight port target"
            try:
                weight, port, target = record.content.split()
                values.append(
                    {
                        'port': int(port),
                        'priority': record.priority or 0,
                        'target': self._append_dot(target),
                        'weight': int(weight),
                    }
                )
            except ValueError as e:
                self.log.warning(
                    '_data_for_SRV: failed to parse SRV record %r: %s, '
                    'skipping',
                    record.content,
                    e,
                )
        if not values:
            return None
        return {
            'ttl': self._record_ttl(records[0]),
            'type': _type,
            'values': values,
        }

    def list_zones(self):
        self.log.debug('list_zones:')
        return sorted(f'{z.name}.' for z in self._client.list_zones())

    def zone_records(self, zone):
        if zone.name not in self._zone_records:
            try:
                zone_id = self._zone_id(zone.name)
            except CloudflareClientNotFound:
                return []
            self._zone_records[zone.name] = self._client.list_dns_records(
                zone_id
            )

        return self._zone_records[zone.name]

    def populate(self, zone, target=False, lenient=False):
        self.log.debug(
            'populate: name=%s, target=%s, lenient=%s',
            zone.name,
            target,
            lenient,
        )

        values = defaultdict(lambda: defaultdict(list))
        for record in self.zone_records(zone):
            _type = record.record_type.label
            if _type not in self.SUPPORTS:
                self.log.warning(
                    'populate: skipping unsupported %s record', _type
                )
                continue
            name = self._record_name(zone, record.name)
            values[name][_type].append(record)

        before = len(zone.records)
        for name, types in values.items():
            for _type, records in types.items():
                data_for = getattr(self, f'_data_for_{_type}')
                data = data_for(_type, records)
                if data is None:
                    continue
                record = Record.new(
                    zone, name, data, source=self, lenient=lenient
                )
                zone.add_record(record, lenient=lenient)

        exists = zone.name in self._zone_records
        self.log.info(
            'populate:   found %s records, exists=%s',
            len(zone.records) - before,
            exists,
        )
        return exists

    def _payload(self, record, content, priority=None):
        return CreateDnsRecord(
            record_type=record._type,
            name=self._strip_dot(record.fqdn),
            content=content,
            ttl=record.ttl,
            priority=priority,
        )

    def _params_for_multiple(self, record):
        for value in record.values:
            yield self._payload(record, value.replace('\\;', ';'))

    _params_for_A = _params_for_multiple
    _params_for_AAAA = _params_for_multiple
    _params_for_TXT = _params_for_multiple

    def _params_for_CAA(self, record):
        for value in record.values:
            yield self._payload(
                record, f'{value.flags} {value.tag} "{value.value}"'
            )

    def _params_for_single(self, record):
        yield self._payload(record, self._strip_dot(record.value))

    _params_for_CNAME = _params_for_single
    _params_for_PTR = _params_for_single

    def _params_for_MX(self, record):
        for value in record.values:
            yield self._payload(
                record,
                self._strip_dot(value.exchange),
                priority=value.preference,
            )

    def _params_for_NS(self, record):
        for value in record.values:
            yield self._payload(record, self._strip_dot(value))

    def _params_for_SRV(self, record):
        for value in record.values:
            yield self._payload(
                record,
                f'{value.weight} {value.port} {self._strip_dot(value.target)}',
                priority=value.priority,
            )

    def _payloads_for(self, record):
        params_for = getattr(self, f'_params_for_{record._type}')
        payloads = list(params_for(record))
        # Validate everything before the first request goes out
        for payload in payloads:
            payload.record_type.validate_content(payload.content)
        return payloads

    def _apply_Create(self, zone_id, change):
        for payload in self._payloads_for(change.new):
            self._client.create_dns_record(zone_id, payload)

    def _remote_records(self, record):
        zone = record.zone
        return [
            r
            for r in self.zone_records(zone)
            if self._record_name(zone, r.name) == record.name
            and r.record_type.label == record._type
        ]

    def _apply_Update(self, zone_id, change):
        payloads = self._payloads_for(change.new)
        # Recreated records keep the proxy setting the remote ones had
        proxied = any(r.proxied for r in self._remote_records(change.existing))
        if proxied:
            payloads = [
                p.model_copy(update={'proxied': True})
                if p.record_type.is_proxiable()
                else p
                for p in payloads
            ]
        # It's simpler to delete-then-recreate than to match up values
        self._apply_Delete(zone_id, change)
        for payload in payloads:
            self._client.create_dns_record(zone_id, payload)

    def _apply_Delete(self, zone_id, change):
        for record in self._remote_records(change.existing):
            self._client.delete_dns_record(zone_id, record.id)

    def _apply(self, plan):
        desired = plan.desired
        changes = plan.changes
        self.log.debug(
            '_apply: zone=%s, len(changes)=%d', desired.name, len(changes)
        )

        zone_id = self._zone_id(desired.name)

        for change in changes:
            class_name = change.__class__.__name__
            getattr(self, f'_apply_{class_name}')(zone_id, change)

        # Clear out the cache if any
        self._zone_records.pop(desired.name, None)
