#
#
#

"""Headless controller for the zone/record editor.

AdminSession owns the loaded zones and records and drives a DNS client on
behalf of a front end. Failures never propagate out of it: they end up in
``error`` as a message for the user, and whatever was loaded before stays
as it was.
"""

import logging
from typing import Callable, List, Optional

from . import storage
from .api_client import CloudflareClient
from .clients import DNSClient, SecretStore
from .exceptions import (
    CloudflareClientException,
    SecretStoreError,
    ValidationError,
)
from .models import CreateDnsRecord, DnsRecord, UpdateDnsRecord, Zone
from .record_types import DnsRecordType
from .storage import AppearanceMode

AUTOMATIC_TTL = 1
MAX_TTL = 0xFFFFFFFF


def parse_ttl(value):
    """Form text to a TTL, anything unusable meaning automatic."""
    try:
        ttl = int(value)
    except (TypeError, ValueError):
        return AUTOMATIC_TTL
    return ttl if 0 <= ttl <= MAX_TTL else AUTOMATIC_TTL


def parse_priority(value):
    try:
        priority = int(value)
    except (TypeError, ValueError):
        return None
    return priority if 0 <= priority <= 65535 else None


def _record_type(value):
    if value is None:
        return DnsRecordType.A
    record_type = DnsRecordType(value)
    if record_type is DnsRecordType.OTHER:
        raise ValidationError(f'Unsupported record type {value}')
    return record_type


def _validate(record_type, content, priority):
    record_type.validate_content(content)
    if record_type.requires_priority() and priority is None:
        raise ValidationError(
            f'Priority is required for {record_type} records'
        )


def build_create_payload(
    record_type,
    name,
    content,
    ttl=AUTOMATIC_TTL,
    priority=None,
    comment=None,
    proxied=False,
) -> CreateDnsRecord:
    record_type = _record_type(record_type)
    if not name:
        raise ValidationError('Record name is required')
    if not content:
        raise ValidationError('Content is required')
    priority = parse_priority(priority)
    _validate(record_type, content, priority)

    return CreateDnsRecord(
        record_type=record_type,
        name=name,
        content=content,
        ttl=parse_ttl(ttl),
        proxied=bool(proxied) if record_type.is_proxiable() else None,
        priority=priority,
        comment=comment or None,
    )


def build_update_payload(
    record_type,
    name,
    content,
    ttl=AUTOMATIC_TTL,
    priority=None,
    comment=None,
    proxied=False,
) -> UpdateDnsRecord:
    record_type = _record_type(record_type)
    priority = parse_priority(priority)
    _validate(record_type, content, priority)

    fields = {
        'record_type': record_type,
        'name': name,
        'content': content,
        'ttl': parse_ttl(ttl),
    }
    if record_type.is_proxiable():
        fields['proxied'] = bool(proxied)
    if priority is not None:
        fields['priority'] = priority
    if comment:
        fields['comment'] = comment
    return UpdateDnsRecord(**fields)


class AdminSession(object):
    def __init__(
        self,
        store: SecretStore,
        client_factory: Callable[[str], DNSClient] = CloudflareClient,
    ):
        self.log = logging.getLogger('AdminSession')
        self.store = store
        self.client_factory = client_factory

        self.client: Optional[DNSClient] = None
        self.zones: List[Zone] = []
        self.dns_records: List[DnsRecord] = []
        self.selected_zone_index: Optional[int] = None
        self.editing_record: Optional[DnsRecord] = None
        self.error: Optional[str] = None
        self.notification: Optional[str] = None
        self.appearance_mode = AppearanceMode.AUTO

    @property
    def selected_zone(self):
        index = self.selected_zone_index
        if index is None or not 0 <= index < len(self.zones):
            return None
        return self.zones[index]

    def _fail(self, message):
        self.log.warning('%s', message)
        self.error = message
        return False

    def _reset_zones(self):
        self.zones = []
        self.dns_records = []
        self.selected_zone_index = None
        self.editing_record = None

    def restore(self):
        """Pick up the stored preference and token, loading zones if any."""
        try:
            mode = storage.get_appearance_mode(self.store)
        except SecretStoreError as e:
            self.log.warning('restore: appearance mode unavailable, %s', e)
            mode = None
        if mode is not None:
            self.appearance_mode = mode

        if not storage.has_token(self.store):
            self.log.debug('restore: no stored token')
            return False
        try:
            token = storage.get_token(self.store)
        except SecretStoreError as e:
            return self._fail(f'Failed to read token: {e}')
        self.client = self.client_factory(token)
        return self.load_zones()

    def save_token(self, token):
        if not token:
            return self._fail('Please enter an API token')
        self.error = None

        client = self.client_factory(token)
        try:
            active = client.verify_token()
        except CloudflareClientException as e:
            return self._fail(f'Failed to verify token: {e}')
        if not active:
            return self._fail('Token is not active')

        try:
            storage.store_token(self.store, token)
        except SecretStoreError as e:
            return self._fail(f'Failed to store token: {e}')

        replacing = self.client is not None
        self.client = client
        self._reset_zones()
        if replacing:
            self.notification = 'API token updated successfully'
        self.log.info('save_token: token verified and stored, token=***')
        return self.load_zones()

    def clear_token(self):
        try:
            storage.delete_token(self.store)
        except SecretStoreError as e:
            return self._fail(f'Failed to delete token: {e}')
        self.client = None
        self._reset_zones()
        self.error = None
        return True

    def load_zones(self):
        if self.client is None:
            return False
        self.error = None
        try:
            zones = self.client.list_zones()
        except CloudflareClientException as e:
            return self._fail(f'Failed to load zones: {e}')

        self.log.debug('load_zones: found %d zones', len(zones))
        self.zones = zones
        if zones and self.selected_zone_index is None:
            self.selected_zone_index = 0
            return self.load_dns_records()
        return True

    def select_zone(self, index):
        if not 0 <= index < len(self.zones):
            return self._fail(f'No zone at index {index}')
        self.selected_zone_index = index
        self.editing_record = None
        return self.load_dns_records()

    def load_dns_records(self):
        zone = self.selected_zone
        if self.client is None or zone is None:
            return False
        self.error = None
        try:
            records = self.client.list_dns_records(zone.id)
        except CloudflareClientException as e:
            return self._fail(f'Failed to load DNS records: {e}')

        self.log.debug(
            'load_dns_records: zone=%s, found %d records',
            zone.name,
            len(records),
        )
        self.dns_records = records
        return True

    def create_record(self, record_type, name, content, **kwargs):
        zone = self.selected_zone
        if self.client is None or zone is None:
            return False
        try:
            payload = build_create_payload(record_type, name, content, **kwargs)
        except ValidationError as e:
            return self._fail(e.message)

        self.error = None
        try:
            self.client.create_dns_record(zone.id, payload)
        except CloudflareClientException as e:
            return self._fail(f'Failed to create record: {e}')

        self.editing_record = None
        self.notification = 'DNS record created successfully'
        self.load_dns_records()
        return True

    def edit_record(self, record):
        """Start editing ``record``, returning the values to show in a form."""
        self.editing_record = record
        return {
            'record_type': record.record_type,
            'name': record.name,
            'content': record.content,
            'ttl': str(record.ttl),
            'priority': '' if record.priority is None else str(record.priority),
            'comment': record.comment or '',
            'proxied': record.proxied,
        }

    def cancel_edit(self):
        self.editing_record = None

    def update_record(self, record_type, name, content, **kwargs):
        zone = self.selected_zone
        editing = self.editing_record
        if self.client is None or zone is None or editing is None:
            return False
        try:
            payload = build_update_payload(record_type, name, content, **kwargs)
        except ValidationError as e:
            return self._fail(e.message)

        self.error = None
        try:
            self.client.update_dns_record(zone.id, editing.id, payload)
        except CloudflareClientException as e:
            return self._fail(f'Failed to update record: {e}')

        self.editing_record = None
        self.notification = 'DNS record updated successfully'
        self.load_dns_records()
        return True

    def delete_record(self, record_id):
        zone = self.selected_zone
        if self.client is None or zone is None:
            return False
        self.error = None
        try:
            self.client.delete_dns_record(zone.id, record_id)
        except CloudflareClientException as e:
            return self._fail(f'Failed to delete record: {e}')

        editing = self.editing_record
        if editing is not None and editing.id == record_id:
            self.editing_record = None
        self.notification = 'DNS record deleted successfully'
        self.load_dns_records()
        return True

    def set_appearance_mode(self, mode):
        if not isinstance(mode, AppearanceMode):
            mode = AppearanceMode.parse(mode)
        try:
            storage.store_appearance_mode(self.store, mode)
        except SecretStoreError as e:
            return self._fail(f'Failed to save appearance mode: {e}')
        self.appearance_mode = mode
        return True
