#
# Tests for AdminSession, the headless zone/record controller
#

from unittest import TestCase
from unittest.mock import Mock

from cloudflare_admin.api_client import CloudflareClient
from cloudflare_admin.exceptions import (
    ApiError,
    SecretStoreError,
    TransportError,
    ValidationError,
)
from cloudflare_admin.models import DnsRecord, Zone
from cloudflare_admin.record_types import DnsRecordType
from cloudflare_admin.session import (
    AdminSession,
    build_create_payload,
    build_update_payload,
    parse_priority,
    parse_ttl,
)
from cloudflare_admin.storage import APPEARANCE_KEY, TOKEN_KEY, AppearanceMode


class MemoryStore(object):
    def __init__(self, **values):
        self.values = dict(values)

    def get_secret(self, key):
        return self.values.get(key)

    def set_secret(self, key, value):
        self.values[key] = value

    def delete_secret(self, key):
        self.values.pop(key, None)


class BrokenStore(MemoryStore):
    def set_secret(self, key, value):
        raise SecretStoreError('locked')

    def delete_secret(self, key):
        raise SecretStoreError('locked')


def _zone(i):
    return Zone.model_validate(
        {
            'id': f'z{i}',
            'name': f'zone{i}.tests',
            'status': 'active',
            'account': {'id': 'a1', 'name': 'Unit'},
        }
    )


def _record(i, _type='A', content='1.2.3.4', **extra):
    data = {
        'id': f'r{i}',
        'type': _type,
        'name': f'host{i}.zone1.tests',
        'content': content,
        'ttl': 1,
    }
    data.update(extra)
    return DnsRecord.model_validate(data)


class TestParsing(TestCase):
    def test_parse_ttl(self):
        self.assertEqual(300, parse_ttl('300'))
        self.assertEqual(1, parse_ttl(''))
        self.assertEqual(1, parse_ttl('auto'))
        self.assertEqual(1, parse_ttl('-5'))
        self.assertEqual(120, parse_ttl(120))
        self.assertEqual(4294967295, parse_ttl('4294967295'))
        self.assertEqual(1, parse_ttl('4294967296'))

    def test_parse_priority(self):
        self.assertEqual(10, parse_priority('10'))
        self.assertIsNone(parse_priority(''))
        self.assertIsNone(parse_priority(None))
        self.assertIsNone(parse_priority('70000'))


class TestPayloadBuilders(TestCase):
    def test_create_mx_omits_proxied(self):
        payload = build_create_payload(
            DnsRecordType.MX, 'zone1.tests', 'mx.zone1.tests', priority='10'
        )
        self.assertEqual(
            {
                'type': 'MX',
                'name': 'zone1.tests',
                'content': 'mx.zone1.tests',
                'ttl': 1,
                'priority': 10,
            },
            payload.to_payload(),
        )

    def test_create_a_includes_proxied(self):
        payload = build_create_payload(
            'A', 'www.zone1.tests', '1.2.3.4', ttl='300', proxied=True
        )
        self.assertIs(True, payload.to_payload()['proxied'])
        payload = build_create_payload('A', 'www.zone1.tests', '1.2.3.4')
        self.assertIs(False, payload.to_payload()['proxied'])

    def test_create_requires_name_and_content(self):
        with self.assertRaises(ValidationError) as ctx:
            build_create_payload('A', '', '1.2.3.4')
        self.assertEqual('Record name is required', ctx.exception.message)
        with self.assertRaises(ValidationError) as ctx:
            build_create_payload('TXT', 'zone1.tests', '')
        self.assertEqual('Content is required', ctx.exception.message)

    def test_create_requires_priority_for_srv(self):
        with self.assertRaises(ValidationError) as ctx:
            build_create_payload(
                'SRV', '_sip._tcp.zone1.tests', '5 5060 sip.zone1.tests'
            )
        self.assertEqual(
            'Priority is required for SRV records', ctx.exception.message
        )

    def test_create_rejects_unknown_type(self):
        with self.assertRaises(ValidationError):
            build_create_payload('HTTPS', 'zone1.tests', '1 . alpn=h2')

    def test_update_sets_expected_fields(self):
        payload = build_update_payload(
            'TXT', 'zone1.tests', 'hello', ttl='60', comment='note'
        )
        self.assertEqual(
            {
                'type': 'TXT',
                'name': 'zone1.tests',
                'content': 'hello',
                'ttl': 60,
                'comment': 'note',
            },
            payload.to_payload(),
        )

    def test_update_validates_content(self):
        with self.assertRaises(ValidationError) as ctx:
            build_update_payload('AAAA', 'www.zone1.tests', 'not-an-ip')
        self.assertEqual('Invalid IPv6 address', ctx.exception.message)


class SessionTestCase(TestCase):
    def setUp(self):
        self.client = Mock(spec=CloudflareClient)
        self.client.verify_token.return_value = True
        self.client.list_zones.return_value = [_zone(1), _zone(2)]
        self.client.list_dns_records.return_value = [_record(1), _record(2)]
        self.factory = Mock(return_value=self.client)
        self.store = MemoryStore()
        self.session = AdminSession(self.store, client_factory=self.factory)

    def connect(self):
        self.assertTrue(self.session.save_token('token'))
        self.client.reset_mock()


class TestTokenLifecycle(SessionTestCase):
    def test_save_token_loads_first_zone(self):
        self.assertTrue(self.session.save_token('token'))

        self.factory.assert_called_once_with('token')
        self.assertEqual('token', self.store.values[TOKEN_KEY])
        self.assertEqual(2, len(self.session.zones))
        self.assertEqual(0, self.session.selected_zone_index)
        self.client.list_dns_records.assert_called_once_with('z1')
        self.assertEqual(2, len(self.session.dns_records))
        self.assertIsNone(self.session.error)
        self.assertIsNone(self.session.notification)

    def test_empty_token(self):
        self.assertFalse(self.session.save_token(''))
        self.assertEqual('Please enter an API token', self.session.error)
        self.factory.assert_not_called()

    def test_inactive_token(self):
        self.client.verify_token.return_value = False
        self.assertFalse(self.session.save_token('token'))
        self.assertEqual('Token is not active', self.session.error)
        self.assertNotIn(TOKEN_KEY, self.store.values)
        self.assertIsNone(self.session.client)

    def test_verify_failure(self):
        self.client.verify_token.side_effect = TransportError('timed out')
        self.assertFalse(self.session.save_token('token'))
        self.assertEqual(
            'Failed to verify token: timed out', self.session.error
        )

    def test_store_failure(self):
        session = AdminSession(BrokenStore(), client_factory=self.factory)
        self.assertFalse(session.save_token('token'))
        self.assertEqual('Failed to store token: locked', session.error)
        self.assertIsNone(session.client)

    def test_replacing_token_resets_and_notifies(self):
        self.connect()
        self.session.select_zone(1)
        self.assertTrue(self.session.save_token('other'))
        self.assertEqual(
            'API token updated successfully', self.session.notification
        )
        self.assertEqual(0, self.session.selected_zone_index)

    def test_restore(self):
        self.store.values[TOKEN_KEY] = 'stored'
        self.store.values[APPEARANCE_KEY] = 'dark'
        self.assertTrue(self.session.restore())
        self.factory.assert_called_once_with('stored')
        self.assertEqual(AppearanceMode.DARK, self.session.appearance_mode)
        self.assertEqual(2, len(self.session.zones))

    def test_restore_without_token(self):
        self.assertFalse(self.session.restore())
        self.factory.assert_not_called()
        self.assertEqual(AppearanceMode.AUTO, self.session.appearance_mode)

    def test_clear_token(self):
        self.connect()
        self.assertTrue(self.session.clear_token())
        self.assertNotIn(TOKEN_KEY, self.store.values)
        self.assertIsNone(self.session.client)
        self.assertEqual([], self.session.zones)
        self.assertEqual([], self.session.dns_records)
        self.assertIsNone(self.session.selected_zone_index)

    def test_clear_token_failure_keeps_state(self):
        session = AdminSession(BrokenStore(), client_factory=self.factory)
        session.client = self.client
        session.zones = [_zone(1)]
        self.assertFalse(session.clear_token())
        self.assertEqual('Failed to delete token: locked', session.error)
        self.assertIs(self.client, session.client)
        self.assertEqual(1, len(session.zones))


class TestLoading(SessionTestCase):
    def test_failed_zone_reload_keeps_previous(self):
        self.connect()
        self.client.list_zones.side_effect = ApiError('Rate limited')
        self.assertFalse(self.session.load_zones())
        self.assertEqual(
            'Failed to load zones: Rate limited', self.session.error
        )
        self.assertEqual(['z1', 'z2'], [z.id for z in self.session.zones])

    def test_failed_record_reload_keeps_previous(self):
        self.connect()
        self.client.list_dns_records.side_effect = ApiError('')
        self.assertFalse(self.session.load_dns_records())
        self.assertEqual('Failed to load DNS records: ', self.session.error)
        self.assertEqual(2, len(self.session.dns_records))

    def test_select_zone(self):
        self.connect()
        self.client.list_dns_records.return_value = [_record(9)]
        self.assertTrue(self.session.select_zone(1))
        self.assertEqual('z2', self.session.selected_zone.id)
        self.client.list_dns_records.assert_called_once_with('z2')
        self.assertEqual(['r9'], [r.id for r in self.session.dns_records])

    def test_select_zone_out_of_range(self):
        self.connect()
        self.assertFalse(self.session.select_zone(5))
        self.client.list_dns_records.assert_not_called()

    def test_without_client_nothing_happens(self):
        self.assertFalse(self.session.load_zones())
        self.assertFalse(self.session.load_dns_records())
        self.assertFalse(self.session.delete_record('r1'))


class TestRecordEditing(SessionTestCase):
    def test_create(self):
        self.connect()
        self.assertTrue(
            self.session.create_record(
                'A', 'www.zone1.tests', '1.2.3.4', ttl='300', proxied=True
            )
        )
        zone_id, payload = self.client.create_dns_record.call_args[0]
        self.assertEqual('z1', zone_id)
        self.assertEqual(
            {
                'type': 'A',
                'name': 'www.zone1.tests',
                'content': '1.2.3.4',
                'ttl': 300,
                'proxied': True,
            },
            payload.to_payload(),
        )
        self.assertEqual(
            'DNS record created successfully', self.session.notification
        )
        self.client.list_dns_records.assert_called_once_with('z1')

    def test_invalid_create_never_reaches_client(self):
        self.connect()
        self.assertFalse(
            self.session.create_record('A', 'www.zone1.tests', '256.1.1.1')
        )
        self.assertEqual('Invalid IPv4 address', self.session.error)
        self.client.create_dns_record.assert_not_called()
        self.assertEqual(2, len(self.session.dns_records))

    def test_create_rejected_by_server(self):
        self.connect()
        self.client.create_dns_record.side_effect = ApiError(
            'Record already exists.'
        )
        self.assertFalse(
            self.session.create_record('TXT', 'zone1.tests', 'hello')
        )
        self.assertEqual(
            'Failed to create record: Record already exists.',
            self.session.error,
        )
        self.client.list_dns_records.assert_not_called()

    def test_edit_and_update(self):
        self.connect()
        record = _record(5, 'MX', 'mx.zone1.tests', priority=10, comment='x')
        form = self.session.edit_record(record)
        self.assertEqual(
            {
                'record_type': DnsRecordType.MX,
                'name': 'host5.zone1.tests',
                'content': 'mx.zone1.tests',
                'ttl': '1',
                'priority': '10',
                'comment': 'x',
                'proxied': False,
            },
            form,
        )

        self.assertTrue(
            self.session.update_record(
                form['record_type'],
                form['name'],
                'mx2.zone1.tests',
                ttl=form['ttl'],
                priority=form['priority'],
                comment=form['comment'],
                proxied=True,
            )
        )
        zone_id, record_id, payload = self.client.update_dns_record.call_args[
            0
        ]
        self.assertEqual(('z1', 'r5'), (zone_id, record_id))
        self.assertEqual(
            {
                'type': 'MX',
                'name': 'host5.zone1.tests',
                'content': 'mx2.zone1.tests',
                'ttl': 1,
                'priority': 10,
                'comment': 'x',
            },
            payload.to_payload(),
        )
        self.assertIsNone(self.session.editing_record)
        self.assertEqual(
            'DNS record updated successfully', self.session.notification
        )

    def test_update_without_editing_record(self):
        self.connect()
        self.assertFalse(
            self.session.update_record('A', 'www.zone1.tests', '1.2.3.4')
        )
        self.client.update_dns_record.assert_not_called()

    def test_cancel_edit(self):
        self.session.edit_record(_record(1))
        self.session.cancel_edit()
        self.assertIsNone(self.session.editing_record)

    def test_delete(self):
        self.connect()
        self.assertTrue(self.session.delete_record('r1'))
        self.client.delete_dns_record.assert_called_once_with('z1', 'r1')
        self.client.list_dns_records.assert_called_once_with('z1')
        self.assertEqual(
            'DNS record deleted successfully', self.session.notification
        )

    def test_delete_failure(self):
        self.connect()
        self.client.delete_dns_record.side_effect = ApiError(
            'Record does not exist.'
        )
        self.assertFalse(self.session.delete_record('r1'))
        self.assertEqual(
            'Failed to delete record: Record does not exist.',
            self.session.error,
        )
        self.assertEqual(2, len(self.session.dns_records))


class TestAppearance(SessionTestCase):
    def test_set_appearance_mode(self):
        self.assertTrue(self.session.set_appearance_mode('light'))
        self.assertEqual(AppearanceMode.LIGHT, self.session.appearance_mode)
        self.assertEqual('light', self.store.values[APPEARANCE_KEY])

    def test_set_appearance_mode_failure(self):
        session = AdminSession(BrokenStore())
        self.assertFalse(session.set_appearance_mode(AppearanceMode.DARK))
        self.assertEqual(AppearanceMode.AUTO, session.appearance_mode)
