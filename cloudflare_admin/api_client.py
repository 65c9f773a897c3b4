#
#
#

import logging
from typing import List

from pydantic import ValidationError as PydanticValidationError
from requests import RequestException, Session

from octodns import __VERSION__ as octodns_version

from . import __version__ as package_version
from .exceptions import ApiError, DecodeError, EmptyResultError, TransportError
from .models import (
    ApiResponse,
    DeleteResult,
    DnsRecord,
    TokenVerifyResult,
    Zone,
)


class CloudflareClient(object):
    BASE_URL = 'https://api.cloudflare.com/client/v4'
    ZONES_PER_PAGE = 50
    RECORDS_PER_PAGE = 100

    def __init__(self, token, base_url=None):
        self.log = logging.getLogger('CloudflareClient')
        session = Session()
        session.headers.update(
            {
                'Authorization': f'Bearer {token}',
                'User-Agent': (
                    f'octodns/{octodns_version} '
                    f'cloudflare-admin/{package_version}'
                ),
            }
        )
        self._session = session
        self._base_url = base_url or self.BASE_URL

    def _do(self, method, path, params=None, data=None):
        url = f'{self._base_url}{path}'
        self.log.debug(
            '_do: method=%s, path=%s, params=%s', method, path, params
        )
        try:
            return self._session.request(method, url, params=params, json=data)
        except RequestException as e:
            raise TransportError(str(e)) from e

    def _raise_for_status(self, response):
        try:
            response.raise_for_status()
        except RequestException as e:
            raise TransportError(str(e)) from e

    def _do_envelope(self, method, path, result_type, params=None, data=None):
        response = self._do(method, path, params, data)
        try:
            body = response.json()
        except ValueError as e:
            # An error page from a proxy is a transport problem, garbage with
            # a 2xx status is a decoding one
            self._raise_for_status(response)
            raise DecodeError(f'{method} {path}: response is not JSON') from e
        try:
            return ApiResponse[result_type].model_validate(body)
        except PydanticValidationError as e:
            self._raise_for_status(response)
            raise DecodeError(
                f'{method} {path}: unexpected response shape: {e}'
            ) from e

    def _check(self, resp, action):
        if resp.success:
            return resp
        if not resp.errors:
            self.log.debug(
                '%s: failed without error entries, envelope=%s',
                action,
                resp.model_dump(),
            )
        raise ApiError(
            resp.first_error_message(),
            [(e.code, e.message) for e in resp.errors],
        )

    def _paginate(self, path, result_type, per_page):
        ret = []

        page = 1
        while True:
            params = {'page': page, 'per_page': per_page}
            resp = self._check(
                self._do_envelope('GET', path, List[result_type], params),
                f'GET {path}',
            )

            items = resp.result or []
            info = resp.result_info
            # Without pagination metadata there is no way to know about more
            # pages, so stop rather than walk forever
            last_page = not items or info is None or page >= info.total_pages

            ret += items
            self.log.debug(
                '_paginate: path=%s, page=%d, items=%d, last_page=%s',
                path,
                page,
                len(items),
                last_page,
            )
            if last_page:
                break

            page += 1

        return ret

    def verify_token(self):
        resp = self._do_envelope(
            'GET', '/user/tokens/verify', TokenVerifyResult
        )
        return (
            resp.success
            and resp.result is not None
            and resp.result.status == 'active'
        )

    def list_zones(self):
        return self._paginate('/zones', Zone, self.ZONES_PER_PAGE)

    def list_dns_records(self, zone_id):
        return self._paginate(
            f'/zones/{zone_id}/dns_records', DnsRecord, self.RECORDS_PER_PAGE
        )

    def _record_result(self, resp, action):
        self._check(resp, action)
        if resp.result is None:
            raise EmptyResultError()
        return resp.result

    def create_dns_record(self, zone_id, record):
        path = f'/zones/{zone_id}/dns_records'
        resp = self._do_envelope(
            'POST', path, DnsRecord, data=record.to_payload()
        )
        return self._record_result(resp, f'POST {path}')

    def update_dns_record(self, zone_id, record_id, record):
        path = f'/zones/{zone_id}/dns_records/{record_id}'
        resp = self._do_envelope(
            'PATCH', path, DnsRecord, data=record.to_payload()
        )
        return self._record_result(resp, f'PATCH {path}')

    def delete_dns_record(self, zone_id, record_id):
        path = f'/zones/{zone_id}/dns_records/{record_id}'
        self._check(
            self._do_envelope('DELETE', path, DeleteResult), f'DELETE {path}'
        )
