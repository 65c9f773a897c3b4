#
#
#

"""Token and preference persistence in the operating system keyring."""

import logging
from enum import Enum

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .exceptions import SecretStoreError

SERVICE_NAME = 'cloudflare-admin'
TOKEN_KEY = 'api_token'
APPEARANCE_KEY = 'appearance_mode'

log = logging.getLogger('cloudflare_admin.storage')


class AppearanceMode(Enum):
    LIGHT = 'light'
    DARK = 'dark'
    AUTO = 'auto'

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            return cls.AUTO

    @property
    def label(self):
        return _APPEARANCE_LABELS[self]


_APPEARANCE_LABELS = {
    AppearanceMode.LIGHT: 'Light',
    AppearanceMode.DARK: 'Dark',
    AppearanceMode.AUTO: 'Auto (System)',
}


class KeyringSecretStore(object):
    def __init__(self, service_name=SERVICE_NAME):
        self.service_name = service_name

    def get_secret(self, key):
        try:
            return keyring.get_password(self.service_name, key)
        except KeyringError as e:
            raise SecretStoreError(f'Failed to read {key}: {e}') from e

    def set_secret(self, key, value):
        try:
            keyring.set_password(self.service_name, key, value)
        except KeyringError as e:
            raise SecretStoreError(f'Failed to store {key}: {e}') from e

    def delete_secret(self, key):
        try:
            keyring.delete_password(self.service_name, key)
        except PasswordDeleteError:
            # Already gone
            log.debug('delete_secret: key=%s was not set', key)
        except KeyringError as e:
            raise SecretStoreError(f'Failed to delete {key}: {e}') from e


def store_token(store, token):
    store.set_secret(TOKEN_KEY, token)


def get_token(store):
    return store.get_secret(TOKEN_KEY)


def delete_token(store):
    store.delete_secret(TOKEN_KEY)


def has_token(store):
    try:
        return get_token(store) is not None
    except SecretStoreError:
        return False


def store_appearance_mode(store, mode):
    store.set_secret(APPEARANCE_KEY, mode.value)


def get_appearance_mode(store):
    value = store.get_secret(APPEARANCE_KEY)
    if value is None:
        return None
    return AppearanceMode.parse(value)
