#
#
#

from octodns.provider import ProviderException


class CloudflareClientException(ProviderException):
    pass


class CloudflareClientNotFound(CloudflareClientException):
    def __init__(self):
        super().__init__('Not Found')


class TransportError(CloudflareClientException):
    """The HTTP call itself failed (connection, timeout, error status)."""


class DecodeError(CloudflareClientException):
    """The response body did not match the expected envelope shape."""


class ApiError(CloudflareClientException):
    """The envelope reported ``success = false``.

    ``message`` is the text of the first reported error, or ``''`` when the
    server sent none.
    """

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])


class EmptyResultError(CloudflareClientException):
    def __init__(self):
        super().__init__('No result returned')


class ValidationError(CloudflareClientException):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class SecretStoreError(Exception):
    pass
