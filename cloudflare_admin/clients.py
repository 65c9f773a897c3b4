#
#
#

"""Protocol definitions for the collaborators the package talks to.

Structural typing (PEP 544) lets the session and the provider accept any
object with the right methods, mocks in tests included, without explicit
inheritance.
"""

from typing import List, Optional, Protocol

from .models import CreateDnsRecord, DnsRecord, UpdateDnsRecord, Zone


class DNSClient(Protocol):
    """Interface of an authenticated Cloudflare DNS client.

    CloudflareClient conforms to this. Every method raises a subclass of
    CloudflareClientException on failure and never retries.
    """

    def verify_token(self) -> bool:
        """Check the token the client was built with.

        Returns:
            True only when the token is reported as active
        """
        ...

    def list_zones(self) -> List[Zone]:
        """List every zone the token can see, all pages concatenated."""
        ...

    def list_dns_records(self, zone_id: str) -> List[DnsRecord]:
        """List every record of a zone, all pages concatenated.

        Args:
            zone_id: Zone identifier
        """
        ...

    def create_dns_record(
        self, zone_id: str, record: CreateDnsRecord
    ) -> DnsRecord:
        """Create a record.

        Args:
            zone_id: Zone identifier
            record: Creation payload

        Returns:
            The record as stored by the server
        """
        ...

    def update_dns_record(
        self, zone_id: str, record_id: str, record: UpdateDnsRecord
    ) -> DnsRecord:
        """Partially update a record with the fields set on ``record``.

        Args:
            zone_id: Zone identifier
            record_id: Record identifier
            record: Update payload

        Returns:
            The record as stored by the server
        """
        ...

    def delete_dns_record(self, zone_id: str, record_id: str) -> None:
        """Delete a record.

        Args:
            zone_id: Zone identifier
            record_id: Record identifier
        """
        ...


class SecretStore(Protocol):
    """Minimal key/value store for secret strings."""

    def get_secret(self, key: str) -> Optional[str]:
        """Return the stored value, or None when nothing is stored."""
        ...

    def set_secret(self, key: str, value: str) -> None: ...

    def delete_secret(self, key: str) -> None:
        """Remove the value. Removing an absent key is not an error."""
        ...
