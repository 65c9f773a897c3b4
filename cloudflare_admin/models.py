#
#
#

"""Typed shapes of the Cloudflare v4 API.

Every response is wrapped in the same envelope (``ApiResponse``). Write
payloads come in two flavours with different omission rules:
``CreateDnsRecord`` drops optional fields left at ``None`` while
``UpdateDnsRecord`` sends exactly the fields the caller set, ``None``
included.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from .record_types import DnsRecordType

T = TypeVar('T')


def _coerce_record_type(value, nullable=False):
    if value is None:
        if nullable:
            return None
        raise ValueError('record type is required')
    if isinstance(value, DnsRecordType):
        return value
    return DnsRecordType(value)


def _writable_record_type(value):
    if value is DnsRecordType.OTHER:
        raise ValueError('record type OTHER cannot be written')
    return value


def _wire_record_type(value):
    if value is None:
        return None
    return value.wire_value


class ApiErrorEntry(BaseModel):
    code: int
    message: str


class ResultInfo(BaseModel):
    page: int
    per_page: int
    count: int
    total_count: int
    total_pages: int


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    result: Optional[T] = None
    errors: List[ApiErrorEntry] = Field(default_factory=list)
    messages: List[Any] = Field(default_factory=list)
    result_info: Optional[ResultInfo] = None

    def first_error_message(self) -> str:
        if self.errors:
            return self.errors[0].message
        return ''


class TokenVerifyResult(BaseModel):
    id: str
    status: str


class DeleteResult(BaseModel):
    id: str


class ZoneAccount(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class Zone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: str
    account: ZoneAccount


class DnsRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    record_type: DnsRecordType = Field(alias='type')
    name: str
    content: str
    ttl: int
    proxied: bool = False
    proxiable: bool = False
    priority: Optional[int] = None
    comment: Optional[str] = None

    @field_validator('record_type', mode='before')
    @classmethod
    def coerce_record_type(cls, value):
        return _coerce_record_type(value)

    @field_serializer('record_type')
    def serialize_record_type(self, value):
        return _wire_record_type(value)


class CreateDnsRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    record_type: DnsRecordType = Field(alias='type')
    name: str
    content: str
    ttl: int
    proxied: Optional[bool] = None
    priority: Optional[int] = Field(default=None, ge=0, le=65535)
    comment: Optional[str] = None

    @field_validator('record_type', mode='before')
    @classmethod
    def coerce_record_type(cls, value):
        return _writable_record_type(_coerce_record_type(value))

    @field_serializer('record_type')
    def serialize_record_type(self, value):
        return _wire_record_type(value)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class UpdateDnsRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    record_type: Optional[DnsRecordType] = Field(default=None, alias='type')
    name: Optional[str] = None
    content: Optional[str] = None
    ttl: Optional[int] = None
    proxied: Optional[bool] = None
    priority: Optional[int] = Field(default=None, ge=0, le=65535)
    comment: Optional[str] = None

    @field_validator('record_type', mode='before')
    @classmethod
    def coerce_record_type(cls, value):
        value = _coerce_record_type(value, nullable=True)
        return _writable_record_type(value)

    @field_serializer('record_type')
    def serialize_record_type(self, value):
        return _wire_record_type(value)

    def to_payload(self) -> Dict[str, Any]:
        # Only what the caller set goes on the wire; an explicit None is sent
        # as null so a field can be cleared.
        return self.model_dump(mode='json', by_alias=True, exclude_unset=True)
