"""
Data structures exchanged with the OpsInsights API.

Responses from the service are wrapped in an envelope of the form
``{"success": bool, "status_code": int, "data": [...]}``.  The classes
below decode that envelope and turn each item of ``data`` into a
record type named after the resource it came from.  Records keep the
keys exactly as the service sent them; decoding only checks that the
keys a resource cannot do without are present.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .exceptions import DecodeError


@dataclass(frozen=True)
class Credentials:
    """An API key/secret pair.  The secret is kept out of ``repr``."""

    key: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class Token:
    """A bearer token and the Unix time at which it stops being valid."""

    value: str = field(repr=False)
    expires_at: int

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class ErrorRecord:
    """The error description the service places in ``data[0]``."""

    code: Any = None
    name: Optional[str] = None
    message: Optional[str] = None
    resolution: Optional[str] = None

    _KEYS = ("code", "name", "message", "resolution")

    @classmethod
    def from_data(cls, data: Sequence[Any]) -> Optional["ErrorRecord"]:
        """Return the error record held in ``data[0]``, if there is one."""
        if not data or not isinstance(data[0], dict):
            return None
        item = data[0]
        if not any(item.get(key) not in (None, "") for key in cls._KEYS):
            return None
        return cls(**{key: item.get(key) for key in cls._KEYS})


@dataclass
class Envelope:
    """The ``{success, status_code, data}`` wrapper around every response."""

    success: bool
    status_code: int
    data: List[Any] = field(default_factory=list)

    @classmethod
    def from_json(cls, body: Any) -> "Envelope":
        if not isinstance(body, dict):
            raise DecodeError(f"Expected a JSON object envelope, got {type(body).__name__}")
        missing = [key for key in ("success", "status_code") if key not in body]
        if missing:
            raise DecodeError(f"Response envelope is missing {', '.join(missing)}")
        data = body.get("data")
        if data is None:
            data = []
        if not isinstance(data, list):
            raise DecodeError("Response envelope 'data' must be a list")
        return cls(
            success=body["success"],
            status_code=body["status_code"],
            data=data,
        )

    @property
    def ok(self) -> bool:
        return self.success is True and self.status_code == 200

    def error_record(self) -> Optional[ErrorRecord]:
        return ErrorRecord.from_data(self.data)


class Record(Mapping[str, Any]):
    """A read-only view over one item of an envelope's ``data`` list.

    Fields can be read by key (``record["file_id"]``) or by attribute
    (``record.file_id``).  Subclasses list the keys they require in
    ``required``.
    """

    resource: str = "record"
    required: Tuple[str, ...] = ()

    def __init__(self, fields: Mapping[str, Any]) -> None:
        self._fields = dict(fields)

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} has no field {name!r}"
            ) from None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._fields!r})"

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._fields)

    @classmethod
    def decode(cls, item: Any) -> "Record":
        if not isinstance(item, dict):
            raise DecodeError(
                f"Expected a JSON object for {cls.resource}, got {type(item).__name__}"
            )
        missing = [key for key in cls.required if key not in item]
        if missing:
            raise DecodeError(
                f"{cls.resource} record is missing required field(s): {', '.join(missing)}"
            )
        return cls(item)

    @classmethod
    def decode_many(cls, data: Sequence[Any]) -> List["Record"]:
        return [cls.decode(item) for item in data]


class ClientRecord(Record):
    resource = "client"
    required = ("your_client_id", "client_name")


class EndpointRecord(Record):
    resource = "API endpoint"
    required = ("endpoint_name",)


class FileRecord(Record):
    resource = "file"


class PartnerRecord(Record):
    resource = "file partner"


class BuyerRecord(Record):
    resource = "buyer"


class DisbursementRecord(Record):
    resource = "disbursement"


class PropertyRecord(Record):
    resource = "property"


class RecordingRecord(Record):
    resource = "recording"


class SellerRecord(Record):
    resource = "seller"


class SettlementFeeRecord(Record):
    resource = "settlement fee"


class SettlementRecord(Record):
    resource = "settlement"


class PolicyRecord(Record):
    resource = "policy"


class ReferralAgentRecord(Record):
    resource = "referral agent"


class ReferralAgentSalesVolumeRecord(Record):
    resource = "referral agent sales volume"


@dataclass
class ClientInfo:
    """The caller's own account, narrowed from the ``/clients/me`` record.

    The service names the identifier ``your_client_id``; it is exposed
    here as ``client_id``.
    """

    client_id: str
    client_name: str
    api_keys: List[Any] = field(default_factory=list)
    api_connectors: List[Any] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ClientInfo":
        return cls(
            client_id=record["your_client_id"],
            client_name=record["client_name"],
            api_keys=list(record.get("api_keys") or []),
            api_connectors=list(record.get("api_connectors") or []),
        )

    @property
    def connector_ids(self) -> List[Any]:
        return [
            connector.get("connector_id")
            for connector in self.api_connectors
            if isinstance(connector, dict) and connector.get("connector_id") is not None
        ]
