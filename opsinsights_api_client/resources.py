"""
Declarative table of the OpsInsights resources the client can fetch.

Every remote endpoint follows the same pattern: substitute a few
identifiers into a fixed path, GET it, check the envelope and decode
``data``.  Instead of one method per endpoint doing this by hand, each
endpoint is described once by a :class:`Resource` and fetched by
:meth:`opsinsights_api_client.client.ApiClient.fetch`.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from . import models
from .exceptions import DecodeError

Narrower = Callable[[List[models.Record]], Any]


def encode_free_text(value: Any) -> str:
    """Map a free-text path value to the form the service expects.

    Spaces become underscores; every other character is left untouched.
    """
    return str(value).replace(" ", "_")


def first_client(records: List[models.Record]) -> models.ClientInfo:
    if not records:
        raise DecodeError("Client lookup returned no client record")
    return models.ClientInfo.from_record(records[0])


@dataclass(frozen=True)
class Resource:
    """One remote endpoint.

    Parameters
    ----------
    name : str
        Key of the resource in :data:`RESOURCES`.
    template : str
        Path below ``/api/v1`` with ``{placeholders}`` for identifiers.
    record_type : type
        :class:`~opsinsights_api_client.models.Record` subclass each
        item of ``data`` is decoded into.
    description : str
        Used in the fallback error when the service gives no details.
    free_text : tuple of str
        Placeholders holding free text rather than identifiers.
    narrow : callable, optional
        Applied to the decoded records to produce the return value.
    """

    name: str
    template: str
    record_type: Type[models.Record]
    description: str
    free_text: Tuple[str, ...] = ()
    narrow: Optional[Narrower] = None

    @property
    def parameters(self) -> Tuple[str, ...]:
        return tuple(
            field_name
            for _, field_name, _, _ in string.Formatter().parse(self.template)
            if field_name
        )

    def build_path(self, **params: Any) -> str:
        """Substitute ``params`` into the template.

        Raises
        ------
        ValueError
            If a placeholder has no value or an unknown one is given.
        """
        expected = set(self.parameters)
        unknown = set(params) - expected
        if unknown:
            raise ValueError(
                f"Unknown parameter(s) for {self.name}: {', '.join(sorted(unknown))}"
            )
        values: Dict[str, str] = {}
        for key in self.parameters:
            value = params.get(key)
            if value is None or value == "":
                raise ValueError(f"{key} must be provided for {self.name}")
            values[key] = encode_free_text(value) if key in self.free_text else str(value)
        return self.template.format(**values)

    def decode(self, data: List[Any]) -> Any:
        records = self.record_type.decode_many(data)
        if self.narrow is not None:
            return self.narrow(records)
        return records


_SCOPED = "{client_id}/{connector_id}"

RESOURCES: Dict[str, Resource] = {
    resource.name: resource
    for resource in (
        Resource(
            "client_info", "/clients/me", models.ClientRecord,
            "client information", narrow=first_client,
        ),
        Resource(
            "api_endpoints", "/helpers/api-endpoints", models.EndpointRecord,
            "API endpoints",
        ),
        Resource(
            "file_by_address", f"/files/{_SCOPED}/address/{{address}}", models.FileRecord,
            "file information by address", free_text=("address",),
        ),
        Resource(
            "file_by_id", f"/files/{_SCOPED}/{{file_id}}", models.FileRecord,
            "file information",
        ),
        Resource(
            "file_by_lender_loan_number", f"/files/{_SCOPED}/lender/{{loan_number}}",
            models.FileRecord, "lender file information",
        ),
        Resource(
            "file_partners", f"/files/{_SCOPED}/{{file_id}}/partners", models.PartnerRecord,
            "file partners",
        ),
        Resource(
            "buyers", f"/buyers/{_SCOPED}/{{buyer_id}}", models.BuyerRecord,
            "buyer information",
        ),
        Resource(
            "disbursements", f"/disbursements/{_SCOPED}/{{file_id}}", models.DisbursementRecord,
            "disbursement information",
        ),
        Resource(
            "property", f"/properties/{_SCOPED}/{{property_id}}", models.PropertyRecord,
            "property information",
        ),
        Resource(
            "recordings", f"/recordings/{_SCOPED}/{{file_id}}", models.RecordingRecord,
            "recording information",
        ),
        Resource(
            "sellers", f"/sellers/{_SCOPED}/{{seller_id}}", models.SellerRecord,
            "seller information",
        ),
        Resource(
            "settlement_fees", f"/settlements/{_SCOPED}/{{file_id}}/fees",
            models.SettlementFeeRecord, "settlement fees",
        ),
        Resource(
            "settlement", f"/settlements/{_SCOPED}/{{file_id}}", models.SettlementRecord,
            "settlement information",
        ),
        Resource(
            "policies", f"/policies/{_SCOPED}/{{file_id}}", models.PolicyRecord,
            "policy information",
        ),
        Resource(
            "referral_agent_lookup", f"/custom/{_SCOPED}/referral-agents/name/{{name}}",
            models.ReferralAgentRecord, "referral agent records", free_text=("name",),
        ),
        Resource(
            "referral_agent_sales_volume",
            f"/custom/{_SCOPED}/referral-agents/{{agent_id}}/sales-volume",
            models.ReferralAgentSalesVolumeRecord, "referral agent sales volume",
        ),
    )
}
