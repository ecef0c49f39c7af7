"""
Console printers for records returned by :class:`~opsinsights_api_client.client.ApiClient`.

Each ``print_*`` function takes the value returned by the matching
accessor and writes it to ``file`` (standard output by default).  The
fields most callers look for are printed first, with ``N/A`` standing
in for any that are missing or empty; every other field the service
returned follows in its original order.  Printers return nothing.
"""

from __future__ import annotations

import sys
from typing import Any, Iterable, Mapping, Optional, Sequence, TextIO

from .models import ClientInfo

NOT_AVAILABLE = "N/A"
SEPARATOR = "-" * 40

Records = Iterable[Mapping[str, Any]]


def _label(key: str) -> str:
    return key.replace("_", " ").title()


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _write_value(label: str, value: Any, out: TextIO, indent: int) -> None:
    pad = "  " * indent
    if isinstance(value, Mapping) and value:
        print(f"{pad}{label}:", file=out)
        for key, item in value.items():
            _write_value(_label(key), item, out, indent + 1)
    elif isinstance(value, list) and value:
        print(f"{pad}{label}:", file=out)
        for position, item in enumerate(value, start=1):
            _write_value(f"#{position}", item, out, indent + 1)
    else:
        print(f"{pad}{label}: {NOT_AVAILABLE if _is_blank(value) else value}", file=out)


def print_record(
    record: Mapping[str, Any],
    fields: Sequence[str] = (),
    *,
    file: Optional[TextIO] = None,
    indent: int = 0,
) -> None:
    """Print ``fields`` first (``N/A`` when absent), then every other field."""
    out = file or sys.stdout
    for key in fields:
        _write_value(_label(key), record.get(key), out, indent)
    for key, value in record.items():
        if key not in fields:
            _write_value(_label(key), value, out, indent)


def print_records(
    title: str,
    records: Records,
    fields: Sequence[str] = (),
    *,
    file: Optional[TextIO] = None,
) -> None:
    out = file or sys.stdout
    count = 0
    for count, record in enumerate(records, start=1):
        print(f"{title} #{count}", file=out)
        print_record(record, fields, file=out, indent=1)
        print(SEPARATOR, file=out)
    if not count:
        print(f"No {title.lower()} records returned.", file=out)


# ----------------------------------------------------------------------
# Account
# ----------------------------------------------------------------------
def print_my_key_info_and_available_connectors(
    info: ClientInfo, *, file: Optional[TextIO] = None
) -> None:
    out = file or sys.stdout
    print(f"Client Name: {info.client_name or NOT_AVAILABLE}", file=out)
    print(f"Client ID: {info.client_id or NOT_AVAILABLE}", file=out)
    print("API Keys:", file=out)
    if not info.api_keys:
        print(f"  {NOT_AVAILABLE}", file=out)
    for api_key in info.api_keys:
        if isinstance(api_key, Mapping):
            print_record(api_key, ("key_name", "key", "created_at"), file=out, indent=1)
        else:
            print(f"  {api_key}", file=out)
    print("Available Connectors:", file=out)
    if not info.api_connectors:
        print(f"  {NOT_AVAILABLE}", file=out)
    for connector in info.api_connectors:
        if isinstance(connector, Mapping):
            print_record(connector, ("connector_id", "connector_name"), file=out, indent=1)
            print(f"  {SEPARATOR}", file=out)
        else:
            print(f"  {connector}", file=out)


def print_api_endpoints(endpoints: Records, *, file: Optional[TextIO] = None) -> None:
    print_records(
        "API Endpoint",
        endpoints,
        (
            "api_version",
            "http_verb_name",
            "endpoint_name",
            "endpoint_description",
            "developer_documentation_link",
        ),
        file=file,
    )


# ----------------------------------------------------------------------
# Files
# ----------------------------------------------------------------------
_FILE_FIELDS = ("file_id", "file_number", "property_address", "status", "open_date", "close_date")


def print_addresses_from_lookup(files: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("File", files, ("file_id", "file_number", "property_address"), file=file)


def print_file_info(files: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("File", files, _FILE_FIELDS, file=file)


def print_lender_file_info(files: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Lender File", files, _FILE_FIELDS + ("loan_number", "lender_name"), file=file)


def print_all_partners_on_a_file(partners: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Partner", partners, ("partner_type", "partner_name", "contact_name"), file=file)


# ----------------------------------------------------------------------
# Parties, property and settlement
# ----------------------------------------------------------------------
def print_buyers_info(buyers: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Buyer", buyers, ("buyer_id", "first_name", "last_name", "email"), file=file)


def print_seller_info(sellers: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Seller", sellers, ("seller_id", "first_name", "last_name", "email"), file=file)


def print_disbursement_info(disbursements: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Disbursement", disbursements, ("payee", "amount", "disbursed_at"), file=file)


def print_property_info(properties: Records, *, file: Optional[TextIO] = None) -> None:
    print_records(
        "Property", properties, ("property_id", "address", "city", "state", "zip"), file=file
    )


def print_recording_info(recordings: Records, *, file: Optional[TextIO] = None) -> None:
    print_records(
        "Recording", recordings, ("document_type", "recorded_date", "book", "page"), file=file
    )


def print_file_settlement_fees(fees: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Settlement Fee", fees, ("fee_description", "buyer_amount", "seller_amount"), file=file)


def print_settlement_info(settlements: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Settlement", settlements, ("settlement_date", "sales_price", "loan_amount"), file=file)


def print_policy_info(policies: Records, *, file: Optional[TextIO] = None) -> None:
    print_records(
        "Policy", policies, ("policy_number", "policy_type", "coverage_amount"), file=file
    )


# ----------------------------------------------------------------------
# Custom endpoints
# ----------------------------------------------------------------------
def print_custom_lookup_referral_agent(agents: Records, *, file: Optional[TextIO] = None) -> None:
    print_records("Referral Agent", agents, ("agent_id", "agent_name", "company_name"), file=file)


def print_custom_get_referral_agent_sales_volume(volumes: Records, *, file: Optional[TextIO] = None) -> None:
    print_records(
        "Sales Volume", volumes, ("agent_id", "total_files", "total_sales_volume"), file=file
    )
