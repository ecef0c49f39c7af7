"""
Client implementation for the OpsInsights REST API.

This module defines the :class:`ApiClient` class which performs
authenticated HTTP requests against the versioned ``/api/v1`` endpoints
of the OpsInsights service, unwraps the ``{success, status_code, data}``
envelope every endpoint returns, and exposes one accessor per remote
resource.  Authentication is delegated to an
:class:`~opsinsights_api_client.auth.Authenticator`, which is asked for
a fresh token on every request.

Usage
-----

.. code-block:: python

    from opsinsights_api_client import ApiClient, Authenticator

    auth = Authenticator("https://app.opsinsights.com", "my-key", "my-secret")
    auth.authenticate()
    client = ApiClient(auth)

    # Discover the client and connector identifiers used by other calls
    info = client.get_my_client_id()

    # Identifiers default to the ones cached by get_my_client_id()
    files = client.file_lookup_by_address("123 Main Street, Columbia, SC 29212")
    for record in files:
        print(record.get("file_id"))
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, TextIO, Union

import requests

from . import printers
from .auth import API_PREFIX, Authenticator
from .exceptions import ApiError, DecodeError, TransportError
from .models import ClientInfo, Envelope, Record
from .resources import RESOURCES, Resource

logger = logging.getLogger(__name__)


class ApiClient:
    """A client for the OpsInsights REST API.

    Parameters
    ----------
    authenticator : Authenticator
        Supplies the base URL and a valid bearer token for each request.
    timeout : float, optional
        Default timeout in seconds for requests.  When unset the
        underlying HTTP library's default is used.

    Attributes
    ----------
    client_id, connector_id, file_id, property_id : str or None
        The last identifiers seen in responses.  They are conveniences
        only: accessors fall back to ``client_id`` and ``connector_id``
        when called without them.
    """

    def __init__(self, authenticator: Authenticator, *, timeout: Optional[float] = None) -> None:
        if authenticator is None:
            raise ValueError("authenticator must be provided")
        self.auth = authenticator
        self.base_url = authenticator.get_api_url().rstrip("/")
        self.timeout = timeout

        self.client_id: Optional[str] = None
        self.connector_id: Optional[str] = None
        self.file_id: Optional[str] = None
        self.property_id: Optional[str] = None

    # ------------------------------------------------------------------
    # HTTP request helpers
    # ------------------------------------------------------------------
    def _prepare_url(self, path: str) -> str:
        """Build the full request URL, inserting the ``/api/v1`` prefix."""
        clean_path = "/" + path.lstrip("/")
        return f"{self.base_url}{API_PREFIX}{clean_path}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.auth.get_token()}",
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "User-Agent": self.auth.user_agent,
        }

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Envelope:
        """Perform an HTTP request against the OpsInsights API.

        Parameters
        ----------
        method : str
            The HTTP verb, such as ``"GET"`` or ``"POST"``.
        path : str
            The endpoint path below ``/api/v1``, e.g. ``"/clients/me"``.
        json : object, optional
            A JSON-serialisable request body.
        params : dict, optional
            Query parameters to include in the request.
        headers : dict, optional
            Additional HTTP headers.  ``Authorization`` cannot be
            overridden.
        timeout : float, optional
            Timeout in seconds; defaults to the client's ``timeout``.

        Returns
        -------
        Envelope
            The decoded response envelope, not yet checked for success.

        Raises
        ------
        AuthenticationError
            If a token is needed and cannot be obtained.
        ApiError
            If the service answers with an error status and a
            structured error record.
        TransportError
            If the request fails, or the response cannot be parsed.
        DecodeError
            If a successful response is JSON but not an envelope.
        """
        url = self._prepare_url(path)
        req_headers = self._headers()
        if headers:
            for key, value in headers.items():
                if key.lower() == "authorization":
                    continue
                req_headers[key] = value

        logger.debug("%s %s", method.upper(), url)
        try:
            response = requests.request(
                method=method.upper(),
                url=url,
                params=params,
                json=json,
                headers=req_headers,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Request failed: {exc}") from exc

        if response.status_code >= 400:
            raise self._error_from(response, url)

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Response from {url} was not valid JSON", body=response.text
            ) from exc
        return Envelope.from_json(body)

    @staticmethod
    def _error_from(response: requests.Response, url: str) -> Exception:
        """Build the exception for an HTTP error response."""
        try:
            envelope = Envelope.from_json(response.json())
        except (ValueError, DecodeError):
            envelope = None
        error = envelope.error_record() if envelope else None
        if error is not None:
            logger.warning(
                "API error %s (%s) for %s: %s", error.code, error.name, url, error.message
            )
            return ApiError(
                error.message,
                code=error.code,
                name=error.name,
                resolution=error.resolution,
                status_code=response.status_code,
            )
        return TransportError(
            f"Request failed: {response.status_code} Error for {url}: {response.reason}",
            body=response.text,
        )

    def get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Envelope:
        """Perform a GET request.

        See :meth:`request` for full parameter documentation.
        """
        return self.request("GET", path, params=params, headers=headers, timeout=timeout)

    def post(
        self,
        path: str,
        *,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Envelope:
        """Perform a POST request with a JSON body.

        See :meth:`request` for full parameter documentation.
        """
        return self.request(
            "POST",
            path,
            json=json,
            params=params,
            headers=headers,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Templated resource access
    # ------------------------------------------------------------------
    def fetch(self, resource: Union[str, Resource], **params: Any) -> Any:
        """Fetch one resource and return its decoded ``data``.

        ``client_id`` and ``connector_id`` default to the identifiers
        cached by :meth:`get_my_client_id` when the resource's path needs
        them and they are not given.

        Raises
        ------
        ApiError
            If the envelope does not report success.  The service's error
            record is used when present; otherwise the message names the
            resource that could not be retrieved.
        DecodeError
            If a record lacks a field its resource requires.
        ValueError
            If a path parameter is missing.
        """
        if isinstance(resource, str):
            resource = RESOURCES[resource]
        for key in ("client_id", "connector_id"):
            if key in resource.parameters and params.get(key) is None:
                params[key] = getattr(self, key)
        path = resource.build_path(**params)

        envelope = self.get(path)
        if not envelope.ok:
            error = envelope.error_record()
            logger.warning(
                "Could not retrieve %s (status %s)", resource.description, envelope.status_code
            )
            if error is not None:
                raise ApiError(
                    error.message,
                    code=error.code,
                    name=error.name,
                    resolution=error.resolution,
                    status_code=envelope.status_code,
                )
            raise ApiError(
                f"Failed to retrieve {resource.description}.",
                status_code=envelope.status_code,
            )
        return resource.decode(envelope.data)

    def _remember(self, records: List[Record], attribute: str) -> None:
        for record in records:
            value = record.get(attribute)
            if value not in (None, ""):
                setattr(self, attribute, value)
                return

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------
    def get_my_client_id(self) -> ClientInfo:
        """Return the caller's client record and cache its identifiers.

        The client ID and the first connector ID become the defaults for
        the other accessors.
        """
        info: ClientInfo = self.fetch("client_info")
        self.client_id = info.client_id
        connector_ids = info.connector_ids
        self.connector_id = connector_ids[0] if connector_ids else None
        return info

    def get_client_id(self) -> Optional[str]:
        return self.client_id

    def get_connector_id(self) -> Optional[str]:
        return self.connector_id

    def get_file_id(self) -> Optional[str]:
        return self.file_id

    def get_property_id(self) -> Optional[str]:
        return self.property_id

    def list_api_endpoints(self) -> List[Record]:
        return self.fetch("api_endpoints")

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def file_lookup_by_address(
        self,
        address: str,
        client_id: Optional[str] = None,
        connector_id: Optional[str] = None,
    ) -> List[Record]:
        """Look up files by property address."""
        records = self.fetch(
            "file_by_address", address=address, client_id=client_id, connector_id=connector_id
        )
        self._remember(records, "file_id")
        return records

    def file_lookup_by_file_id(
        self, client_id: Optional[str], connector_id: Optional[str], file_id: str
    ) -> List[Record]:
        records = self.fetch(
            "file_by_id", client_id=client_id, connector_id=connector_id, file_id=file_id
        )
        self._remember(records, "file_id")
        return records

    def file_lookup_by_lender_loan_number(
        self, client_id: Optional[str], connector_id: Optional[str], loan_number: str
    ) -> List[Record]:
        records = self.fetch(
            "file_by_lender_loan_number",
            client_id=client_id,
            connector_id=connector_id,
            loan_number=loan_number,
        )
        self._remember(records, "file_id")
        return records

    def get_all_partners_on_a_file(
        self, client_id: Optional[str], connector_id: Optional[str], file_id: str
    ) -> List[Record]:
        return self.fetch(
            "file_partners", client_id=client_id, connector_id=connector_id, file_id=file_id
        )

    # ------------------------------------------------------------------
    # Parties, property and settlement
    # ------------------------------------------------------------------
    def get_buyers_info(
        self, client_id: Optional[str], connector_id: Optional[str], buyer_id: str
    ) -> List[Record]:
        return self.fetch(
            "buyers", client_id=client_id, connector_id=connector_id, buyer_id=buyer_id
        )

    def get_seller_info(
        self, client_id: Optional[str], connector_id: Optional[str], seller_id: str
    ) -> List[Record]:
        return self.fetch(
            "sellers", client_id=client_id, connector_id=connector_id, seller_id=seller_id
        )

    def get_disbursement_info(
        self, client_id: Optional[str], connector_id: Optional[str], file_id: str
    ) -> List[Record]:
        return self.fetch(
            "disbursements", client_id=client_id, connector_id=connector_id, file_id=file_id
        )

    def get_property_info(
        self, client_id: Optional[str], connector_id: Optional[str], property_id: str
    ) -> List[Record]:
        records = self.fetch(
            "property", client_id=client_id, connector_id=connector_id, property_id=property_id
        )
        self._remember(records, "property_id")
        return records

    def get_recording_info(
        self, client_id: Optional[str], connector_id: Optional[str], file_id: str
    ) -> List[Record]:
        return self.fetch(
            "recordings", client_id=client_id, connector_id=connector_id, file_id=file_id
        )

    def get_file_settlement_fees(
        self, client_id: Optional[str], connector_id: Optional[str], file_id: str
    ) -> List[Record]:
        return self.fetch(
            "settlement_fees", client_id=client_id, connector_id=connector_id, file_id=file_id
        )

    def get_settlement_info(
        self, client_id: Optional[str], connector_id: Optional[str], file_id: str
    ) -> List[Record]:
        return self.fetch(
            "settlement", client_id=client_id, connector_id=connector_id, file_id=file_id
        )

    def get_policy_info(
        self, client_id: Optional[str], connector_id: Optional[str], file_id: str
    ) -> List[Record]:
        return self.fetch(
            "policies", client_id=client_id, connector_id=connector_id, file_id=file_id
        )

    # ------------------------------------------------------------------
    # Custom per-deployment endpoints
    # ------------------------------------------------------------------
    def custom_lookup_referral_agent(
        self, client_id: Optional[str], connector_id: Optional[str], name: str
    ) -> List[Record]:
        """Find referral agents whose name matches ``name``."""
        return self.fetch(
            "referral_agent_lookup", client_id=client_id, connector_id=connector_id, name=name
        )

    def custom_get_referral_agent_sales_volume(
        self, client_id: Optional[str], connector_id: Optional[str], agent_id: str
    ) -> List[Record]:
        return self.fetch(
            "referral_agent_sales_volume",
            client_id=client_id,
            connector_id=connector_id,
            agent_id=agent_id,
        )

    # ------------------------------------------------------------------
    # Console output
    # ------------------------------------------------------------------
    def print_my_key_info_and_available_connectors(self, file: Optional[TextIO] = None) -> None:
        """Fetch the caller's client record and print it with its connectors."""
        printers.print_my_key_info_and_available_connectors(self.get_my_client_id(), file=file)
