"""
Python client for interacting with the OpsInsights REST API.

This package provides an :class:`Authenticator` that exchanges an API
key and secret for a short-lived bearer token, and an :class:`ApiClient`
that uses it to query title and escrow operations data: files,
properties, buyers, sellers, disbursements, recordings, settlements,
policies and custom per-client endpoints.

The authenticator caches the token until the ``expires_at`` time
reported by the service and transparently requests a new one when it
has passed.

Examples
--------

```python
from opsinsights_api_client import ApiClient, Authenticator, printers

auth = Authenticator("https://app.opsinsights.com", "YOUR_KEY", "YOUR_SECRET")
auth.authenticate()
client = ApiClient(auth)

info = client.get_my_client_id()
policies = client.get_policy_info(info.client_id, client.get_connector_id(), "438364")
printers.print_policy_info(policies)
```

Errors are reported through :class:`AuthenticationError`,
:class:`ApiError` (carrying the service's code, name, message and
resolution), :class:`TransportError` and :class:`DecodeError`.
"""

import logging

from . import printers
from .auth import Authenticator
from .client import ApiClient
from .exceptions import (
    ApiError,
    AuthenticationError,
    DecodeError,
    OpsInsightsError,
    TransportError,
)
from .models import ClientInfo, Envelope, ErrorRecord, Record, Token
from .resources import RESOURCES, Resource

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthenticationError",
    "Authenticator",
    "ClientInfo",
    "DecodeError",
    "Envelope",
    "ErrorRecord",
    "OpsInsightsError",
    "RESOURCES",
    "Record",
    "Resource",
    "Token",
    "TransportError",
    "printers",
]
