import json
import unittest
from typing import Any, Optional
from unittest import mock

import requests

from opsinsights_api_client import ApiClient, Authenticator

API_URL = "https://app.opsinsights.test"
KEY = "test-key"
SECRET = "test-secret"
NOW = 1_700_000_000


class MockResponse(mock.Mock):
    """Fake requests.Response returned by a patched requests function."""

    def __init__(self, status_code: int = 200, payload: Any = None, *, text: Optional[str] = None, reason: str = "OK"):
        super().__init__(spec=requests.Response)
        self.status_code = status_code
        self.reason = reason
        self.ok = status_code < 400
        self.text = text if text is not None else json.dumps(payload)
        self.json = mock.Mock(side_effect=lambda: json.loads(self.text))


def envelope(*data: Any, success: bool = True, status_code: int = 200) -> dict:
    return {"success": success, "status_code": status_code, "data": list(data)}


def error_envelope(code=404, name="NotFound", message="File not found", resolution="Check the file ID", status_code=404):
    return envelope(
        {"code": code, "name": name, "message": message, "resolution": resolution},
        success=False,
        status_code=status_code,
    )


def token_response(token: str = "first_token", expires_at: int = NOW + 3600) -> MockResponse:
    return MockResponse(200, envelope({"token": token, "expires_at": expires_at}))


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestWithAuthenticator(unittest.TestCase):
    """Patches requests.post for the token endpoint and requests.request for API calls."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        post_patcher = mock.patch("opsinsights_api_client.auth.requests.post")
        request_patcher = mock.patch("opsinsights_api_client.client.requests.request")
        self.token_post = post_patcher.start()
        self.api_request = request_patcher.start()
        self.addCleanup(post_patcher.stop)
        self.addCleanup(request_patcher.stop)
        self.token_post.return_value = token_response()
        self.auth = Authenticator(API_URL, KEY, SECRET, clock=self.clock)

    def make_client(self) -> ApiClient:
        return ApiClient(self.auth)

    def assert_requested_path(self, path: str, call_index: int = -1) -> None:
        kwargs = self.api_request.call_args_list[call_index].kwargs
        self.assertEqual(f"{API_URL}/api/v1{path}", kwargs["url"])
