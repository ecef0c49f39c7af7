import requests

from _helpers import API_URL, NOW, MockResponse, TestWithAuthenticator, envelope, error_envelope, token_response
from opsinsights_api_client import ApiClient, ApiError, AuthenticationError, ClientInfo, DecodeError, Envelope, TransportError
from opsinsights_api_client.models import BuyerRecord, EndpointRecord, FileRecord

CLIENT_ME = {
    "your_client_id": "42",
    "client_name": "Acme",
    "api_keys": [{"key_name": "primary"}],
    "api_connectors": [{"connector_id": "9", "connector_name": "RamQuest"}, {"connector_id": "10"}],
}


class TestRequest(TestWithAuthenticator):
    def setUp(self):
        super().setUp()
        self.client = self.make_client()

    def test_base_url_comes_from_authenticator(self):
        self.assertEqual(API_URL, self.client.base_url)

    def test_request_prefixes_version_and_sets_headers(self):
        self.api_request.return_value = MockResponse(200, envelope({"a": 1}))

        result = self.client.request("get", "/helpers/api-endpoints")

        self.assertIsInstance(result, Envelope)
        self.assertTrue(result.ok)
        self.assertEqual([{"a": 1}], result.data)
        kwargs = self.api_request.call_args.kwargs
        self.assertEqual("GET", kwargs["method"])
        self.assert_requested_path("/helpers/api-endpoints")
        self.assertEqual("Bearer first_token", kwargs["headers"]["Authorization"])
        self.assertEqual("application/json", kwargs["headers"]["Accept"])
        self.assertEqual("OpsInsights-API-Client", kwargs["headers"]["User-Agent"])

    def test_request_returns_unsuccessful_envelope_without_raising(self):
        self.api_request.return_value = MockResponse(200, envelope(success=False, status_code=204))

        result = self.client.get("/clients/me")

        self.assertFalse(result.ok)
        self.assertEqual(204, result.status_code)

    def test_caller_cannot_override_authorization(self):
        self.api_request.return_value = MockResponse(200, envelope())

        self.client.get("/clients/me", headers={"authorization": "Bearer forged", "X-Trace": "1"})

        headers = self.api_request.call_args.kwargs["headers"]
        self.assertEqual("Bearer first_token", headers["Authorization"])
        self.assertNotIn("authorization", headers)
        self.assertEqual("1", headers["X-Trace"])

    def test_post_sends_json_body(self):
        self.api_request.return_value = MockResponse(200, envelope({"id": "1"}))

        self.client.post("/custom/42/9/notes", json={"note": "hello"})

        kwargs = self.api_request.call_args.kwargs
        self.assertEqual("POST", kwargs["method"])
        self.assertEqual({"note": "hello"}, kwargs["json"])

    def test_token_is_fetched_on_every_call(self):
        self.token_post.side_effect = [token_response("first_token", NOW + 60), token_response("second_token", NOW + 3600)]
        self.api_request.return_value = MockResponse(200, envelope())

        self.client.get("/clients/me")
        self.clock.now = NOW + 61
        self.client.get("/clients/me")

        first, second = self.api_request.call_args_list
        self.assertEqual("Bearer first_token", first.kwargs["headers"]["Authorization"])
        self.assertEqual("Bearer second_token", second.kwargs["headers"]["Authorization"])

    def test_error_status_with_record_raises_api_error(self):
        self.api_request.return_value = MockResponse(404, error_envelope(), reason="Not Found")

        with self.assertRaises(ApiError) as ctx:
            self.client.get("/files/42/9/1")

        error = ctx.exception
        self.assertEqual(404, error.code)
        self.assertEqual("NotFound", error.name)
        self.assertEqual("File not found", error.message)
        self.assertEqual("Check the file ID", error.resolution)
        self.assertEqual(404, error.status_code)
        self.assertIn("Check the file ID", str(error))

    def test_error_status_without_record_raises_transport_error(self):
        self.api_request.return_value = MockResponse(500, text="Internal Server Error", reason="Internal Server Error")

        with self.assertRaises(TransportError) as ctx:
            self.client.get("/clients/me")

        self.assertEqual("Internal Server Error", ctx.exception.body)
        self.assertIn("500", str(ctx.exception))

    def test_error_status_with_empty_data_raises_transport_error(self):
        self.api_request.return_value = MockResponse(503, envelope(success=False, status_code=503))
        with self.assertRaises(TransportError):
            self.client.get("/clients/me")

    def test_connection_failure_raises_transport_error(self):
        cause = requests.ConnectionError("name resolution failed")
        self.api_request.side_effect = cause

        with self.assertRaises(TransportError) as ctx:
            self.client.get("/clients/me")

        self.assertIs(cause, ctx.exception.__cause__)
        self.assertIsNone(ctx.exception.body)

    def test_success_status_with_invalid_json_raises_transport_error(self):
        self.api_request.return_value = MockResponse(200, text="not json")
        with self.assertRaises(TransportError) as ctx:
            self.client.get("/clients/me")
        self.assertEqual("not json", ctx.exception.body)

    def test_success_status_without_envelope_raises_decode_error(self):
        self.api_request.return_value = MockResponse(200, [1, 2, 3])
        with self.assertRaises(DecodeError):
            self.client.get("/clients/me")

    def test_timeout_defaults_to_client_timeout(self):
        client = ApiClient(self.auth, timeout=3.0)
        self.api_request.return_value = MockResponse(200, envelope())

        client.get("/clients/me")
        self.assertEqual(3.0, self.api_request.call_args.kwargs["timeout"])
        client.get("/clients/me", timeout=1.0)
        self.assertEqual(1.0, self.api_request.call_args.kwargs["timeout"])


class TestClientInfo(TestWithAuthenticator):
    def setUp(self):
        super().setUp()
        self.client = self.make_client()

    def test_get_my_client_id_narrows_and_caches(self):
        self.api_request.return_value = MockResponse(200, envelope(CLIENT_ME))

        info = self.client.get_my_client_id()

        self.assertIsInstance(info, ClientInfo)
        self.assertEqual("42", info.client_id)
        self.assertEqual("Acme", info.client_name)
        self.assertEqual([{"key_name": "primary"}], info.api_keys)
        self.assertEqual("42", self.client.get_client_id())
        self.assertEqual("9", self.client.get_connector_id())
        self.assert_requested_path("/clients/me")

    def test_minimal_client_record(self):
        self.api_request.return_value = MockResponse(
            200, envelope({"your_client_id": "42", "client_name": "Acme", "api_connectors": [{"connector_id": "9"}]})
        )

        info = self.client.get_my_client_id()

        self.assertEqual("42", info.client_id)
        self.assertEqual([], info.api_keys)
        self.assertEqual("9", self.client.connector_id)

    def test_cached_ids_are_used_by_later_calls(self):
        self.api_request.side_effect = [
            MockResponse(200, envelope(CLIENT_ME)),
            MockResponse(200, envelope({"buyer_id": "405605"})),
        ]

        self.client.get_my_client_id()
        self.client.get_buyers_info(None, None, "405605")

        self.assert_requested_path("/buyers/42/9/405605")

    def test_expired_token_is_never_sent(self):
        self.token_post.return_value = token_response("stale_token", NOW)

        with self.assertRaises(AuthenticationError):
            self.client.get("/clients/me")

        self.api_request.assert_not_called()

    def test_connector_id_cleared_when_client_has_no_connectors(self):
        self.api_request.side_effect = [
            MockResponse(200, envelope(CLIENT_ME)),
            MockResponse(200, envelope({"your_client_id": "43", "client_name": "Other", "api_connectors": []})),
        ]

        self.client.get_my_client_id()
        self.assertEqual("9", self.client.get_connector_id())
        self.client.get_my_client_id()

        self.assertEqual("43", self.client.get_client_id())
        self.assertIsNone(self.client.get_connector_id())

    def test_failure_raises_instead_of_returning_none(self):
        self.api_request.return_value = MockResponse(200, error_envelope(401, "Forbidden", "No access", "Contact support", status_code=401))

        with self.assertRaises(ApiError) as ctx:
            self.client.get_my_client_id()

        self.assertEqual("Forbidden", ctx.exception.name)
        self.assertIsNone(self.client.client_id)
        self.assertIsNone(self.client.connector_id)

    def test_missing_required_field_raises_decode_error(self):
        self.api_request.return_value = MockResponse(200, envelope({"client_name": "Acme"}))
        with self.assertRaises(DecodeError):
            self.client.get_my_client_id()

    def test_empty_data_raises_decode_error(self):
        self.api_request.return_value = MockResponse(200, envelope())
        with self.assertRaises(DecodeError):
            self.client.get_my_client_id()


class TestAccessors(TestWithAuthenticator):
    def setUp(self):
        super().setUp()
        self.client = self.make_client()
        self.api_request.return_value = MockResponse(200, envelope({"file_id": "492524", "status": "Open"}))

    def test_file_lookup_by_address_path(self):
        self.client.file_lookup_by_address("123 Main Street, Columbia, SC 29212", "C1", "K1")
        self.assert_requested_path("/files/C1/K1/address/123_Main_Street,_Columbia,_SC_29212")

    def test_path_for_each_accessor(self):
        cases = [
            (self.client.file_lookup_by_file_id, "492524", "/files/C1/K1/492524"),
            (self.client.file_lookup_by_lender_loan_number, "265410444", "/files/C1/K1/lender/265410444"),
            (self.client.get_all_partners_on_a_file, "168953", "/files/C1/K1/168953/partners"),
            (self.client.get_buyers_info, "405605", "/buyers/C1/K1/405605"),
            (self.client.get_disbursement_info, "854922", "/disbursements/C1/K1/854922"),
            (self.client.get_property_info, "491491", "/properties/C1/K1/491491"),
            (self.client.get_recording_info, "589201", "/recordings/C1/K1/589201"),
            (self.client.get_seller_info, "1600483", "/sellers/C1/K1/1600483"),
            (self.client.get_file_settlement_fees, "56522", "/settlements/C1/K1/56522/fees"),
            (self.client.get_settlement_info, "438364", "/settlements/C1/K1/438364"),
            (self.client.get_policy_info, "438364", "/policies/C1/K1/438364"),
            (self.client.custom_lookup_referral_agent, "Joseph Martin", "/custom/C1/K1/referral-agents/name/Joseph_Martin"),
            (self.client.custom_get_referral_agent_sales_volume, "403396221", "/custom/C1/K1/referral-agents/403396221/sales-volume"),
        ]
        for accessor, identifier, path in cases:
            with self.subTest(accessor=accessor.__name__):
                accessor("C1", "K1", identifier)
                self.assert_requested_path(path)

    def test_list_api_endpoints(self):
        endpoint = {
            "api_version": "v1",
            "http_verb_name": "GET",
            "endpoint_name": "/clients/me",
            "endpoint_description": "Your client",
            "developer_documentation_link": "https://docs.example",
        }
        self.api_request.return_value = MockResponse(200, envelope(endpoint))

        endpoints = self.client.list_api_endpoints()

        self.assertEqual(1, len(endpoints))
        self.assertIsInstance(endpoints[0], EndpointRecord)
        self.assertEqual(endpoint, dict(endpoints[0]))
        self.assert_requested_path("/helpers/api-endpoints")

    def test_records_expose_exactly_the_returned_fields(self):
        payload = [{"buyer_id": "1", "first_name": "Ann", "nested": {"x": 1}}, {"buyer_id": "2"}]
        self.api_request.return_value = MockResponse(200, envelope(*payload))

        buyers = self.client.get_buyers_info("C1", "K1", "1")

        self.assertEqual(payload, [b.to_dict() for b in buyers])
        self.assertTrue(all(isinstance(b, BuyerRecord) for b in buyers))
        self.assertEqual("Ann", buyers[0].first_name)
        with self.assertRaises(AttributeError):
            buyers[1].first_name

    def test_file_accessors_cache_file_id(self):
        records = self.client.file_lookup_by_file_id("C1", "K1", "492524")
        self.assertIsInstance(records[0], FileRecord)
        self.assertEqual("492524", self.client.get_file_id())

    def test_property_accessor_caches_property_id(self):
        self.api_request.return_value = MockResponse(200, envelope({"property_id": "491491"}))
        self.client.get_property_info("C1", "K1", "491491")
        self.assertEqual("491491", self.client.get_property_id())

    def test_error_envelope_raises_verbatim_for_every_accessor(self):
        self.api_request.return_value = MockResponse(200, error_envelope("E42", "Bad", "Nope", "Try again", status_code=400))
        accessors = [
            self.client.get_buyers_info,
            self.client.get_seller_info,
            self.client.get_policy_info,
            self.client.custom_get_referral_agent_sales_volume,
        ]
        for accessor in accessors:
            with self.subTest(accessor=accessor.__name__):
                with self.assertRaises(ApiError) as ctx:
                    accessor("C1", "K1", "1")
                error = ctx.exception
                self.assertEqual(("E42", "Bad", "Nope", "Try again"), (error.code, error.name, error.message, error.resolution))

    def test_success_with_non_200_status_raises(self):
        self.api_request.return_value = MockResponse(200, envelope({"file_id": "1"}, success=True, status_code=202))
        with self.assertRaises(ApiError) as ctx:
            self.client.file_lookup_by_file_id("C1", "K1", "1")
        self.assertEqual("Failed to retrieve file information.", ctx.exception.message)
        self.assertEqual(202, ctx.exception.status_code)

    def test_missing_identifiers_raise_value_error(self):
        with self.assertRaises(ValueError):
            self.client.get_policy_info(None, None, "1")
        self.api_request.assert_not_called()

    def test_non_object_item_raises_decode_error(self):
        self.api_request.return_value = MockResponse(200, envelope("just a string"))
        with self.assertRaises(DecodeError):
            self.client.get_settlement_info("C1", "K1", "1")
