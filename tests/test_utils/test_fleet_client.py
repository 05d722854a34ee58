# tests/test_utils/test_fleet_client.py
"""Tests for Z_utils/Z01_fleet_client.py - Fleet API client."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from fleet_dump.A_core.A02_exceptions import FetchError
from fleet_dump.G_config import DumpConfig
from fleet_dump.Z_utils.Z01_fleet_client import FleetClient


def mock_response(status_code=200, body=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text if text is not None else json.dumps(body)
    response.content = response.text.encode("utf-8")
    return response


@pytest.fixture
def session():
    session = requests.Session()
    session.get = MagicMock()
    return session


@pytest.fixture
def client(session):
    return FleetClient("https://kibana:5601/", username="elastic", password="changeme", per_page=2, session=session)


class TestClientSetup:
    """Tests for session headers, auth and TLS options."""

    def test_headers_and_basic_auth(self, client, session):
        """Test default headers and basic auth."""
        assert client.base_url == "https://kibana:5601"
        assert session.headers["kbn-xsrf"] == "fleet-dump"
        assert session.auth == ("elastic", "changeme")

    def test_api_key_preferred_over_basic_auth(self):
        """Test that an API key replaces basic auth."""
        session = requests.Session()
        FleetClient("https://kibana", username="elastic", password="x", api_key="abc", session=session)
        assert session.headers["Authorization"] == "ApiKey abc"
        assert session.auth is None

    def test_ca_cert_used_for_verification(self):
        """Test that a CA bundle is used to verify Kibana."""
        session = requests.Session()
        FleetClient("https://kibana", ca_cert="/certs/ca.pem", session=session)
        assert session.verify == "/certs/ca.pem"

    def test_verify_ssl_disabled(self):
        """Test turning certificate verification off."""
        session = requests.Session()
        FleetClient("https://kibana", verify_ssl=False, session=session)
        assert session.verify is False

    def test_from_config(self):
        """Test building a client from DumpConfig."""
        config = DumpConfig(kibana_host="https://kibana.example", timeout_seconds=7, per_page=5)
        with FleetClient.from_config(config) as client:
            assert client.base_url == "https://kibana.example"
            assert client.timeout == 7
            assert client.per_page == 5


class TestGetRawPolicy:
    """Tests for fetching a single agent policy."""

    def test_returns_item(self, client, session):
        """Test that the item document is returned."""
        session.get.return_value = mock_response(body={"item": {"id": "p1", "name": "Policy 1"}})

        raw = client.get_raw_policy("p1")

        assert json.loads(raw) == {"id": "p1", "name": "Policy 1"}
        url = session.get.call_args[0][0]
        assert url == "https://kibana:5601/api/fleet/agent_policies/p1"
        assert session.get.call_args[1]["timeout"] == client.timeout

    def test_item_text_returned_verbatim(self, client, session):
        """Test that numbers keep the exact text Fleet sent."""
        session.get.return_value = mock_response(
            text='{"item":{"id":"p1","ratio":1.10,"big":1e400,"exp":1E5}}'
        )
        assert client.get_raw_policy("p1") == b'{"id":"p1","ratio":1.10,"big":1e400,"exp":1E5}'

    def test_non_ascii_kept(self, client, session):
        """Test that non-ASCII text passes through as UTF-8."""
        session.get.return_value = mock_response(text='{"item": {"id": "p1", "name": "Política"}}')
        assert client.get_raw_policy("p1") == '{"id": "p1", "name": "Política"}'.encode("utf-8")

    def test_policy_id_is_quoted(self, client, session):
        """Test that the policy id is URL-quoted."""
        session.get.return_value = mock_response(body={"item": {"id": "a/b"}})
        client.get_raw_policy("a/b")
        assert session.get.call_args[0][0].endswith("/agent_policies/a%2Fb")

    def test_not_found(self, client, session):
        """Test that a 404 keeps its status code."""
        session.get.return_value = mock_response(404, text='{"statusCode":404,"message":"not found"}')
        with pytest.raises(FetchError) as exc_info:
            client.get_raw_policy("missing")
        assert exc_info.value.status_code == 404

    def test_missing_item(self, client, session):
        """Test a response without an item."""
        session.get.return_value = mock_response(body={"items": []})
        with pytest.raises(FetchError):
            client.get_raw_policy("p1")

    def test_connection_error_not_retried(self, client, session):
        """Test that transport errors fail on the first attempt."""
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(FetchError) as exc_info:
            client.get_raw_policy("p1")
        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)
        assert session.get.call_count == 1

    def test_invalid_json_body(self, client, session):
        """Test a body that is not JSON."""
        session.get.return_value = mock_response(200, text="<html>")
        with pytest.raises(FetchError):
            client.get_raw_policy("p1")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_constants_rejected(self, client, session, value):
        """Test that NaN and Infinity literals are not accepted as JSON."""
        session.get.return_value = mock_response(text=f'{{"item": {{"id": "p1", "big": {value}}}}}')
        with pytest.raises(FetchError):
            client.get_raw_policy("p1")

    def test_non_object_body(self, client, session):
        """Test a body that is not a JSON object."""
        session.get.return_value = mock_response(body=["p1"])
        with pytest.raises(FetchError):
            client.get_raw_policy("p1")


class TestListRawPolicies:
    """Tests for listing every agent policy."""

    def test_follows_pagination(self, client, session):
        """Test that pages are requested until total is reached."""
        session.get.side_effect = [
            mock_response(body={"items": [{"id": "p1"}, {"id": "p2"}], "total": 3, "page": 1, "perPage": 2}),
            mock_response(body={"items": [{"id": "p3"}], "total": 3, "page": 2, "perPage": 2}),
        ]

        raws = client.list_raw_policies()

        assert [json.loads(r)["id"] for r in raws] == ["p1", "p2", "p3"]
        pages = [c[1]["params"]["page"] for c in session.get.call_args_list]
        assert pages == [1, 2]
        params = session.get.call_args_list[0][1]["params"]
        assert params["full"] == "true"
        assert params["perPage"] == 2

    def test_empty_list(self, client, session):
        """Test an empty policy list."""
        session.get.return_value = mock_response(body={"items": [], "total": 0, "page": 1, "perPage": 2})
        assert client.list_raw_policies() == []
        assert session.get.call_count == 1

    def test_stops_on_empty_page(self, client, session):
        """Test that an empty page ends pagination."""
        # total larger than what the server actually returns
        session.get.side_effect = [
            mock_response(body={"items": [{"id": "p1"}], "total": 5}),
            mock_response(body={"items": [], "total": 5}),
        ]
        assert len(client.list_raw_policies()) == 1
        assert session.get.call_count == 2

    def test_missing_total_reads_one_page(self, client, session):
        """Test that a response without total is a single page."""
        session.get.return_value = mock_response(body={"items": [{"id": "p1"}, {"id": "p2"}]})
        assert len(client.list_raw_policies()) == 2
        assert session.get.call_count == 1

    @pytest.mark.parametrize("total", [None, "3", 2.5, True])
    def test_non_integer_total(self, client, session, total):
        """Test that a total that is not an integer is a fetch error."""
        session.get.return_value = mock_response(body={"items": [{"id": "p1"}], "total": total})
        with pytest.raises(FetchError) as exc_info:
            client.list_raw_policies()
        assert "total" in str(exc_info.value)

    def test_preserves_document_content(self, client, session):
        """Test that documents decode to what the server sent."""
        doc = {"id": "p1", "package_policies": [{"package": {"name": "nginx"}}], "unicode": "é"}
        session.get.return_value = mock_response(body={"items": [doc], "total": 1})
        assert json.loads(client.list_raw_policies()[0]) == doc

    def test_item_text_returned_verbatim(self, client, session):
        """Test that list items keep the exact text Fleet sent."""
        session.get.return_value = mock_response(
            text='{"items": [{"id":"p1","ratio":1.10}, {"id":"p2","big":1e400}], "total": 2}'
        )
        assert client.list_raw_policies() == [b'{"id":"p1","ratio":1.10}', b'{"id":"p2","big":1e400}']

    def test_missing_items(self, client, session):
        """Test a response without an items list."""
        session.get.return_value = mock_response(body={"total": 1})
        with pytest.raises(FetchError):
            client.list_raw_policies()

    def test_items_not_a_list(self, client, session):
        """Test a response whose items is an object."""
        session.get.return_value = mock_response(body={"items": {"id": "p1"}, "total": 1})
        with pytest.raises(FetchError):
            client.list_raw_policies()

    def test_server_error(self, client, session):
        """Test that a 5xx fails without retrying."""
        session.get.return_value = mock_response(500, text="Internal Server Error")
        with pytest.raises(FetchError) as exc_info:
            client.list_raw_policies()
        assert exc_info.value.status_code == 500
        assert session.get.call_count == 1
