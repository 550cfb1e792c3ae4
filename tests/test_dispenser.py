"""
Unit tests for algodev.dispenser.

Tests cover:
- DispenserConfig validation and environment loading
- DispenserApiClient construction and token precedence
- fund / refund / get_limit requests against a mocked API
- Error mapping: error code, 400 message, raw status and timeouts
"""

import json
from collections.abc import Iterator

import httpx
import pytest
import respx

from algodev import (
    DispenserApiClient,
    DispenserApiError,
    DispenserConfig,
    DispenserFundResponse,
    DispenserLimitResponse,
    DispenserTimeoutError,
    MissingCredentialError,
)
from algodev import constants as const

TOKEN = "dispenser-token"
ADDRESS = "RECEIVERADDRESS"


@pytest.fixture
def api() -> Iterator[respx.MockRouter]:
    with respx.mock(base_url=const.DISPENSER_BASE_URL) as respx_mock:
        yield respx_mock


@pytest.fixture
def client() -> Iterator[DispenserApiClient]:
    with DispenserApiClient(auth_token=TOKEN) as dispenser:
        yield dispenser


class TestDispenserConfig:
    """Tests for DispenserConfig."""

    def test_defaults(self) -> None:
        """Test default timeout and base URL."""
        config = DispenserConfig(auth_token=TOKEN)
        assert config.request_timeout == 15
        assert config.base_url == "https://api.dispenser.algorandfoundation.tools"

    def test_empty_token_rejected(self) -> None:
        """Test an empty token is a missing credential."""
        with pytest.raises(MissingCredentialError):
            DispenserConfig(auth_token="")

    def test_non_positive_timeout_rejected(self) -> None:
        """Test the timeout must be positive."""
        with pytest.raises(ValueError, match="request_timeout"):
            DispenserConfig(auth_token=TOKEN, request_timeout=0)

    def test_from_environment(self) -> None:
        """Test the token is read from ALGOKIT_DISPENSER_ACCESS_TOKEN."""
        config = DispenserConfig.from_environment(
            {"ALGOKIT_DISPENSER_ACCESS_TOKEN": "env-token"}, request_timeout=3
        )
        assert config.auth_token == "env-token"
        assert config.request_timeout == 3

    @pytest.mark.parametrize("environ", [{}, {"ALGOKIT_DISPENSER_ACCESS_TOKEN": ""}])
    def test_from_environment_missing(self, environ: dict[str, str]) -> None:
        """Test a missing or empty variable raises MissingCredentialError."""
        with pytest.raises(MissingCredentialError, match="ALGOKIT_DISPENSER_ACCESS_TOKEN"):
            DispenserConfig.from_environment(environ)


class TestDispenserApiClientInit:
    """Tests for DispenserApiClient construction."""

    def test_explicit_token(self) -> None:
        """Test an explicit token is used with the default timeout."""
        dispenser = DispenserApiClient(auth_token=TOKEN)
        assert dispenser.auth_token == TOKEN
        assert dispenser.request_timeout == 15
        dispenser.close()

    def test_explicit_timeout(self) -> None:
        """Test an explicit timeout overrides the default."""
        dispenser = DispenserApiClient(auth_token=TOKEN, request_timeout=2)
        assert dispenser.request_timeout == 2
        dispenser.close()

    def test_environment_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the token falls back to the environment variable."""
        monkeypatch.setenv(const.DISPENSER_ACCESS_TOKEN_KEY, "env-token")
        dispenser = DispenserApiClient()
        assert dispenser.auth_token == "env-token"
        dispenser.close()

    def test_explicit_token_wins_over_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test an explicit token takes precedence over the environment."""
        monkeypatch.setenv(const.DISPENSER_ACCESS_TOKEN_KEY, "env-token")
        dispenser = DispenserApiClient(auth_token=TOKEN)
        assert dispenser.auth_token == TOKEN
        dispenser.close()

    def test_missing_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test construction fails without any token."""
        monkeypatch.delenv(const.DISPENSER_ACCESS_TOKEN_KEY, raising=False)
        with pytest.raises(MissingCredentialError, match="neither environment variable"):
            DispenserApiClient()

    def test_config_with_token_override(self) -> None:
        """Test auth_token replaces the token of a given config."""
        config = DispenserConfig(auth_token="config-token", request_timeout=5)
        dispenser = DispenserApiClient(auth_token=TOKEN, config=config)
        assert dispenser.auth_token == TOKEN
        assert dispenser.request_timeout == 5
        dispenser.close()

    def test_shared_http_client_not_closed(self) -> None:
        """Test a caller-supplied httpx client is left open on close."""
        http_client = httpx.Client()
        with DispenserApiClient(auth_token=TOKEN, http_client=http_client):
            pass
        assert not http_client.is_closed
        http_client.close()


class TestDispenserRequests:
    """Tests for fund, refund and get_limit."""

    def test_fund(self, api: respx.MockRouter, client: DispenserApiClient) -> None:
        """Test fund posts the receiver and amount and parses the response."""
        route = api.post("/fund/0").mock(
            return_value=httpx.Response(200, json={"txID": "TX1", "amount": 1_000_000})
        )

        result = client.fund(ADDRESS, 1_000_000)

        assert result == DispenserFundResponse(tx_id="TX1", amount=1_000_000)
        request = route.calls.last.request
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"
        assert json.loads(request.content) == {
            "receiver": ADDRESS,
            "amount": 1_000_000,
            "assetID": 0,
        }
        assert request.extensions["timeout"]["read"] == 15

    def test_refund(self, api: respx.MockRouter, client: DispenserApiClient) -> None:
        """Test refund posts the transaction id."""
        route = api.post("/refund").mock(return_value=httpx.Response(200))

        assert client.refund("TX1") is None

        request = route.calls.last.request
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"
        assert json.loads(request.content) == {"refundTransactionID": "TX1"}

    def test_get_limit(self, api: respx.MockRouter, client: DispenserApiClient) -> None:
        """Test get_limit reads the current limit."""
        route = api.get("/fund/0/limit").mock(
            return_value=httpx.Response(200, json={"amount": 5_000_000})
        )

        assert client.get_limit() == DispenserLimitResponse(amount=5_000_000)
        assert route.calls.last.request.headers["Authorization"] == f"Bearer {TOKEN}"

    def test_custom_timeout_is_sent(self, api: respx.MockRouter) -> None:
        """Test the configured timeout is applied to requests."""
        route = api.get("/fund/0/limit").mock(
            return_value=httpx.Response(200, json={"amount": 1})
        )
        with DispenserApiClient(auth_token=TOKEN, request_timeout=3) as dispenser:
            dispenser.get_limit()
        assert route.calls.last.request.extensions["timeout"]["read"] == 3


class TestDispenserErrors:
    """Tests for dispenser error mapping."""

    def test_code_wins(self, api: respx.MockRouter, client: DispenserApiClient) -> None:
        """Test the error code is reported when present."""
        api.post("/fund/0").mock(
            return_value=httpx.Response(
                403, json={"code": "fund_limit_exceeded", "message": "Limit exceeded"}
            )
        )
        with pytest.raises(DispenserApiError, match="fund_limit_exceeded") as exc_info:
            client.fund(ADDRESS, 1)
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "fund_limit_exceeded"

    def test_code_wins_on_bad_request(
        self, api: respx.MockRouter, client: DispenserApiClient
    ) -> None:
        """Test the code is preferred over the message even on a 400."""
        api.post("/refund").mock(
            return_value=httpx.Response(400, json={"code": "invalid_txn", "message": "x"})
        )
        with pytest.raises(DispenserApiError) as exc_info:
            client.refund("TX1")
        assert str(exc_info.value) == "invalid_txn"

    def test_bad_request_message(
        self, api: respx.MockRouter, client: DispenserApiClient
    ) -> None:
        """Test a 400 without a code reports its message."""
        api.post("/refund").mock(
            return_value=httpx.Response(400, json={"message": "Transaction already refunded"})
        )
        with pytest.raises(DispenserApiError, match="Transaction already refunded") as exc_info:
            client.refund("TX1")
        assert exc_info.value.status_code == 400
        assert exc_info.value.code is None

    def test_message_ignored_on_other_status(
        self, api: respx.MockRouter, client: DispenserApiClient
    ) -> None:
        """Test a message without a code on a non-400 falls back to the status."""
        api.get("/fund/0/limit").mock(
            return_value=httpx.Response(401, json={"message": "Unauthorized"})
        )
        with pytest.raises(DispenserApiError) as exc_info:
            client.get_limit()
        assert str(exc_info.value) == "Error processing dispenser API request: 401"

    def test_non_json_body(self, api: respx.MockRouter, client: DispenserApiClient) -> None:
        """Test a non-JSON error body falls back to the status."""
        api.post("/fund/0").mock(return_value=httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(DispenserApiError) as exc_info:
            client.fund(ADDRESS, 1)
        assert str(exc_info.value) == "Error processing dispenser API request: 502"
        assert exc_info.value.status_code == 502

    def test_timeout(self, api: respx.MockRouter, client: DispenserApiClient) -> None:
        """Test a timeout is raised as DispenserTimeoutError."""
        api.post("/fund/0").mock(side_effect=httpx.ConnectTimeout)
        with pytest.raises(DispenserTimeoutError, match="timed out"):
            client.fund(ADDRESS, 1)

    def test_transport_error(self, api: respx.MockRouter, client: DispenserApiClient) -> None:
        """Test other transport failures are raised as DispenserApiError."""
        api.post("/fund/0").mock(side_effect=httpx.ConnectError)
        with pytest.raises(DispenserApiError) as exc_info:
            client.fund(ADDRESS, 1)
        assert not isinstance(exc_info.value, DispenserTimeoutError)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_success_with_non_json_body(
        self, api: respx.MockRouter, client: DispenserApiClient
    ) -> None:
        """Test a 2xx body that isn't JSON raises DispenserApiError."""
        api.post("/fund/0").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(DispenserApiError, match="not JSON") as exc_info:
            client.fund(ADDRESS, 1)
        assert exc_info.value.status_code == 200

    def test_success_missing_fields(
        self, api: respx.MockRouter, client: DispenserApiClient
    ) -> None:
        """Test a 2xx body without the expected fields raises DispenserApiError."""
        api.post("/fund/0").mock(return_value=httpx.Response(200, json={"txID": "TX1"}))
        with pytest.raises(DispenserApiError, match="txID, amount"):
            client.fund(ADDRESS, 1)

    def test_limit_body_not_an_object(
        self, api: respx.MockRouter, client: DispenserApiClient
    ) -> None:
        """Test a 2xx JSON body that isn't an object raises DispenserApiError."""
        api.get("/fund/0/limit").mock(return_value=httpx.Response(200, json=[1, 2]))
        with pytest.raises(DispenserApiError, match="amount"):
            client.get_limit()
