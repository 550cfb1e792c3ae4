from __future__ import annotations

import dataclasses
import enum
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Final

import httpx

from . import constants as const
from .errors import DispenserApiError, DispenserTimeoutError, MissingCredentialError

logger = logging.getLogger(__name__)


class DispenserAssetName(enum.IntEnum):
    ALGO = 0


@dataclass(frozen=True, slots=True)
class DispenserAsset:
    asset_id: int
    decimals: int
    description: str


DISPENSER_ASSETS: Final[Mapping[DispenserAssetName, DispenserAsset]] = {
    DispenserAssetName.ALGO: DispenserAsset(asset_id=0, decimals=6, description="Algo"),
}


@dataclass(frozen=True, slots=True)
class DispenserFundResponse:
    tx_id: str
    amount: int


@dataclass(frozen=True, slots=True)
class DispenserLimitResponse:
    amount: int


@dataclass(frozen=True, slots=True)
class DispenserConfig:
    """
    Configuration for the TestNet dispenser API client.

    `request_timeout` is in seconds.
    """

    auth_token: str
    request_timeout: float = const.DISPENSER_REQUEST_TIMEOUT
    base_url: str = const.DISPENSER_BASE_URL

    def __post_init__(self) -> None:
        if not self.auth_token:
            raise MissingCredentialError("Dispenser auth_token must be non-empty")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        request_timeout: float | None = None,
    ) -> DispenserConfig:
        """
        Read the auth token from `ALGOKIT_DISPENSER_ACCESS_TOKEN`.

        Raises:
            MissingCredentialError: if the variable is unset or empty.
        """
        env = os.environ if environ is None else environ
        token = env.get(const.DISPENSER_ACCESS_TOKEN_KEY)
        if not token:
            raise MissingCredentialError(
                "Can't init AlgoKit TestNet Dispenser API client because neither "
                f"environment variable {const.DISPENSER_ACCESS_TOKEN_KEY} or the "
                "auth_token were provided."
            )
        return cls(
            auth_token=token,
            request_timeout=request_timeout or const.DISPENSER_REQUEST_TIMEOUT,
        )


def _error_message(response: httpx.Response) -> tuple[str, str | None]:
    """
    Best-available diagnostic for a failed dispenser response.

    The body is read once. A `code` field wins; a 400 falls back to the `message`
    field; anything else reports the raw status.
    """
    message = f"Error processing dispenser API request: {response.status_code}"
    try:
        body: object = response.json()
    except ValueError:
        return message, None
    if not isinstance(body, dict):
        return message, None

    code = body.get("code")
    if code:
        return str(code), str(code)
    if response.status_code == httpx.codes.BAD_REQUEST and body.get("message"):
        return str(body["message"]), None
    return message, None


def _content(response: httpx.Response, *keys: str) -> Mapping[str, Any]:
    """JSON body of a successful response, required to hold `keys`."""
    try:
        content: object = response.json()
    except ValueError as e:
        raise DispenserApiError(
            "Invalid dispenser API response: body is not JSON",
            status_code=response.status_code,
        ) from e
    if not isinstance(content, Mapping) or any(key not in content for key in keys):
        raise DispenserApiError(
            f"Invalid dispenser API response: expected fields {', '.join(keys)}",
            status_code=response.status_code,
        )
    return content


class DispenserApiClient:
    """
    Client for the AlgoKit TestNet Dispenser API.

    Funds an address with Algo, refunds a dispenser transaction and reads the funding
    limit. The auth token comes from `auth_token`, else `config`, else the
    `ALGOKIT_DISPENSER_ACCESS_TOKEN` environment variable; with none of these construction
    fails.

    Example:
        with DispenserApiClient(auth_token="...") as dispenser:
            fund = dispenser.fund("ADDRESS", 1_000_000)
            limit = dispenser.get_limit()
            dispenser.refund(fund.tx_id)
    """

    def __init__(
        self,
        auth_token: str | None = None,
        request_timeout: float | None = None,
        *,
        config: DispenserConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        if config is None:
            config = (
                DispenserConfig(auth_token=auth_token)
                if auth_token
                else DispenserConfig.from_environment()
            )
        elif auth_token:
            config = dataclasses.replace(config, auth_token=auth_token)
        if request_timeout is not None:
            config = dataclasses.replace(config, request_timeout=request_timeout)

        self.config = config
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client()

    @property
    def auth_token(self) -> str:
        return self.config.auth_token

    @property
    def request_timeout(self) -> float:
        return self.config.request_timeout

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> DispenserApiClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _process_dispenser_request(
        self,
        *,
        url_suffix: str,
        data: Mapping[str, Any] | None = None,
        method: str = "POST",
    ) -> httpx.Response:
        """
        Send an authenticated dispenser API request.

        Raises:
            DispenserTimeoutError: if the request exceeds `request_timeout`.
            DispenserApiError: on a non-2xx response or any other transport failure.
        """
        url = f"{self.config.base_url}/{url_suffix}"
        headers = {"Authorization": f"Bearer {self.config.auth_token}"}
        try:
            response = self._http.request(
                method,
                url,
                json=dict(data) if data is not None else None,
                headers=headers,
                timeout=self.config.request_timeout,
            )
        except httpx.TimeoutException as e:
            raise DispenserTimeoutError(
                f"Dispenser API request timed out after {self.config.request_timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise DispenserApiError(
                f"Error processing dispenser API request: {e}"
            ) from e

        if not response.is_success:
            message, code = _error_message(response)
            raise DispenserApiError(
                message, status_code=response.status_code, code=code
            )
        return response

    def fund(self, address: str, amount: int) -> DispenserFundResponse:
        """Fund `address` with `amount` microAlgo."""
        asset = DISPENSER_ASSETS[DispenserAssetName.ALGO]
        response = self._process_dispenser_request(
            url_suffix=f"fund/{asset.asset_id}",
            data={"receiver": address, "amount": amount, "assetID": asset.asset_id},
            method="POST",
        )
        content = _content(response, "txID", "amount")
        result = DispenserFundResponse(tx_id=content["txID"], amount=content["amount"])
        logger.info("Funded %s with %s (txn %s)", address, result.amount, result.tx_id)
        return result

    def refund(self, refund_txn_id: str) -> None:
        """Ask the dispenser to refund the transaction `refund_txn_id`."""
        self._process_dispenser_request(
            url_suffix="refund",
            data={"refundTransactionID": refund_txn_id},
            method="POST",
        )
        logger.info("Refunded dispenser transaction %s", refund_txn_id)

    def get_limit(self) -> DispenserLimitResponse:
        """Current funding limit for Algo, in microAlgo."""
        asset = DISPENSER_ASSETS[DispenserAssetName.ALGO]
        response = self._process_dispenser_request(
            url_suffix=f"fund/{asset.asset_id}/limit",
            method="GET",
        )
        content = _content(response, "amount")
        return DispenserLimitResponse(amount=content["amount"])
