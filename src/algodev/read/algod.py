from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from algosdk.error import AlgodHTTPError

from ..errors import AppNotFoundError
from ..models import CompiledCode, ExistingApp

if TYPE_CHECKING:  # pragma: no cover
    from algosdk.v2client.algod import AlgodClient


@dataclass(slots=True)
class AlgodAppReader:
    """
    Read the on-chain side of a deploy decision through Algod.

    The only required Algod methods are:
    - `compile(source, source_map=True)`
    - `application_info(app_id)`
    """

    algod: AlgodClient

    def compile(self, teal: str) -> CompiledCode:
        """Compile TEAL code, keeping the source map."""
        response = self.algod.compile(teal, source_map=True)
        if not isinstance(response, Mapping):
            raise RuntimeError("Unexpected algod response shape for compile")
        return CompiledCode.from_algod_response(teal, response)

    def get_app(self, app_id: int) -> ExistingApp:
        """
        Fetch an application's programs and schemas.

        Raises:
            AppNotFoundError: if the app doesn't exist (or was deleted).
        """
        try:
            resp = self.algod.application_info(app_id)
        except AlgodHTTPError as e:
            if e.code == 404 or "not found" in str(e).lower():
                raise AppNotFoundError(f"App {app_id} not found") from e
            raise
        if not isinstance(resp, Mapping):
            raise RuntimeError("Unexpected algod response shape for application_info")
        return ExistingApp.from_algod(resp)
