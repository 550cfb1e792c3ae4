from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .deploy.deployer import DeployResult
    from .enums import DeployState


class AlgodevError(Exception):
    """Base class for all SDK errors."""


class MissingCredentialError(AlgodevError, ValueError):
    """Raised when a client is constructed without a required credential."""


class MissingIndexerError(AlgodevError, ValueError):
    """Raised when a deploy has neither a cached app lookup nor an indexer to build one."""


class CreatorMismatchError(AlgodevError, ValueError):
    """Raised when a cached app lookup belongs to a different creator than the deployer."""


class DeployTimeControlError(AlgodevError, ValueError):
    """
    Raised when a deploy-time control parameter (updatable/deletable) has an explicit value
    but its template token is not present in the TEAL code.
    """


class AppNotFoundError(AlgodevError, LookupError):
    """Raised when an application is not found on-chain."""


class DeployPolicyError(AlgodevError, RuntimeError):
    """
    Raised when the deploy decision hits a policy set to fail.

    Carries the app name, the existing app id and the decision state that triggered it.
    """

    def __init__(
        self, message: str, *, app_name: str, app_id: int, state: DeployState
    ) -> None:
        super().__init__(message)
        self.app_name = app_name
        self.app_id = app_id
        self.state = state


class SchemaBreakError(DeployPolicyError):
    """Raised on a schema break when `on_schema_break=OnSchemaBreak.Fail`."""


class AppUpdateError(DeployPolicyError):
    """Raised on a program or metadata change when `on_update=OnUpdate.Fail`."""


class ReplaceInterruptedError(AlgodevError, RuntimeError):
    """
    Raised when a replace deleted the existing app but creating its successor failed.

    The delete and create are two separate committed transactions. `partial` holds what was
    committed before the failure (the delete result and the deleted app) so callers can
    recover, typically by re-running the deploy with a fresh app lookup.
    """

    def __init__(self, message: str, *, partial: DeployResult) -> None:
        super().__init__(message)
        self.partial = partial


class DispenserApiError(AlgodevError, RuntimeError):
    """
    Raised when a dispenser API request fails (non-2xx response or transport failure).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class DispenserTimeoutError(DispenserApiError):
    """Raised when a dispenser API request exceeds the configured timeout."""
