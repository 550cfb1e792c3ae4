# ruff: noqa: RUF022
"""
Algorand developer utilities.

Public entrypoints:
- :class:`algodev.deploy.deployer.AppDeployer` (idempotent app deployment)
- :func:`algodev.read.lookup.get_creator_apps` (name-indexed lookup of deployed apps)
- :class:`algodev.dispenser.DispenserApiClient` (AlgoKit TestNet dispenser API)
- :class:`algodev.modal.WalletConnectModal` (wallet-connect modal markup)

Deployment builds on AlgoKit's `AlgorandClient` for sending transactions, and on
Algod/Indexer for compiling TEAL and discovering existing deployments.
"""

from __future__ import annotations

from . import constants
from .codec import decode_deployment_note, encode_deployment_note
from .deploy import AppDeployer, AppDeployParams, DeployResult, decide_deploy_state
from .dispenser import (
    DispenserApiClient,
    DispenserConfig,
    DispenserFundResponse,
    DispenserLimitResponse,
)
from .enums import DeployState, OnSchemaBreak, OnUpdate, OperationPerformed
from .errors import (
    AlgodevError,
    AppNotFoundError,
    AppUpdateError,
    CreatorMismatchError,
    DeployPolicyError,
    DeployTimeControlError,
    DispenserApiError,
    DispenserTimeoutError,
    MissingCredentialError,
    MissingIndexerError,
    ReplaceInterruptedError,
    SchemaBreakError,
)
from .modal import WalletConnectModal
from .models import (
    AppLookup,
    AppMetadata,
    CompiledCode,
    DeployMetadata,
    ExistingApp,
    StateSchema,
)
from .read import AlgodAppReader, get_creator_apps
from .schema import is_schema_broken, required_extra_program_pages
from .template import (
    perform_template_substitution,
    perform_template_substitution_and_compile,
    replace_deploy_time_control_params,
    strip_comments,
)

__all__ = [
    # Deploy
    "AppDeployer",
    "AppDeployParams",
    "DeployResult",
    "decide_deploy_state",
    # Read
    "AlgodAppReader",
    "get_creator_apps",
    # Dispenser
    "DispenserApiClient",
    "DispenserConfig",
    "DispenserFundResponse",
    "DispenserLimitResponse",
    # Modal
    "WalletConnectModal",
    # Codec
    "encode_deployment_note",
    "decode_deployment_note",
    # Enums
    "DeployState",
    "OnSchemaBreak",
    "OnUpdate",
    "OperationPerformed",
    # Errors
    "AlgodevError",
    "AppNotFoundError",
    "AppUpdateError",
    "CreatorMismatchError",
    "DeployPolicyError",
    "DeployTimeControlError",
    "DispenserApiError",
    "DispenserTimeoutError",
    "MissingCredentialError",
    "MissingIndexerError",
    "ReplaceInterruptedError",
    "SchemaBreakError",
    # Models
    "AppLookup",
    "AppMetadata",
    "CompiledCode",
    "DeployMetadata",
    "ExistingApp",
    "StateSchema",
    # Schema
    "is_schema_broken",
    "required_extra_program_pages",
    # Template
    "perform_template_substitution",
    "perform_template_substitution_and_compile",
    "replace_deploy_time_control_params",
    "strip_comments",
    # Constants
    "constants",
]
