from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from algokit_utils import AppCreateParams, AppDeleteParams, AppUpdateParams
from algosdk.logic import get_application_address

from ..codec import encode_deployment_note
from ..enums import DeployState, OnSchemaBreak, OnUpdate, OperationPerformed
from ..errors import (
    AppUpdateError,
    CreatorMismatchError,
    MissingIndexerError,
    ReplaceInterruptedError,
    SchemaBreakError,
)
from ..models import (
    AppLookup,
    AppMetadata,
    CompiledCode,
    DeployMetadata,
    ExistingApp,
    StateSchema,
)
from ..read.algod import AlgodAppReader
from ..read.lookup import get_creator_apps
from ..schema import is_schema_broken, required_extra_program_pages
from ..template import TemplateParams, perform_template_substitution_and_compile

if TYPE_CHECKING:  # pragma: no cover
    from algokit_utils import AlgorandClient, SigningAccount
    from algosdk.v2client.indexer import IndexerClient

logger = logging.getLogger(__name__)


def _confirmed_round(result: Any) -> int:
    """
    Extract the confirmed round from an AlgoKit send result, tolerating minor shape differences.
    """
    confirmation = getattr(result, "confirmation", None)
    if isinstance(confirmation, Mapping):
        return int(confirmation.get("confirmed-round", 0))
    return int(getattr(confirmation, "confirmed_round", 0) or 0)


@dataclass(frozen=True, slots=True)
class AppDeployParams:
    """
    Everything needed to idempotently deploy one logical app.

    Notes:
    - `approval_teal` gets `TMPL_UPDATABLE` / `TMPL_DELETABLE` replaced from `metadata`
      when those flags are set, on top of `template_params`.
    - `extra_program_pages` defaults to the minimum the compiled programs need.
    - Pass `existing_deployments` (from `get_creator_apps`) to skip the indexer lookup.
      It must be fresh: don't reuse a lookup across a deploy that changed the creator's apps.
    """

    metadata: DeployMetadata
    approval_teal: str
    clear_teal: str
    global_schema: StateSchema
    local_schema: StateSchema
    extra_program_pages: int | None = None
    template_params: TemplateParams | None = None
    on_update: OnUpdate = OnUpdate.Fail
    on_schema_break: OnSchemaBreak = OnSchemaBreak.ReplaceApp
    existing_deployments: AppLookup | None = None
    create_args: Sequence[bytes] | None = None
    update_args: Sequence[bytes] | None = None
    delete_args: Sequence[bytes] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.global_schema, StateSchema) or not isinstance(
            self.local_schema, StateSchema
        ):
            raise ValueError("global_schema and local_schema must be StateSchema values")
        if self.extra_program_pages is not None and self.extra_program_pages < 0:
            raise ValueError("extra_program_pages must be non-negative")
        if not isinstance(self.on_update, OnUpdate):
            raise ValueError(f"Unsupported on_update policy: {self.on_update!r}")
        if not isinstance(self.on_schema_break, OnSchemaBreak):
            raise ValueError(
                f"Unsupported on_schema_break policy: {self.on_schema_break!r}"
            )


@dataclass(frozen=True, slots=True)
class DeployResult:
    """
    Outcome of a deploy.

    - `app` is the resulting app (the existing one for NOTHING); None only in the partial
      result of an interrupted replace.
    - `create_result` / `update_result` / `delete_result` are the AlgoKit send results of
      whichever transactions were sent.
    - `deleted_app` is the replaced app, for Replace.
    """

    operation_performed: OperationPerformed
    state: DeployState
    app: AppMetadata | None
    compiled_approval: CompiledCode | None = None
    compiled_clear: CompiledCode | None = None
    create_result: Any = None
    update_result: Any = None
    delete_result: Any = None
    deleted_app: AppMetadata | None = None


def decide_deploy_state(
    *,
    existing: AppMetadata | None,
    on_chain: ExistingApp | None,
    metadata: DeployMetadata,
    approval: CompiledCode,
    clear: CompiledCode,
    global_schema: StateSchema,
    local_schema: StateSchema,
    extra_program_pages: int,
) -> DeployState:
    """
    Compare desired state against the deployed app.

    Schema growth (global, local or extra program pages) is checked before program and
    metadata changes, since it rules out an in-place update.
    """
    if existing is None or existing.deleted or on_chain is None:
        return DeployState.NO_EXISTING_APP

    if (
        is_schema_broken(on_chain.global_schema, global_schema)
        or is_schema_broken(on_chain.local_schema, local_schema)
        or extra_program_pages > on_chain.extra_program_pages
    ):
        return DeployState.EXISTING_SCHEMA_BREAK

    if (
        approval.bytecode != on_chain.approval_program
        or clear.bytecode != on_chain.clear_program
        or metadata != existing.metadata
    ):
        return DeployState.EXISTING_CODE_OR_METADATA_CHANGED

    return DeployState.EXISTING_UNCHANGED


@dataclass(slots=True)
class _Compiled:
    approval: CompiledCode
    clear: CompiledCode
    extra_program_pages: int


class AppDeployer:
    """
    Idempotently create, update, replace (delete + create) or leave alone an app,
    identified by name among the apps its creator deployed.

    Transactions are built and sent through the AlgoKit `AlgorandClient`; existing apps are
    found through the indexer unless the caller passes a cached `AppLookup`.
    """

    def __init__(
        self, algorand: AlgorandClient, *, indexer: IndexerClient | None = None
    ) -> None:
        self.algorand = algorand
        self._indexer = indexer
        self._algod = AlgodAppReader(algorand.client.algod)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_creator_apps(self, creator: SigningAccount | str) -> AppLookup:
        return get_creator_apps(self._require_indexer(), creator)

    def deploy(self, deployer: SigningAccount, params: AppDeployParams) -> DeployResult:
        """
        Deploy `params.metadata.name` for `deployer`.

        Raises:
            CreatorMismatchError: if `existing_deployments` belongs to another creator.
            MissingIndexerError: if there's no `existing_deployments` and no indexer.
            DeployTimeControlError: if updatable/deletable is set but its token is missing.
            SchemaBreakError: on a schema break with `OnSchemaBreak.Fail`.
            AppUpdateError: on a program/metadata change with `OnUpdate.Fail`.
            ReplaceInterruptedError: if a replace deleted the old app but the create failed.
        """
        lookup = self._resolve_lookup(deployer, params)
        compiled = self._compile(params)

        existing = lookup.get(params.metadata.name)
        if existing is None or existing.deleted:
            logger.info(
                "%s not found in %s account, deploying app.",
                params.metadata.name,
                deployer.address,
            )
            return self._create(
                deployer, params, compiled, state=DeployState.NO_EXISTING_APP
            )

        logger.info(
            "Existing app %s found by creator %s, with app id %s and version %s.",
            existing.name,
            lookup.creator,
            existing.app_id,
            existing.version,
        )
        on_chain = self._algod.get_app(existing.app_id)
        state = decide_deploy_state(
            existing=existing,
            on_chain=on_chain,
            metadata=params.metadata,
            approval=compiled.approval,
            clear=compiled.clear,
            global_schema=params.global_schema,
            local_schema=params.local_schema,
            extra_program_pages=compiled.extra_program_pages,
        )

        match state:
            case DeployState.EXISTING_SCHEMA_BREAK:
                return self._on_schema_break(deployer, params, compiled, existing)
            case DeployState.EXISTING_CODE_OR_METADATA_CHANGED:
                return self._on_update(deployer, params, compiled, existing)
            case DeployState.EXISTING_UNCHANGED:
                logger.info("No detected changes in app, nothing to do.")
                return DeployResult(
                    operation_performed=OperationPerformed.Nothing,
                    state=state,
                    app=existing,
                    compiled_approval=compiled.approval,
                    compiled_clear=compiled.clear,
                )
            case _:
                raise RuntimeError(f"Unexpected deploy state for existing app: {state}")

    # ------------------------------------------------------------------
    # Decision branches
    # ------------------------------------------------------------------

    def _on_schema_break(
        self,
        deployer: SigningAccount,
        params: AppDeployParams,
        compiled: _Compiled,
        existing: AppMetadata,
    ) -> DeployResult:
        state = DeployState.EXISTING_SCHEMA_BREAK
        logger.warning(
            "Detected a breaking app schema change in app %s.", existing.app_id
        )
        match params.on_schema_break:
            case OnSchemaBreak.Fail:
                raise SchemaBreakError(
                    "Schema break detected and on_schema_break=OnSchemaBreak.Fail, "
                    "stopping deployment. If you want to try deleting and recreating the "
                    "app then re-run with on_schema_break=OnSchemaBreak.ReplaceApp",
                    app_name=existing.name,
                    app_id=existing.app_id,
                    state=state,
                )
            case OnSchemaBreak.AppendApp:
                logger.info("on_schema_break=AppendApp, will attempt to create a new app")
                return self._create(deployer, params, compiled, state=state)
            case OnSchemaBreak.ReplaceApp:
                logger.info("on_schema_break=ReplaceApp, will attempt to replace app")
                return self._replace(deployer, params, compiled, existing, state=state)
            case _:
                raise ValueError(
                    f"Unsupported on_schema_break policy: {params.on_schema_break!r}"
                )

    def _on_update(
        self,
        deployer: SigningAccount,
        params: AppDeployParams,
        compiled: _Compiled,
        existing: AppMetadata,
    ) -> DeployResult:
        state = DeployState.EXISTING_CODE_OR_METADATA_CHANGED
        logger.warning(
            "Detected a program or deploy metadata change in app %s.", existing.app_id
        )
        match params.on_update:
            case OnUpdate.Fail:
                raise AppUpdateError(
                    "Update detected and on_update=OnUpdate.Fail, stopping deployment. "
                    "If you want to try updating the app then re-run with "
                    "on_update=OnUpdate.UpdateApp",
                    app_name=existing.name,
                    app_id=existing.app_id,
                    state=state,
                )
            case OnUpdate.UpdateApp:
                logger.info("on_update=UpdateApp, will attempt to update app")
                return self._update(deployer, params, compiled, existing)
            case OnUpdate.ReplaceApp:
                logger.info("on_update=ReplaceApp, will attempt to replace app")
                return self._replace(deployer, params, compiled, existing, state=state)
            case OnUpdate.AppendApp:
                logger.info("on_update=AppendApp, will attempt to create a new app")
                return self._create(deployer, params, compiled, state=state)
            case _:
                raise ValueError(f"Unsupported on_update policy: {params.on_update!r}")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _create(
        self,
        deployer: SigningAccount,
        params: AppDeployParams,
        compiled: _Compiled,
        *,
        state: DeployState,
    ) -> DeployResult:
        result = self.algorand.send.app_create(
            AppCreateParams(
                sender=deployer.address,
                signer=deployer.signer,
                approval_program=compiled.approval.bytecode,
                clear_state_program=compiled.clear.bytecode,
                schema={
                    "global_ints": params.global_schema.num_uints,
                    "global_byte_slices": params.global_schema.num_byte_slices,
                    "local_ints": params.local_schema.num_uints,
                    "local_byte_slices": params.local_schema.num_byte_slices,
                },
                extra_program_pages=compiled.extra_program_pages,
                args=list(params.create_args) if params.create_args else None,
                note=encode_deployment_note(params.metadata),
            )
        )
        app_id = int(result.app_id)
        confirmed_round = _confirmed_round(result)
        logger.info(
            "%s (%s) deployed successfully, with app id %s.",
            params.metadata.name,
            params.metadata.version,
            app_id,
        )
        return DeployResult(
            operation_performed=OperationPerformed.Create,
            state=state,
            app=AppMetadata.from_deploy_metadata(
                params.metadata,
                app_id=app_id,
                app_address=get_application_address(app_id),
                created_round=confirmed_round,
                updated_round=confirmed_round,
            ),
            compiled_approval=compiled.approval,
            compiled_clear=compiled.clear,
            create_result=result,
        )

    def _update(
        self,
        deployer: SigningAccount,
        params: AppDeployParams,
        compiled: _Compiled,
        existing: AppMetadata,
    ) -> DeployResult:
        result = self.algorand.send.app_update(
            AppUpdateParams(
                sender=deployer.address,
                signer=deployer.signer,
                app_id=existing.app_id,
                approval_program=compiled.approval.bytecode,
                clear_state_program=compiled.clear.bytecode,
                args=list(params.update_args) if params.update_args else None,
                note=encode_deployment_note(params.metadata),
            )
        )
        logger.info(
            "%s (%s) updated successfully, with app id %s.",
            params.metadata.name,
            params.metadata.version,
            existing.app_id,
        )
        return DeployResult(
            operation_performed=OperationPerformed.Update,
            state=DeployState.EXISTING_CODE_OR_METADATA_CHANGED,
            app=AppMetadata.from_deploy_metadata(
                params.metadata,
                app_id=existing.app_id,
                app_address=existing.app_address,
                created_round=existing.created_round,
                updated_round=_confirmed_round(result),
                created_metadata=existing.created_metadata,
            ),
            compiled_approval=compiled.approval,
            compiled_clear=compiled.clear,
            update_result=result,
        )

    def _replace(
        self,
        deployer: SigningAccount,
        params: AppDeployParams,
        compiled: _Compiled,
        existing: AppMetadata,
        *,
        state: DeployState,
    ) -> DeployResult:
        """
        Delete the existing app, then create its successor.

        These are two separately committed transactions. If the create fails, the old app is
        already gone and `ReplaceInterruptedError.partial` reports the delete.
        """
        logger.info("Deleting existing %s app with id %s", existing.name, existing.app_id)
        delete_result = self.algorand.send.app_delete(
            AppDeleteParams(
                sender=deployer.address,
                signer=deployer.signer,
                app_id=existing.app_id,
                args=list(params.delete_args) if params.delete_args else None,
            )
        )
        deleted_app = dataclasses.replace(
            existing, deleted=True, updated_round=_confirmed_round(delete_result)
        )

        try:
            created = self._create(deployer, params, compiled, state=state)
        except Exception as e:
            partial = DeployResult(
                operation_performed=OperationPerformed.Replace,
                state=state,
                app=None,
                compiled_approval=compiled.approval,
                compiled_clear=compiled.clear,
                delete_result=delete_result,
                deleted_app=deleted_app,
            )
            raise ReplaceInterruptedError(
                f"Deleted app {existing.app_id} ({existing.name}) but failed to create "
                "its replacement; re-run the deploy with a fresh app lookup",
                partial=partial,
            ) from e

        return dataclasses.replace(
            created,
            operation_performed=OperationPerformed.Replace,
            delete_result=delete_result,
            deleted_app=deleted_app,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_indexer(self) -> IndexerClient:
        indexer = self._indexer
        if indexer is None:
            indexer = getattr(self.algorand.client, "indexer_if_present", None)
        if indexer is None:
            raise MissingIndexerError(
                "One of existing_deployments or an indexer must be provided"
            )
        return indexer

    def _resolve_lookup(
        self, deployer: SigningAccount, params: AppDeployParams
    ) -> AppLookup:
        cached = params.existing_deployments
        if cached is None:
            return self.get_creator_apps(deployer.address)
        if cached.creator != deployer.address:
            raise CreatorMismatchError(
                f"Received invalid existing_deployments value for creator {cached.creator} "
                f"when attempting to deploy for creator {deployer.address}"
            )
        return cached

    def _compile(self, params: AppDeployParams) -> _Compiled:
        algod = self.algorand.client.algod
        approval = perform_template_substitution_and_compile(
            algod, params.approval_teal, params.template_params, params.metadata
        )
        clear = perform_template_substitution_and_compile(
            algod, params.clear_teal, params.template_params
        )
        extra_program_pages = params.extra_program_pages
        if extra_program_pages is None:
            extra_program_pages = required_extra_program_pages(
                approval.bytecode, clear.bytecode
            )
        return _Compiled(approval, clear, extra_program_pages)
