from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _coerce_program(v: object, *, name: str) -> bytes:
    """
    Coerce an Algod program value into `bytes`.

    Algod returns programs as base64 strings; already-decoded bytes are passed through.
    """
    if isinstance(v, (bytes, bytearray)):
        return bytes(v)
    if isinstance(v, str):
        return base64.b64decode(v)
    raise TypeError(f"{name} must be bytes or a base64 string")


@dataclass(frozen=True, slots=True)
class DeployMetadata:
    """
    Identifies a logical app independently of its on-chain id.

    `updatable` / `deletable` are deploy-time controls: `None` means "not controlled at
    deploy time" and leaves `TMPL_UPDATABLE` / `TMPL_DELETABLE` untouched.
    """

    name: str
    version: str
    updatable: bool | None = None
    deletable: bool | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not isinstance(self.version, str):
            raise TypeError("DeployMetadata name and version must be strings")
        for label, flag in (("updatable", self.updatable), ("deletable", self.deletable)):
            if flag is not None and not isinstance(flag, bool):
                raise TypeError(f"DeployMetadata {label} must be a bool or None")

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {"name": self.name, "version": self.version}
        if self.updatable is not None:
            out["updatable"] = self.updatable
        if self.deletable is not None:
            out["deletable"] = self.deletable
        return out


@dataclass(frozen=True, slots=True)
class StateSchema:
    """Number of uint and byte-slice storage slots an app reserves."""

    num_uints: int = 0
    num_byte_slices: int = 0

    def __post_init__(self) -> None:
        if self.num_uints < 0 or self.num_byte_slices < 0:
            raise ValueError("StateSchema slot counts must be non-negative")

    @staticmethod
    def from_algod(value: Mapping[str, Any] | None) -> StateSchema:
        """
        Build from an Algod/Indexer schema object; Algod omits zero-valued fields.
        """
        if not value:
            return StateSchema()
        return StateSchema(
            num_uints=int(value.get("num-uint", 0)),
            num_byte_slices=int(value.get("num-byte-slice", 0)),
        )


@dataclass(frozen=True, slots=True)
class AppMetadata:
    """
    Resolved on-chain state of one logical app at a point in time.

    The deploy metadata fields reflect the latest deployment note seen for the app;
    `created_metadata` keeps the note it was created with.
    """

    app_id: int
    app_address: str
    created_round: int
    updated_round: int
    created_metadata: DeployMetadata
    deleted: bool
    name: str
    version: str
    updatable: bool | None = None
    deletable: bool | None = None

    @property
    def metadata(self) -> DeployMetadata:
        return DeployMetadata(
            name=self.name,
            version=self.version,
            updatable=self.updatable,
            deletable=self.deletable,
        )

    @staticmethod
    def from_deploy_metadata(
        metadata: DeployMetadata,
        *,
        app_id: int,
        app_address: str,
        created_round: int,
        updated_round: int,
        created_metadata: DeployMetadata | None = None,
        deleted: bool = False,
    ) -> AppMetadata:
        return AppMetadata(
            app_id=app_id,
            app_address=app_address,
            created_round=created_round,
            updated_round=updated_round,
            created_metadata=created_metadata or metadata,
            deleted=deleted,
            name=metadata.name,
            version=metadata.version,
            updatable=metadata.updatable,
            deletable=metadata.deletable,
        )


@dataclass(slots=True)
class AppLookup:
    """
    Name-indexed view of the apps a creator deployed with a deployment note.

    Building one is expensive (multiple indexer queries); build it once and pass it to
    subsequent deploys, refreshing it after any deploy that changed the creator's apps.
    """

    creator: str
    apps: dict[str, AppMetadata] = field(default_factory=dict)

    def get(self, name: str) -> AppMetadata | None:
        return self.apps.get(name)


@dataclass(frozen=True, slots=True)
class CompiledCode:
    """Output of compiling TEAL through Algod."""

    teal: str
    bytecode: bytes
    compiled_base64: str
    compiled_hash: str
    source_map: Mapping[str, Any] | None = None

    @staticmethod
    def from_algod_response(teal: str, response: Mapping[str, Any]) -> CompiledCode:
        """
        Build from the Algod `/v2/teal/compile` response shape:
        `{"hash": "...", "result": "<base64>", "sourcemap": {...}}`.
        """
        compiled_base64 = response.get("result")
        if not isinstance(compiled_base64, str):
            raise RuntimeError("Unexpected algod response shape for compile")
        return CompiledCode(
            teal=teal,
            bytecode=base64.b64decode(compiled_base64),
            compiled_base64=compiled_base64,
            compiled_hash=str(response.get("hash", "")),
            source_map=response.get("sourcemap"),
        )


@dataclass(frozen=True, slots=True)
class ExistingApp:
    """The parts of an on-chain application the deploy decision compares against."""

    app_id: int
    approval_program: bytes
    clear_program: bytes
    global_schema: StateSchema
    local_schema: StateSchema
    extra_program_pages: int = 0

    @staticmethod
    def from_algod(value: Mapping[str, Any]) -> ExistingApp:
        """
        Build from an Algod `application_info` response:
        `{"id": ..., "params": {"approval-program": "<b64>", ...}}`.
        """
        params = value.get("params")
        if not isinstance(params, Mapping):
            raise RuntimeError("Unexpected algod response shape for application_info")
        return ExistingApp(
            app_id=int(value["id"]),
            approval_program=_coerce_program(
                params.get("approval-program", b""), name="approval-program"
            ),
            clear_program=_coerce_program(
                params.get("clear-state-program", b""), name="clear-state-program"
            ),
            global_schema=StateSchema.from_algod(params.get("global-state-schema")),
            local_schema=StateSchema.from_algod(params.get("local-state-schema")),
            extra_program_pages=int(params.get("extra-program-pages", 0)),
        )
