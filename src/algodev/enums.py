"""Closed sets of deploy policies and outcomes."""

import enum

from algokit_utils import OnSchemaBreak, OnUpdate, OperationPerformed

__all__ = ["DeployState", "OnSchemaBreak", "OnUpdate", "OperationPerformed"]


class DeployState(enum.Enum):
    """Where a deploy landed once desired state is compared against the chain."""

    NO_EXISTING_APP = "no_existing_app"
    EXISTING_UNCHANGED = "existing_unchanged"
    EXISTING_SCHEMA_BREAK = "existing_schema_break"
    EXISTING_CODE_OR_METADATA_CHANGED = "existing_code_or_metadata_changed"
