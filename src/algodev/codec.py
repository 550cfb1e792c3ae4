from __future__ import annotations

import base64
import binascii
import json
import logging

from . import constants as const
from .models import DeployMetadata

logger = logging.getLogger(__name__)


def b64_encode(data: bytes) -> str:
    """Standard base64 (with padding)."""
    return base64.b64encode(data).decode("ascii")


def b64_decode(data_b64: str) -> bytes:
    """Standard base64 decode (accepts padding)."""
    return base64.b64decode(data_b64.encode("ascii"), validate=True)


# ---------------------------------------------------------------------------
# ARC-2 deployment note
# ---------------------------------------------------------------------------


def encode_deployment_note(metadata: DeployMetadata) -> bytes:
    """
    Encode the ARC-2 note attached to app create/update transactions.

    The note is JSON (j) formatted:
      b"ALGOKIT_DEPLOYER:j<payload>"

    where payload is compact UTF-8 JSON of the deploy metadata; unset flags are omitted.
    """
    payload = json.dumps(
        metadata.to_dict(), ensure_ascii=False, separators=(",", ":")
    ).encode("utf-8")
    return const.DEPLOYMENT_NOTE_PREFIX + payload


def _note_bytes(note: bytes | str) -> bytes | None:
    if isinstance(note, (bytes, bytearray)):
        return bytes(note)
    # Indexer returns notes as base64 text.
    try:
        return b64_decode(note)
    except (binascii.Error, ValueError, UnicodeEncodeError):
        return None


def decode_deployment_note(note: bytes | str | None) -> DeployMetadata | None:
    """
    Decode a deployment note, returning None if it isn't one.

    Notes of other dApps, garbled payloads and missing notes are expected while scanning
    a creator's transactions, so this never raises.
    """
    if not note:
        return None

    raw = _note_bytes(note)
    if raw is None or not raw.startswith(const.DEPLOYMENT_NOTE_PREFIX):
        return None

    try:
        obj: object = json.loads(raw[len(const.DEPLOYMENT_NOTE_PREFIX) :].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError):
        logger.debug("Ignoring deployment note with an unparseable payload")
        return None

    if not isinstance(obj, dict):
        return None

    name = obj.get("name")
    version = obj.get("version")
    if not isinstance(name, str) or not isinstance(version, str):
        return None

    updatable = obj.get("updatable")
    deletable = obj.get("deletable")
    if not isinstance(updatable, (bool, type(None))) or not isinstance(
        deletable, (bool, type(None))
    ):
        return None

    return DeployMetadata(
        name=name, version=version, updatable=updatable, deletable=deletable
    )
