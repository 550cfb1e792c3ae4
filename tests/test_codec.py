"""
Unit tests for algodev.codec.

Tests cover:
- b64_encode / b64_decode
- encode_deployment_note format
- decode_deployment_note on raw bytes and indexer base64 text
- decode_deployment_note never raising on foreign or garbled notes
"""

import json

import pytest

from algodev import DeployMetadata, decode_deployment_note, encode_deployment_note
from algodev import constants as const
from algodev.codec import b64_decode, b64_encode


class TestB64:
    """Tests for the base64 helpers."""

    def test_b64_encode_decode(self) -> None:
        """Test standard base64 helpers agree with each other."""
        assert b64_encode(b"\x00\xffnote") == "AP9ub3Rl"
        assert b64_decode("AP9ub3Rl") == b"\x00\xffnote"

    def test_b64_decode_rejects_non_alphabet(self) -> None:
        """Test validation rejects characters outside the base64 alphabet."""
        with pytest.raises(ValueError):
            b64_decode("not base64!")


class TestEncodeDeploymentNote:
    """Tests for encode_deployment_note."""

    def test_prefix_and_payload(self) -> None:
        """Test the note is the ARC-2 prefix followed by compact JSON."""
        note = encode_deployment_note(
            DeployMetadata(name="counter", version="1.0", updatable=True, deletable=False)
        )
        assert note.startswith(b"ALGOKIT_DEPLOYER:j")
        payload = note[len(const.DEPLOYMENT_NOTE_PREFIX) :]
        assert json.loads(payload) == {
            "name": "counter",
            "version": "1.0",
            "updatable": True,
            "deletable": False,
        }
        assert b" " not in payload

    def test_unset_flags_are_omitted(self) -> None:
        """Test that None flags do not appear in the payload."""
        note = encode_deployment_note(DeployMetadata(name="counter", version="1.0"))
        assert note == b'ALGOKIT_DEPLOYER:j{"name":"counter","version":"1.0"}'

    def test_non_ascii_name(self) -> None:
        """Test names are encoded as UTF-8, not escaped."""
        note = encode_deployment_note(DeployMetadata(name="contador-ñ", version="1"))
        assert "contador-ñ".encode() in note


class TestDecodeDeploymentNote:
    """Tests for decode_deployment_note."""

    @pytest.mark.parametrize(
        "metadata",
        [
            DeployMetadata(name="counter", version="1.0"),
            DeployMetadata(name="counter", version="2.0", updatable=True),
            DeployMetadata(name="counter", version="3", deletable=False),
            DeployMetadata(name="x", version="", updatable=False, deletable=True),
        ],
    )
    def test_decodes_encoded_note(self, metadata: DeployMetadata) -> None:
        """Test decode recovers the metadata from an encoded note."""
        assert decode_deployment_note(encode_deployment_note(metadata)) == metadata

    def test_decodes_indexer_base64_note(self) -> None:
        """Test decode accepts the base64 text the indexer returns."""
        metadata = DeployMetadata(name="counter", version="1.0", updatable=True)
        note_b64 = b64_encode(encode_deployment_note(metadata))
        assert decode_deployment_note(note_b64) == metadata

    @pytest.mark.parametrize("note", [None, b"", ""])
    def test_missing_note(self, note: bytes | str | None) -> None:
        """Test missing notes decode to None."""
        assert decode_deployment_note(note) is None

    @pytest.mark.parametrize(
        "note",
        [
            b"arc89:j{}",  # another dApp
            b"ALGOKIT_DEPLOYER:m\x81\xa4name",  # msgpack format
            b'ALGOKIT_DEPLOYER:j{"name":"counter"',  # truncated JSON
            b"ALGOKIT_DEPLOYER:j\xff\xfe",  # invalid UTF-8
            b'ALGOKIT_DEPLOYER:j["counter","1.0"]',  # not an object
            b'ALGOKIT_DEPLOYER:j{"version":"1.0"}',  # missing name
            b'ALGOKIT_DEPLOYER:j{"name":"counter"}',  # missing version
            b'ALGOKIT_DEPLOYER:j{"name":1,"version":"1.0"}',  # name not a string
            b'ALGOKIT_DEPLOYER:j{"name":"c","version":"1","updatable":"yes"}',
            b'ALGOKIT_DEPLOYER:j{"name":"c","version":"1","deletable":1}',
            b"ALGOKIT_DEPLOYER:j" + b"[" * 100_000,  # deeply nested
            b"\x00\x01\x02\x03",
        ],
    )
    def test_foreign_or_garbled_notes(self, note: bytes) -> None:
        """Test notes that are not deployment notes decode to None."""
        assert decode_deployment_note(note) is None

    @pytest.mark.parametrize("note", ["%%%", "QUJD\n", "ÿÿ"])
    def test_invalid_base64_text(self, note: str) -> None:
        """Test text that is not base64 decodes to None."""
        assert decode_deployment_note(note) is None

    def test_arbitrary_bytes_never_raise(self) -> None:
        """Test decode is total over arbitrary byte strings."""
        prefix = const.DEPLOYMENT_NOTE_PREFIX
        for i in range(256):
            for note in (bytes([i]) * 3, prefix + bytes([i]), prefix[:i % len(prefix)]):
                result = decode_deployment_note(note)
                assert result is None or isinstance(result, DeployMetadata)
