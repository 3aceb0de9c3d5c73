"""Tests for circular_sdk.certificate."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from circular_sdk.certificate import Certificate
from circular_sdk.config import LIB_VERSION


class TestCertificateData:
    """Payload storage."""

    def test_set_data_stores_hex(self) -> None:
        cert = Certificate()
        cert.set_data("hi")
        assert cert.data == "6869"
        assert cert.get_data() == "hi"

    def test_unicode_payload(self) -> None:
        cert = Certificate()
        cert.set_data("naïve ✓")
        assert cert.get_data() == "naïve ✓"

    def test_direct_assignment_validated(self) -> None:
        cert = Certificate()
        with pytest.raises(ValidationError):
            cert.data = "abc"
        with pytest.raises(ValidationError):
            cert.data = "zz"

    def test_trailing_newline_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Certificate(data="abc\n")

    def test_uppercase_hex_normalised(self) -> None:
        cert = Certificate(data="ABCD")
        assert cert.data == "abcd"


class TestCertificateChaining:
    """Previous transaction and block references."""

    def test_defaults_are_none(self) -> None:
        cert = Certificate()
        assert cert.get_previous_tx_id() is None
        assert cert.get_previous_block() is None

    def test_setters_pass_through(self) -> None:
        cert = Certificate()
        cert.set_previous_tx_id("tx-1")
        cert.set_previous_block("block-9")
        assert cert.previous_tx_id == "tx-1"
        assert cert.previous_block == "block-9"


class TestCertificateSerialization:
    """Canonical JSON output."""

    def test_default_serialization(self) -> None:
        cert = Certificate()
        assert cert.serialize() == (
            '{"data":"","previousBlock":"","previousTxID":"","version":"%s"}' % LIB_VERSION
        )

    def test_fixed_key_order(self) -> None:
        cert = Certificate(previous_tx_id="aa", previous_block="bb")
        cert.set_data("x")
        keys = list(json.loads(cert.serialize()).keys())
        assert keys == ["data", "previousBlock", "previousTxID", "version"]

    def test_equal_fields_serialize_identically(self) -> None:
        a = Certificate(previous_tx_id="aa")
        b = Certificate()
        a.set_data("payload")
        b.set_previous_tx_id("aa")
        b.set_data("payload")
        assert a.serialize() == b.serialize()

    def test_size_matches_serialized_bytes(self) -> None:
        cert = Certificate()
        cert.set_data("hello world")
        assert cert.size_in_bytes() == len(cert.serialize().encode("utf-8"))
        cert.set_data("hello world, longer")
        assert cert.size_in_bytes() == len(cert.serialize())
