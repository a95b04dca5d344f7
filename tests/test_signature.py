"""
Webhook signature verification: HMAC-SHA256 over "<ts>.<body>".
"""

import hashlib
import hmac

import pytest

from services.signature import compute_signature, parse_signature_header, verify_signature


def _hmac(message: str, secret: str) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def test_valid_signature_verifies():
    header = f"ts=1,v1={_hmac('1.b', 's')}"
    assert verify_signature(header, "b", "s") is True


def test_bytes_body_matches_str_body():
    header = f"ts=1,v1={_hmac('1.b', 's')}"
    assert verify_signature(header, b"b", "s") is True


def test_whitespace_around_parts_is_tolerated():
    header = f" ts=1 , v1={_hmac('1.b', 's')} "
    assert verify_signature(header, "b", "s") is True


def test_every_single_character_mutation_fails():
    signature = _hmac("1.b", "s")
    for index, char in enumerate(signature):
        replacement = "0" if char != "0" else "1"
        mutated = signature[:index] + replacement + signature[index + 1:]
        assert verify_signature(f"ts=1,v1={mutated}", "b", "s") is False


@pytest.mark.parametrize("header", [None, "", "ts=1", "v1=abc", "garbage", "ts=,v1="])
def test_without_secret_everything_passes(header):
    assert verify_signature(header, "b", None) is True
    assert verify_signature(header, "b", "") is True


@pytest.mark.parametrize("header", [None, ""])
def test_missing_header_fails_when_secret_set(header):
    assert verify_signature(header, "b", "s") is False


@pytest.mark.parametrize("header", ["ts=1", f"v1={'a' * 64}", "ts=,v1=abc", "nonsense"])
def test_missing_subfield_fails(header):
    assert verify_signature(header, "b", "s") is False


def test_wrong_timestamp_fails():
    header = f"ts=2,v1={_hmac('1.b', 's')}"
    assert verify_signature(header, "b", "s") is False


def test_non_ascii_signature_is_a_failure_not_an_exception():
    assert verify_signature("ts=1,v1=ñññ", "b", "s") is False


def test_undecodable_body_is_a_failure_not_an_exception():
    header = f"ts=1,v1={_hmac('1.b', 's')}"
    assert verify_signature(header, b"\xff\xfe", "s") is False


def test_parse_header_keeps_first_occurrence():
    assert parse_signature_header("ts=1,v1=a,v1=b,junk") == {"ts": "1", "v1": "a"}


def test_compute_signature_is_hex_sha256():
    assert compute_signature("1", "b", "s") == _hmac("1.b", "s")
