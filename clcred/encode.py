"""Canonical encoding of integer tuples, used to derive Fiat-Shamir
challenges.

A tuple (x_1, ..., x_k) is encoded as the DER structure

    SEQUENCE { INTEGER k, INTEGER x_1, ..., INTEGER x_k }

so that distinct tuples never share an encoding. The SHA-256 digest of
the encoding, read as a big-endian unsigned number, is the challenge.

Example:
    >>> asn1_encode(1, 65, 1025).hex()
    '300d02010302010102014102020401'
"""

from hashlib import sha256
from binascii import unhexlify

from petlib.bn import Bn

from .bnutil import to_bn
from .errors import InvalidAttributeError

import pytest

_TAG_INTEGER = 0x02
_TAG_SEQUENCE = 0x30


def _der_length(length):
    if length < 0x80:
        return bytes([length])
    len_bytes = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([0x80 | len(len_bytes)]) + len_bytes


def _der_tlv(tag, content):
    return bytes([tag]) + _der_length(len(content)) + content


def der_integer(value):
    """DER encoding of a non-negative integer (Bn or native int)."""
    value = to_bn(value)
    if value < 0:
        raise InvalidAttributeError("Cannot encode negative value %s" % value)

    content = value.binary()
    # Minimal two's complement: zero is a single null byte and a set high
    # bit needs a null byte in front to stay positive.
    if len(content) == 0 or content[0] & 0x80:
        content = b"\x00" + content
    return _der_tlv(_TAG_INTEGER, content)


def asn1_encode(*values):
    """Encodes the values, prefixed by their count, as a DER SEQUENCE."""
    body = der_integer(len(values))
    body += b"".join(der_integer(v) for v in values)
    return _der_tlv(_TAG_SEQUENCE, body)


def sha256_hash(data):
    """The SHA-256 digest of data as a non-negative Bn."""
    return Bn.from_binary(sha256(data).digest())


def challenge(*values):
    """Fiat-Shamir challenge over an ordered tuple of integers."""
    return sha256_hash(asn1_encode(*values))

# ---------- TESTS -------------


def test_asn1_encoding():
    enc = asn1_encode(Bn(1), Bn(65), Bn(1025))
    expected = bytes([0x30, 0x0D,
                      0x02, 0x01, 0x03,  # The number of elements
                      0x02, 0x01, 0x01,
                      0x02, 0x01, 0x41,
                      0x02, 0x02, 0x04, 0x01])
    assert enc == expected

    # Native integers encode identically
    assert asn1_encode(1, 65, 1025) == expected


def test_der_integer_edges():
    assert der_integer(0) == unhexlify(b"020100")
    assert der_integer(127) == unhexlify(b"02017f")
    assert der_integer(128) == unhexlify(b"02020080")
    assert der_integer(255) == unhexlify(b"020200ff")
    assert der_integer(256) == unhexlify(b"02020100")

    with pytest.raises(InvalidAttributeError):
        der_integer(-1)


def test_der_long_length():
    # 1024 bit value with the high bit set: 129 content bytes
    x = Bn(2).pow(1023)
    enc = der_integer(x)
    assert enc[:3] == unhexlify(b"028181")
    assert enc[3] == 0x00
    assert len(enc) == 3 + 129

    seq = asn1_encode(x, x)
    body_len = 3 + 2 * len(enc)
    assert seq[:4] == b"\x30\x82" + body_len.to_bytes(2, "big")
    assert len(seq) == 4 + body_len


def test_empty_sequence():
    assert asn1_encode() == unhexlify(b"3003020100")


def test_challenge():
    c = challenge(1, 65, 1025)
    assert c == Bn.from_binary(sha256(asn1_encode(1, 65, 1025)).digest())
    assert 0 <= c < Bn(2).pow(256)
    assert challenge(1, 65, 1025) != challenge(1, 65, 1026)
    # The count prefix separates (x,) from (x, 0)
    assert challenge(5) != challenge(5, 0)
