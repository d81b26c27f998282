"""The module provides functions to pack and unpack clcred keys, signatures
and proofs, so they can be carried between holder, issuer and verifier.

Example:
    >>> from clcred.proofs import ProofU
    >>> proof = ProofU(1, 2, 3)
    >>> decode(encode([proof, Bn(5)])) == [proof, Bn(5)]
    True

"""

import msgpack

from petlib.bn import Bn

from .clsig import CLSignature
from .errors import PackError
from .issuance import IssueCommitmentMessage
from .keys import PublicKey
from .params import SystemParameters, DEFAULT_PARAMS
from .proofs import ProofD, ProofU, ProofCollection

import pytest

__all__ = ["encode", "decode", "register_coders"]

_pack_reg = {}
_unpack_reg = {}


def register_coders(cls, num, enc_func, dec_func):
    """ Register a new type for encoding and decoding.
    Take a class type, a number, an encoding and a decoding function."""

    if num in _unpack_reg or cls in _pack_reg:
        raise PackError("Class or number already in use.")

    coders = (cls, num, enc_func, dec_func)
    _pack_reg[cls] = coders
    _unpack_reg[num] = coders


def bn_enc(obj):
    if obj < 0:
        neg = b"-"
        data = (-obj).binary()
    else:
        neg = b"+"
        data = obj.binary()
    return neg + data


def bn_dec(data):
    if len(data) == 0 or data[0] not in b"+-":
        raise PackError("Malformed big number.")
    num = Bn.from_binary(data[1:])
    if data[0] == ord("-"):
        return -num
    return num


def _pairs(d):
    # msgpack maps only take string keys when unpacked strictly
    return [[i, d[i]] for i in sorted(d)]


def _params_dec(lengths):
    params = SystemParameters(*lengths)
    if params == DEFAULT_PARAMS:
        return DEFAULT_PARAMS
    return params


def pk_enc(obj):
    return encode([obj.n, obj.Z, obj.S, list(obj.R), list(obj.params.as_tuple())])


def pk_dec(data):
    n, Z, S, R, lengths = decode(data)
    return PublicKey(n, Z, S, R, params=_params_dec(lengths))


def sig_enc(obj):
    return encode([obj.A, obj.e, obj.v])


def sig_dec(data):
    A, e, v = decode(data)
    return CLSignature(A, e, v)


def proofd_enc(obj):
    return encode([obj.c, obj.A, obj.e_response, obj.v_response,
                   _pairs(obj.a_responses), _pairs(obj.a_disclosed)])


def proofd_dec(data):
    c, A, e_response, v_response, a_responses, a_disclosed = decode(data)
    return ProofD(c, A, e_response, v_response, dict(a_responses), dict(a_disclosed))


def proofu_enc(obj):
    return encode([obj.c, obj.v_prime_response, obj.s_response])


def proofu_dec(data):
    c, v_prime_response, s_response = decode(data)
    return ProofU(c, v_prime_response, s_response)


def collection_enc(obj):
    return encode([obj.proof_u, obj.proof_u_public_key, obj.proof_ds, obj.public_keys])


def collection_dec(data):
    proof_u, proof_u_pk, proof_ds, public_keys = decode(data)
    collection = ProofCollection(proof_u, proof_ds, public_keys, proof_u_pk)
    if not collection.well_typed():
        raise PackError("Proof collection holds objects other than proofs and keys.")
    return collection


def commitment_msg_enc(obj):
    return encode([obj.U, obj.proofs, obj.nonce2])


def commitment_msg_dec(data):
    U, proofs, nonce2 = decode(data)
    if not isinstance(proofs, ProofCollection):
        raise PackError("Commitment message without a proof collection.")
    return IssueCommitmentMessage(U, proofs, nonce2)


def _init_coders():
    global _pack_reg, _unpack_reg
    _pack_reg, _unpack_reg = {}, {}
    register_coders(Bn, 0, bn_enc, bn_dec)
    register_coders(PublicKey, 1, pk_enc, pk_dec)
    register_coders(CLSignature, 2, sig_enc, sig_dec)
    register_coders(ProofD, 3, proofd_enc, proofd_dec)
    register_coders(ProofU, 4, proofu_enc, proofu_dec)
    register_coders(ProofCollection, 5, collection_enc, collection_dec)
    register_coders(IssueCommitmentMessage, 6, commitment_msg_enc, commitment_msg_dec)


# Register default coders
_init_coders()


def default(obj):
    for T in _pack_reg:
        if isinstance(obj, T):
            _, num, enc, _ = _pack_reg[T]
            return msgpack.ExtType(num, enc(obj))

    raise TypeError("Unknown type: %r" % (type(obj),))


def ext_hook(code, data):
    if code in _unpack_reg:
        _, _, _, dec = _unpack_reg[code]
        try:
            return dec(data)
        except (ValueError, TypeError) as e:
            raise PackError("Malformed packed object (code %d): %s" % (code, e))

    # Other
    return msgpack.ExtType(code, data)


def encode(structure):
    """ Encode a structure containing clcred objects to a binary format. """
    return msgpack.packb(structure, default=default, use_bin_type=True)


def decode(packed_data):
    """ Decode a binary byte sequence into a structure containing clcred objects. """
    try:
        return msgpack.unpackb(packed_data, ext_hook=ext_hook, raw=False)
    except ValueError as e:
        raise PackError("Cannot decode packed data: %s" % e)

# --- TESTS ---


def test_bn():
    test_data = [Bn(1), Bn(2), -Bn(1), -Bn(2), Bn(0), Bn(2).pow(2000) + 1]
    assert decode(encode(test_data)) == test_data


def test_public_key():
    from .testkeys import key_pair
    _, pk = key_pair()

    pk2 = decode(encode(pk))
    assert pk2 == pk
    assert pk2.params is DEFAULT_PARAMS


def test_packed_collection_verifies():
    from .testkeys import key_pair
    from .builder import ProofCollectionBuilder
    from .credential import Credential
    from .issuance import CredentialBuilder
    from .bnutil import random_bits

    sk, pk = key_pair()
    secret = random_bits(pk.params.l_m)
    attrs = [secret, Bn(8), Bn(9)]
    cred = Credential(pk, attrs, CLSignature.sign(sk, pk, attrs))

    # v of a randomized signature may be negative
    sig = cred.signature.randomize(pk)
    assert decode(encode(sig)) == sig

    cb = CredentialBuilder(pk, 10, secret)
    proofs = ProofCollectionBuilder(10, 11).add_proof_d(cred, [2]).add_proof_u(cb).build()
    U = cb.commitment_to_secret()

    received = decode(encode([proofs, U]))
    proofs2, U2 = received
    assert isinstance(proofs2, ProofCollection)
    assert proofs2.proof_ds == proofs.proof_ds
    assert proofs2.proof_u == proofs.proof_u
    assert proofs2.verify(10, 11, U2)
    assert proofs2.disclosed_attributes() == [{2: Bn(9)}]


def test_commitment_message():
    from .testkeys import key_pair
    from .issuance import CredentialBuilder

    _, pk = key_pair()
    msg = CredentialBuilder(pk, 3).commit_to_secret_and_prove(Bn(77), 4)
    msg2 = decode(encode(msg))
    assert msg2.U == msg.U and msg2.nonce2 == msg.nonce2
    assert msg2.commitment_proof().verify(pk, msg2.U, 3, 4)


def test_unknown_and_malformed():
    ext = msgpack.ExtType(42, b"xyz")
    assert decode(encode([ext])) == [ext]

    with pytest.raises(PackError):
        decode(msgpack.packb(msgpack.ExtType(0, b"*12")))
    with pytest.raises(PackError):
        decode(msgpack.packb(msgpack.ExtType(4, encode([Bn(1)]))))
    with pytest.raises(TypeError):
        encode([object()])


def test_register_twice():
    with pytest.raises(PackError):
        register_coders(Bn, 100, bn_enc, bn_dec)
    with pytest.raises(PackError):
        register_coders(object, 0, bn_enc, bn_dec)


def test_collection_with_foreign_members():
    from .testkeys import key_pair
    _, pk = key_pair()

    def packed_collection(proof_u, proof_u_pk, proof_ds, public_keys):
        body = encode([proof_u, proof_u_pk, proof_ds, public_keys])
        return msgpack.packb(msgpack.ExtType(5, body))

    with pytest.raises(PackError):
        decode(packed_collection(None, None, [Bn(1)], [pk]))
    with pytest.raises(PackError):
        decode(packed_collection(None, None, [msgpack.ExtType(42, b"x")], [pk]))
    with pytest.raises(PackError):
        decode(packed_collection(None, None, [None], [pk]))
    with pytest.raises(PackError):
        decode(packed_collection(ProofU(1, 2, 3), Bn(7), [], []))
    with pytest.raises(PackError):
        decode(packed_collection(None, None, 1, []))

    ok = decode(packed_collection(ProofU(1, 2, 3), pk, [], []))
    assert isinstance(ok, ProofCollection)
    assert not ok.verify(1, 2, Bn(5))

    bad_msg = msgpack.packb(msgpack.ExtType(6, encode([Bn(5), Bn(1), Bn(2)])))
    with pytest.raises(PackError):
        decode(bad_msg)
