"""Builds cryptographically bound proof collections.

The builder works in two phases:

  * Accumulation. Each add_proof_d() randomizes the credential's signature
    and commits to fresh randomness for every hidden number (the first move
    of the Schnorr sigma protocol); the pair (A, Z_commit) is appended to the
    ordered hash input. add_proof_u() fills the single tail slot with the
    commitment (U, U_commit) of an issuance.

  * build(). The challenge is the hash of the context, the disclosure
    pairs in the order they were added, the tail pair if any, and the
    nonce. Every sub-proof answers that one challenge.

All proofs use the same randomness for the secret key, which is what ties
them to a single holder.
"""

from petlib.bn import Bn

from .bnutil import to_bn, random_bits
from .encode import challenge
from .errors import BuilderError, EmptyCollectionError
from .params import DEFAULT_PARAMS
from .proofs import ProofCollection

import pytest


class ProofCollectionBuilder(object):
    """Collects disclosure proofs and an optional issuance commitment proof
    and completes them under one challenge."""

    def __init__(self, context, nonce, params=DEFAULT_PARAMS):
        self.context = to_bn(context)
        self.nonce = to_bn(nonce)
        self._sk_commitment = random_bits(params.l_m_commit)

        self._credentials = []
        self._commitments = []
        self._to_hash = [self.context]
        self._tail = None

    def _check_secret(self, secret):
        known = self.secret_key()
        if known is None and self._tail is not None:
            known = self._tail.secret
        if known is not None and known != secret:
            raise BuilderError("All proofs in a collection must share one secret key.")

    def add_proof_d(self, credential, disclosed_attributes):
        """Adds a proof for credential, disclosing the attributes at the
        given (1-based) indices."""
        self._check_secret(credential.secret_key())
        commitment = credential.commit(disclosed_attributes, self._sk_commitment)

        self._credentials.append(credential)
        self._commitments.append(commitment)
        self._to_hash += commitment.hash_elements()
        return self

    def add_proof_u(self, credential_builder):
        """Adds the proof of knowledge of the issuance commitment of
        credential_builder. At most one per collection."""
        if self._tail is not None:
            raise BuilderError("A proof collection holds at most one issuance commitment.")
        self._check_secret(credential_builder.secret)

        # Kept apart from the ordered buffer: it is always hashed last.
        self._tail = credential_builder.commit(self._sk_commitment)
        return self

    def hash_input(self):
        """The ordered numbers the challenge is computed over."""
        elements = list(self._to_hash)
        if self._tail is not None:
            elements += self._tail.hash_elements()
        elements.append(self.nonce)
        return elements

    def build(self):
        """Completes the proofs and returns them as a ProofCollection.

        Raises:
            EmptyCollectionError: no proofs have been added.
            BuilderError: the collection was already built.
        """
        if self._tail is None and len(self._credentials) == 0:
            raise EmptyCollectionError("No proofs have been added, can't build an empty proof collection.")

        c = challenge(*self.hash_input())

        proof_u, proof_u_pk = None, None
        if self._tail is not None:
            proof_u = self._tail.create_proof(c)
            proof_u_pk = self._tail.pk

        proof_ds = [commitment.create_proof(c) for commitment in self._commitments]
        public_keys = [credential.pk for credential in self._credentials]

        return ProofCollection(proof_u, proof_ds, public_keys, proof_u_pk)

    def secret_key(self):
        """The secret key (first attribute) of the credentials added so far,
        or None if there are none."""
        if len(self._credentials) == 0:
            return None
        return self._credentials[0].secret_key()

    def secret_key_commitment(self):
        return self._sk_commitment

    def issuance_commitment(self):
        """U of the added issuance, or None."""
        if self._tail is None:
            return None
        return self._tail.U

# ---------- TESTS -------------


def _issue(sk, pk, secret, attributes):
    from .clsig import CLSignature
    from .credential import Credential

    attrs = [secret] + [to_bn(a) for a in attributes]
    return Credential(pk, attrs, CLSignature.sign(sk, pk, attrs))


def _setup():
    from .testkeys import key_pair
    sk, pk = key_pair()
    secret = random_bits(pk.params.l_m)
    cred1 = _issue(sk, pk, secret, [1, 2, 3])
    cred2 = _issue(sk, pk, secret, [40, 50])
    return sk, pk, secret, cred1, cred2


def test_empty_build_fails():
    builder = ProofCollectionBuilder(Bn(1), Bn(2))
    with pytest.raises(EmptyCollectionError):
        builder.build()
    with pytest.raises(BuilderError):
        builder.build()
    assert builder.secret_key() is None


def test_two_credentials_share_challenge():
    _, pk, secret, cred1, cred2 = _setup()
    context = random_bits(pk.params.l_h)
    nonce = random_bits(pk.params.l_statzk)

    builder = ProofCollectionBuilder(context, nonce)
    builder.add_proof_d(cred1, [1, 3]).add_proof_d(cred2, [2])
    assert builder.secret_key() == secret

    proofs = builder.build()
    p1, p2 = proofs.proof_ds
    assert p1.c == p2.c == proofs.challenge
    assert p1.a_responses[0] == p2.a_responses[0]
    assert proofs.public_keys == [pk, pk]
    assert proofs.disclosed_attributes() == [{1: Bn(1), 3: Bn(3)}, {2: Bn(50)}]

    assert proofs.verify(context, nonce)
    assert not proofs.verify(context, nonce + 1)
    assert not proofs.verify(context + 1, nonce)


def test_reordered_collection_fails():
    _, pk, _, cred1, cred2 = _setup()

    proofs = ProofCollectionBuilder(1, 2).add_proof_d(cred1, [1]).add_proof_d(cred2, [1]).build()
    assert proofs.verify(1, 2)

    proofs.proof_ds.reverse()
    assert not proofs.verify(1, 2)


def test_spliced_collection_fails():
    _, pk, _, cred1, cred2 = _setup()

    first = ProofCollectionBuilder(1, 2).add_proof_d(cred1, [1]).add_proof_d(cred2, [1]).build()
    other = ProofCollectionBuilder(1, 2).add_proof_d(cred1, [1]).add_proof_d(cred2, [1]).build()
    assert first.verify(1, 2) and other.verify(1, 2)

    first.proof_ds[1] = other.proof_ds[1]
    assert not first.verify(1, 2)


def test_different_secret_keys_rejected():
    sk, pk, _, cred1, _ = _setup()
    stranger = _issue(sk, pk, random_bits(pk.params.l_m), [1])

    builder = ProofCollectionBuilder(1, 2).add_proof_d(cred1, [1])
    with pytest.raises(BuilderError):
        builder.add_proof_d(stranger, [1])


def test_hash_order_puts_issuance_last():
    from .issuance import CredentialBuilder

    _, pk, secret, cred1, cred2 = _setup()
    cb = CredentialBuilder(pk, Bn(1), secret)

    builder = ProofCollectionBuilder(1, 2)
    builder.add_proof_d(cred1, [1])
    builder.add_proof_u(cb)
    builder.add_proof_d(cred2, [2])

    elements = builder.hash_input()
    assert len(elements) == 1 + 2 + 2 + 2 + 1
    assert elements[0] == 1 and elements[-1] == 2
    assert elements[-3] == cb.commitment_to_secret() == builder.issuance_commitment()

    with pytest.raises(BuilderError):
        builder.add_proof_u(cb)

    proofs = builder.build()
    assert proofs.proof_u.c == proofs.proof_ds[0].c == proofs.proof_ds[1].c
    assert proofs.proof_u.s_response == proofs.proof_ds[0].a_responses[0]
    assert proofs.verify(1, 2, cb.commitment_to_secret())
    assert not proofs.verify(1, 2)


def test_build_only_once():
    _, pk, _, cred1, _ = _setup()

    builder = ProofCollectionBuilder(1, 2).add_proof_d(cred1, [1])
    assert builder.build().verify(1, 2)
    with pytest.raises(BuilderError):
        builder.build()
