"""Holder side credentials and disclosure proofs.

A credential is a CL signature on the attributes m_0, ..., m_k, where m_0
is the holder's secret key. Disclosing a subset D of {1, ..., k} proves,
in zero knowledge, knowledge of a signature on attributes agreeing with
the revealed values on D. Every proof uses a freshly randomized
signature, so two proofs of the same credential cannot be linked.
"""

from petlib.bn import Bn

from .bnutil import to_bn, two_pow, random_bits, mod_prod
from .clsig import CLSignature
from .encode import challenge
from .errors import BuilderError, InvalidAttributeError
from .proofs import ProofD

import pytest


class Credential(object):
    """An issued credential: public key, attributes (secret key first) and
    the issuer's signature."""

    __slots__ = ["pk", "attributes", "signature"]

    def __init__(self, pk, attributes, signature):
        self.pk = pk
        self.attributes = tuple(to_bn(m) for m in attributes)
        self.signature = signature

    @staticmethod
    def from_secret(pk, secret, attributes, signature):
        """A credential whose secret key is prepended to the attributes."""
        return Credential(pk, [secret] + list(attributes), signature)

    def secret_key(self):
        return self.attributes[0]

    def nr_attributes(self):
        return len(self.attributes)

    def attribute(self, i):
        return self.attributes[i]

    def verify(self):
        """Returns True if the signature holds on the attributes."""
        return self.signature.verify(self.pk, self.attributes)

    def check_disclosed(self, disclosed):
        """Normalizes a collection of 1-based attribute indices to disclose.

        Raises:
            InvalidAttributeError: an index is the secret key (0) or does
                not name an attribute of this credential.
        """
        indices = sorted(set(int(i) for i in disclosed))
        for i in indices:
            if i == 0:
                raise InvalidAttributeError("The secret key can never be disclosed.")
            if not 0 < i < len(self.attributes):
                raise InvalidAttributeError("Credential has no attribute %d." % i)
        return indices

    def undisclosed_attributes(self, disclosed):
        disclosed = set(self.check_disclosed(disclosed))
        return [i for i in range(len(self.attributes)) if i not in disclosed]

    def commit(self, disclosed, sk_commit=None):
        """First move of a disclosure proof. sk_commit, when given, is the
        randomness used for the secret key and is shared by all proofs of a
        collection."""
        return DisclosureCommitment(self, disclosed, sk_commit)

    def create_disclosure_proof(self, disclosed, context, nonce):
        """A stand-alone disclosure proof of the attributes in disclosed
        (1-based), bound to context and nonce."""
        commitment = self.commit(disclosed)
        c = challenge(context, *(commitment.hash_elements() + [nonce]))
        return commitment.create_proof(c)

    def __repr__(self):
        return "Credential(%d attributes)" % len(self.attributes)


class DisclosureCommitment(object):
    """Per-session state of a disclosure proof: the randomized signature,
    the randomness for e, v and the undisclosed attributes, and
    Z_commit = A^{e_commit} * S^{v_commit} * prod R_i^{a_commit_i}.

    Must be used for a single challenge only.
    """

    def __init__(self, credential, disclosed, sk_commit=None):
        pk = credential.pk
        params = pk.params
        n = pk.n

        self.credential = credential
        self.disclosed = credential.check_disclosed(disclosed)
        self.undisclosed = credential.undisclosed_attributes(self.disclosed)

        self.responded = False
        self.signature = credential.signature.randomize(pk)

        self.e_commit = random_bits(params.l_e_commit)
        self.v_commit = random_bits(params.l_v_commit)
        self.a_commits = {}
        for i in self.undisclosed:
            self.a_commits[i] = random_bits(params.l_m_commit)
        if sk_commit is not None:
            self.a_commits[0] = to_bn(sk_commit)

        Ae = self.signature.A.mod_pow(self.e_commit, n)
        Sv = pk.S.mod_pow(self.v_commit, n)
        Rs = mod_prod([pk.generator_r(i).mod_pow(self.a_commits[i], n)
                       for i in self.undisclosed], n)
        self.Z_commit = mod_prod([Ae, Sv, Rs], n)

    @property
    def A(self):
        return self.signature.A

    def hash_elements(self):
        """The pair (A, Z_commit) to include in the challenge."""
        return [self.signature.A, self.Z_commit]

    def create_proof(self, c):
        """The responses to challenge c.

        Raises:
            BuilderError: the commitment has already answered a challenge.
        """
        if self.responded:
            raise BuilderError("Disclosure commitment already used.")
        self.responded = True
        c = to_bn(c)
        attributes = self.credential.attributes
        params = self.credential.pk.params

        e_prime = self.signature.e - two_pow(params.l_e - 1)
        e_response = self.e_commit + c * e_prime
        v_response = self.v_commit + c * self.signature.v

        a_responses = {}
        for i in self.undisclosed:
            a_responses[i] = self.a_commits[i] + c * attributes[i]

        a_disclosed = {}
        for i in self.disclosed:
            a_disclosed[i] = attributes[i]

        return ProofD(c, self.signature.A, e_response, v_response, a_responses, a_disclosed)

# ---------- TESTS -------------


def _issue(attributes):
    from .testkeys import key_pair
    sk, pk = key_pair()
    secret = random_bits(pk.params.l_m)
    attrs = [secret] + [to_bn(a) for a in attributes]
    return Credential(pk, attrs, CLSignature.sign(sk, pk, attrs))


def test_disclosure_proof():
    cred = _issue([10, 20, 30, 40])
    pk = cred.pk
    assert cred.verify()

    context = random_bits(pk.params.l_h)
    nonce = random_bits(pk.params.l_statzk)

    proof = cred.create_disclosure_proof([1, 3], context, nonce)
    assert proof.verify(pk, context, nonce)
    assert proof.disclosed_attributes() == {1: Bn(10), 3: Bn(30)}
    assert sorted(proof.a_responses) == [0, 2, 4]

    assert not proof.verify(pk, context, nonce + 1)
    assert not proof.verify(pk, context + 1, nonce)


def test_disclosure_never_exposes_others():
    cred = _issue([11, 22, 33])
    pk = cred.pk

    for disclosed in [[], [1], [2], [1, 3], [1, 2, 3]]:
        proof = cred.create_disclosure_proof(disclosed, 1, 2)
        assert set(proof.a_disclosed) == set(disclosed)
        assert proof.verify(pk, 1, 2)


def test_tampered_disclosed_value():
    cred = _issue([11, 22, 33])
    pk = cred.pk

    proof = cred.create_disclosure_proof([2], 5, 6)
    assert proof.verify(pk, 5, 6)
    proof.a_disclosed[2] = Bn(23)
    assert not proof.verify(pk, 5, 6)


def test_proofs_are_unlinkable():
    cred = _issue([1, 2])
    p1 = cred.create_disclosure_proof([1], 1, 2)
    p2 = cred.create_disclosure_proof([1], 1, 2)
    assert p1.A != p2.A
    assert p1.A != cred.signature.A
    assert p1.c != p2.c


def test_invalid_disclosure_indices():
    cred = _issue([1, 2])
    with pytest.raises(InvalidAttributeError):
        cred.create_disclosure_proof([0], 1, 2)
    with pytest.raises(InvalidAttributeError):
        cred.create_disclosure_proof([3], 1, 2)
    assert cred.check_disclosed([2, 1, 2]) == [1, 2]
    assert cred.undisclosed_attributes([2]) == [0, 1]


def test_shared_secret_commitment():
    cred = _issue([1, 2])
    pk = cred.pk
    sk_commit = random_bits(pk.params.l_m_commit)

    com = cred.commit([1], sk_commit)
    assert com.a_commits[0] == sk_commit
    proof = com.create_proof(Bn(7))
    assert proof.a_responses[0] == sk_commit + 7 * cred.secret_key()


def test_commitment_answers_once():
    from .errors import BuilderError
    cred = _issue([1, 2])

    com = cred.commit([1])
    first = com.create_proof(Bn(7))
    with pytest.raises(BuilderError):
        com.create_proof(Bn(8))
    assert first.c == 7
