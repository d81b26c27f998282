"""Blind issuance of credentials.

The holder never shows its secret key m_0 to the issuer:

  1. The holder commits to it as U = S^{v'} R_0^{m_0} and proves knowledge
     of (v', m_0) with a ProofU, possibly bound to disclosure proofs of
     credentials it already holds.
  2. The issuer checks the proofs and signs U together with the other
     attributes, returning (A, e, v'').
  3. The holder completes the signature with v = v' + v'' and checks it.

Transport of the messages between holder and issuer is up to the caller.
"""

from petlib.bn import Bn

from .bnutil import to_bn, random_bits, mod_prod
from .builder import ProofCollectionBuilder
from .clsig import CLSignature
from .credential import Credential
from .encode import challenge
from .errors import BuilderError, InvalidAttributeError, IssuanceError
from .proofs import ProofU

import pytest


class IssuanceCommitment(object):
    """First move of the ProofU sigma protocol:
    U_commit = S^{v'_commit} * R_0^{s_commit}."""

    def __init__(self, pk, secret, v_prime, U, sk_commit=None):
        params = pk.params
        n = pk.n

        self.pk = pk
        self.secret = secret
        self.v_prime = v_prime
        self.U = U
        self.responded = False

        self.v_prime_commit = random_bits(params.l_v_prime_commit)
        if sk_commit is None:
            self.s_commit = random_bits(params.l_m_commit)
        else:
            self.s_commit = to_bn(sk_commit)

        self.U_commit = mod_prod([pk.S.mod_pow(self.v_prime_commit, n),
                                  pk.generator_r(0).mod_pow(self.s_commit, n)], n)

    def hash_elements(self):
        """The pair (U, U_commit) to include in the challenge."""
        return [self.U, self.U_commit]

    def create_proof(self, c):
        if self.responded:
            raise BuilderError("Issuance commitment already used.")
        self.responded = True
        c = to_bn(c)
        v_prime_response = self.v_prime_commit + c * self.v_prime
        s_response = self.s_commit + c * self.secret
        return ProofU(c, v_prime_response, s_response)


class IssueCommitmentMessage(object):
    """The holder's first issuance message: the commitment U, the proofs
    bound to it, and the holder's nonce n_2."""

    __slots__ = ["U", "proofs", "nonce2"]

    def __init__(self, U, proofs, nonce2):
        self.U = to_bn(U)
        self.proofs = proofs
        self.nonce2 = to_bn(nonce2)

    def commitment_proof(self):
        """The ProofU for U."""
        return self.proofs.proof_u


class CredentialBuilder(object):
    """Holder side state of one issuance session."""

    def __init__(self, pk, context, secret=None):
        self.pk = pk
        self.context = to_bn(context)
        self.secret = None
        self.v_prime = None
        self.U = None
        self.nonce2 = None
        if secret is not None:
            self.set_secret(secret)

    def set_secret(self, secret):
        if self.U is not None:
            raise BuilderError("Secret key already committed to.")
        secret = to_bn(secret)
        if secret < 0 or secret.num_bits() > self.pk.params.l_m:
            raise InvalidAttributeError("Secret key exceeds %d bits." % self.pk.params.l_m)
        self.secret = secret

    def commitment_to_secret(self):
        """U = S^{v'} * R_0^{secret}; v' is drawn once per session."""
        if self.secret is None:
            raise BuilderError("No secret key set.")
        if self.U is None:
            n = self.pk.n
            self.v_prime = random_bits(self.pk.params.l_v_prime)
            self.U = mod_prod([self.pk.S.mod_pow(self.v_prime, n),
                               self.pk.generator_r(0).mod_pow(self.secret, n)], n)
        return self.U

    def commit(self, sk_commit=None):
        """First move of a proof of knowledge of the opening of U."""
        U = self.commitment_to_secret()
        return IssuanceCommitment(self.pk, self.secret, self.v_prime, U, sk_commit)

    def create_proof_u(self, U, nonce):
        """A stand-alone ProofU for U, bound to the context and nonce."""
        if to_bn(U) != self.commitment_to_secret():
            raise BuilderError("U is not the commitment of this session.")
        commitment = self.commit()
        c = challenge(self.context, *(commitment.hash_elements() + [nonce]))
        return commitment.create_proof(c)

    def commit_to_secret_and_prove(self, secret, nonce1, disclosures=()):
        """Commits to secret and proves it, optionally bound to disclosure
        proofs over (credential, disclosed indices) pairs already held.

        Returns:
            IssueCommitmentMessage: to send to the issuer.
        """
        self.set_secret(secret)

        builder = ProofCollectionBuilder(self.context, nonce1, self.pk.params)
        for credential, disclosed in disclosures:
            builder.add_proof_d(credential, disclosed)
        builder.add_proof_u(self)
        proofs = builder.build()

        self.nonce2 = random_bits(self.pk.params.l_statzk)
        return IssueCommitmentMessage(self.commitment_to_secret(), proofs, self.nonce2)

    def construct_credential(self, signature, attributes):
        """Completes the issuer's blind signature into a credential.

        Raises:
            IssuanceError: the completed signature does not verify.
        """
        if self.U is None:
            raise BuilderError("No commitment was sent for this session.")

        completed = CLSignature(signature.A, signature.e, signature.v + self.v_prime)
        attrs = [self.secret] + [to_bn(m) for m in attributes]
        if not completed.verify(self.pk, attrs):
            raise IssuanceError("Signature from the issuer does not verify.")
        return Credential(self.pk, attrs, completed)


class Issuer(object):
    """Issuer side of an issuance session."""

    def __init__(self, sk, pk, context):
        if not sk.matches(pk):
            raise InvalidAttributeError("Secret key does not match the public key.")
        self.sk = sk
        self.pk = pk
        self.context = to_bn(context)

    def verify_commitment(self, msg, nonce1):
        """Checks the proofs of an IssueCommitmentMessage against nonce1."""
        proofs = msg.proofs
        if proofs.proof_u is None or proofs.proof_u_public_key != self.pk:
            return False
        return proofs.verify(self.context, nonce1, msg.U)

    def issue_signature(self, msg, attributes, nonce1):
        """Blindly signs the commitment in msg along with attributes.

        Raises:
            IssuanceError: the proofs in msg do not verify.
            InvalidAttributeError: the attributes do not fit the key.
        """
        if not self.verify_commitment(msg, nonce1):
            raise IssuanceError("Proof of the commitment to the secret key does not verify.")
        return CLSignature.sign_commitment(self.sk, self.pk, msg.U, attributes)

# ---------- TESTS -------------


def test_proof_u():
    from .testkeys import key_pair
    _, pk = key_pair()
    params = pk.params

    context = random_bits(params.l_h)
    n_1 = random_bits(params.l_statzk)
    secret = random_bits(params.l_m)

    cb = CredentialBuilder(pk, context)
    cb.set_secret(secret)

    U = cb.commitment_to_secret()
    proof_u = cb.create_proof_u(U, n_1)
    assert proof_u.verify(pk, U, context, n_1)
    assert not proof_u.verify(pk, U, context, n_1 + 1)


def test_commitment_message():
    from .testkeys import key_pair
    _, pk = key_pair()
    params = pk.params

    context = random_bits(params.l_h)
    n_1 = random_bits(params.l_statzk)
    secret = random_bits(params.l_m)

    cb = CredentialBuilder(pk, context)
    msg = cb.commit_to_secret_and_prove(secret, n_1)
    assert msg.commitment_proof().verify(pk, msg.U, context, n_1)
    assert msg.proofs.verify(context, n_1, msg.U)
    assert msg.nonce2.num_bits() <= params.l_statzk


def test_builder_misuse():
    from .testkeys import key_pair
    _, pk = key_pair()

    cb = CredentialBuilder(pk, 1)
    with pytest.raises(BuilderError):
        cb.commitment_to_secret()
    with pytest.raises(InvalidAttributeError):
        cb.set_secret(Bn(2).pow(pk.params.l_m))

    cb.set_secret(Bn(12345))
    U = cb.commitment_to_secret()
    assert cb.commitment_to_secret() == U
    with pytest.raises(BuilderError):
        cb.set_secret(Bn(1))
    with pytest.raises(BuilderError):
        cb.create_proof_u(U + 1, 2)


def test_full_issuance():
    from .testkeys import key_pair
    sk, pk = key_pair()
    params = pk.params

    context = random_bits(params.l_h)
    n_1 = random_bits(params.l_statzk)
    secret = random_bits(params.l_m)
    attrs = [Bn(2015), Bn(42), Bn(7)]

    issuer = Issuer(sk, pk, context)
    cb = CredentialBuilder(pk, context)

    msg = cb.commit_to_secret_and_prove(secret, n_1)
    blind = issuer.issue_signature(msg, attrs, n_1)
    cred = cb.construct_credential(blind, attrs)

    assert cred.verify()
    assert cred.secret_key() == secret
    assert cred.attributes[1:] == tuple(attrs)

    # The credential can now be shown
    proof = cred.create_disclosure_proof([2], context, n_1)
    assert proof.verify(pk, context, n_1)

    with pytest.raises(IssuanceError):
        cb.construct_credential(blind, [Bn(2016), Bn(42), Bn(7)])


def test_issuer_rejects_bad_commitment():
    from .testkeys import key_pair
    sk, pk = key_pair()

    issuer = Issuer(sk, pk, 1)
    cb = CredentialBuilder(pk, 1)
    msg = cb.commit_to_secret_and_prove(Bn(99), 5)

    with pytest.raises(IssuanceError):
        issuer.issue_signature(msg, [Bn(1)], 6)

    forged = IssueCommitmentMessage(msg.U + 1, msg.proofs, msg.nonce2)
    with pytest.raises(IssuanceError):
        issuer.issue_signature(forged, [Bn(1)], 5)


def test_issuance_bound_to_disclosure():
    from .testkeys import key_pair
    sk, pk = key_pair()
    params = pk.params

    secret = random_bits(params.l_m)
    first = Credential.from_secret(pk, secret, [Bn(18)],
                                   CLSignature.sign(sk, pk, [secret, Bn(18)]))

    issuer = Issuer(sk, pk, 3)
    cb = CredentialBuilder(pk, 3)
    msg = cb.commit_to_secret_and_prove(secret, 4, disclosures=[(first, [1])])

    assert len(msg.proofs.proof_ds) == 1
    assert msg.proofs.disclosed_attributes() == [{1: Bn(18)}]
    assert issuer.verify_commitment(msg, 4)

    cred = cb.construct_credential(issuer.issue_signature(msg, [Bn(5)], 4), [Bn(5)])
    assert cred.secret_key() == first.secret_key()

    # A different secret key cannot be bound to the disclosed credential
    with pytest.raises(BuilderError):
        CredentialBuilder(pk, 3).commit_to_secret_and_prove(secret + 1, 4, disclosures=[(first, [1])])


def test_issuance_commitment_answers_once():
    from .testkeys import key_pair
    _, pk = key_pair()

    cb = CredentialBuilder(pk, 1, Bn(4321))
    com = cb.commit()
    proof = com.create_proof(Bn(3))
    assert proof.s_response == com.s_commit + Bn(3) * Bn(4321)
    with pytest.raises(BuilderError):
        com.create_proof(Bn(4))
