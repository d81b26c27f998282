"""Non-interactive zero-knowledge proofs over CL credentials.

ProofD proves knowledge of a CL signature and of the undisclosed attributes
it covers, revealing the disclosed ones. ProofU proves knowledge of the
opening (v', m_0) of an issuance commitment U = S^{v'} R_0^{m_0}. A
ProofCollection holds several of these made under one challenge.

Proofs are self-contained: they verify against the public key, context and
nonce alone. Verification never raises; it returns False for a proof that
does not hold.
"""

from petlib.bn import Bn

from .bnutil import to_bn, two_pow, mod_pow, mod_prod
from .encode import challenge
from .keys import PublicKey

import pytest


def _bn_map(d):
    return dict((int(i), to_bn(v)) for i, v in d.items())


class ProofD(object):
    """A disclosure proof: challenge c, randomized signature value A, the
    responses for e, v and every undisclosed attribute, and the disclosed
    attribute values."""

    __slots__ = ["c", "A", "e_response", "v_response", "a_responses", "a_disclosed"]

    def __init__(self, c, A, e_response, v_response, a_responses, a_disclosed):
        self.c = to_bn(c)
        self.A = to_bn(A)
        self.e_response = to_bn(e_response)
        self.v_response = to_bn(v_response)
        self.a_responses = _bn_map(a_responses)
        self.a_disclosed = _bn_map(a_disclosed)

    def disclosed_attributes(self):
        """The revealed attributes, keyed by their index."""
        return dict(self.a_disclosed)

    def secret_key_response(self):
        return self.a_responses.get(0)

    def check_structure(self, pk):
        """Checks the shape of the proof against pk, before any arithmetic.

        The disclosed and undisclosed indices must partition 0..k for some
        k below the number of bases, the secret key (index 0) must stay
        hidden, and every response must lie within its bit budget.
        """
        params = pk.params

        disclosed = set(self.a_disclosed)
        undisclosed = set(self.a_responses)
        if disclosed & undisclosed:
            return False
        indices = sorted(disclosed | undisclosed)
        if indices != list(range(len(indices))):
            return False
        if len(indices) > pk.max_attributes() or 0 not in undisclosed:
            return False

        if not 0 < self.A < pk.n:
            return False
        if any(m < 0 or m.num_bits() > params.l_m for m in self.a_disclosed.values()):
            return False

        if self.e_response.num_bits() > params.l_e_commit + 1:
            return False
        if self.v_response.num_bits() > params.l_v_commit + 1:
            return False
        for response in self.a_responses.values():
            if response.num_bits() > params.l_m_commit + 1:
                return False
        return True

    def reconstruct_z(self, pk):
        """Recomputes the commitment Z_commit the prover hashed:

            (Z / (A^{2^{l_e-1}} prod_{disclosed} R_i^{m_i}))^{-c}
              * A^{e_response} * S^{v_response} * prod_{undisclosed} R_i^{a_response_i}
        """
        n = pk.n

        numerator = self.A.mod_pow(two_pow(pk.params.l_e - 1), n)
        for i, m in self.a_disclosed.items():
            numerator = numerator.mod_mul(pk.generator_r(i).mod_pow(m, n), n)

        known = pk.Z.mod_mul(numerator.mod_inverse(n), n)
        known_c = mod_pow(known, -self.c, n)

        Ae = mod_pow(self.A, self.e_response, n)
        Sv = mod_pow(pk.S, self.v_response, n)
        Rs = mod_prod([mod_pow(pk.generator_r(i), r, n)
                       for i, r in self.a_responses.items()], n)

        return mod_prod([known_c, Ae, Sv, Rs], n)

    def hash_elements(self, pk):
        """The pair (A, Z_commit) this proof contributes to a challenge."""
        return [self.A, self.reconstruct_z(pk)]

    def verify(self, pk, context, nonce):
        """Verifies a stand-alone disclosure proof. A negative context or
        nonce cannot have been hashed, so it fails too."""
        if not self.check_structure(pk):
            return False
        try:
            elements = self.hash_elements(pk)
            return self.c == challenge(context, *(elements + [nonce]))
        except Exception:  # A not invertible mod n, or unencodable input
            return False

    def __eq__(self, other):
        if not isinstance(other, ProofD):
            return NotImplemented
        return (self.c, self.A, self.e_response, self.v_response,
                self.a_responses, self.a_disclosed) == \
               (other.c, other.A, other.e_response, other.v_response,
                other.a_responses, other.a_disclosed)

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    __hash__ = None

    def __repr__(self):
        return "ProofD(c=%s, disclosed=%s)" % (self.c, sorted(self.a_disclosed))


class ProofU(object):
    """A proof of knowledge of the opening of an issuance commitment U."""

    __slots__ = ["c", "v_prime_response", "s_response"]

    def __init__(self, c, v_prime_response, s_response):
        self.c = to_bn(c)
        self.v_prime_response = to_bn(v_prime_response)
        self.s_response = to_bn(s_response)

    def secret_key_response(self):
        return self.s_response

    def reconstruct_u_commit(self, pk, U):
        """U^{-c} * S^{v'_response} * R_0^{s_response} mod n"""
        n = pk.n
        Uc = mod_pow(to_bn(U), -self.c, n)
        Sv = mod_pow(pk.S, self.v_prime_response, n)
        R0s = mod_pow(pk.generator_r(0), self.s_response, n)
        return mod_prod([Uc, Sv, R0s], n)

    def hash_elements(self, pk, U):
        """The pair (U, U_commit) this proof contributes to a challenge."""
        return [to_bn(U), self.reconstruct_u_commit(pk, U)]

    def verify(self, pk, U, context, nonce):
        """Verifies a stand-alone proof for the commitment U."""
        try:
            U = to_bn(U)
            if not 0 < U < pk.n:
                return False
            elements = self.hash_elements(pk, U)
            return self.c == challenge(context, *(elements + [nonce]))
        except Exception:  # U not invertible mod n, or unencodable input
            return False

    def __eq__(self, other):
        if not isinstance(other, ProofU):
            return NotImplemented
        return (self.c, self.v_prime_response, self.s_response) == \
               (other.c, other.v_prime_response, other.s_response)

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    __hash__ = None

    def __repr__(self):
        return "ProofU(c=%s)" % self.c


class ProofCollection(object):
    """Disclosure proofs and at most one issuance commitment proof, all
    computed under one challenge.

    The challenge is the hash of

        context, (A_1, Z_1), ..., (A_k, Z_k), [(U, U_commit)], nonce

    with the disclosure pairs in the order of proof_ds. All proofs share the
    randomness of the secret key commitment, so their secret key responses
    coincide exactly when they were made over the same secret key.
    """

    __slots__ = ["proof_u", "proof_u_public_key", "proof_ds", "public_keys"]

    def __init__(self, proof_u, proof_ds, public_keys, proof_u_public_key=None):
        self.proof_u = proof_u
        self.proof_u_public_key = proof_u_public_key
        self.proof_ds = list(proof_ds)
        self.public_keys = list(public_keys)

    @property
    def challenge(self):
        if self.proof_u is not None:
            return self.proof_u.c
        if self.proof_ds:
            return self.proof_ds[0].c
        return None

    def __len__(self):
        return len(self.proof_ds) + (1 if self.proof_u is not None else 0)

    def disclosed_attributes(self):
        """The revealed attributes of every disclosure proof, in order."""
        return [proof.disclosed_attributes() for proof in self.proof_ds]

    def verify(self, context, nonce, U=None):
        """Verifies all proofs and their binding. U is the issuance
        commitment, required exactly when the collection holds a ProofU."""
        if len(self) == 0:
            return False
        if len(self.proof_ds) != len(self.public_keys):
            return False
        if (self.proof_u is None) != (U is None):
            return False
        if not self.well_typed():
            return False

        c = self.challenge
        proofs = self.proof_ds + ([self.proof_u] if self.proof_u is not None else [])
        if any(proof.c != c for proof in proofs):
            return False

        # One secret key across every proof
        sk_responses = [proof.secret_key_response() for proof in proofs]
        if any(r is None or r != sk_responses[0] for r in sk_responses):
            return False

        to_hash = [context]
        try:
            for proof, pk in zip(self.proof_ds, self.public_keys):
                if not proof.check_structure(pk):
                    return False
                to_hash += proof.hash_elements(pk)

            if self.proof_u is not None:
                U = to_bn(U)
                if not 0 < U < self.proof_u_public_key.n:
                    return False
                to_hash += self.proof_u.hash_elements(self.proof_u_public_key, U)

            to_hash.append(nonce)
            return c == challenge(*to_hash)
        except Exception:  # an element not invertible mod n, or unencodable input
            return False

    def well_typed(self):
        """Checks every member is a proof or key of the expected kind."""
        if not all(isinstance(proof, ProofD) for proof in self.proof_ds):
            return False
        if not all(isinstance(pk, PublicKey) for pk in self.public_keys):
            return False
        if self.proof_u is None:
            return self.proof_u_public_key is None
        return isinstance(self.proof_u, ProofU) and \
            isinstance(self.proof_u_public_key, PublicKey)

    def __repr__(self):
        return "ProofCollection(%d disclosure proofs, proof_u=%s)" % (
            len(self.proof_ds), self.proof_u is not None)

# ---------- TESTS -------------


def test_proof_u_logged():
    from .testkeys import key_pair
    _, pk = key_pair()

    context = Bn.from_decimal("34911926065354700717429826907189165808787187263593066036316982805908526740809")
    n_1 = Bn.from_decimal("724811585564063105609243")
    c = Bn.from_decimal("4184045431748299802782143929438273256345760339041229271411466459902660986200")
    U = Bn.from_decimal("53941714038323323772993715692602421894514053229231925255570480167011458936488064431963770862062871590815370913733046166911453850329862473697478794938988248741580237664467927006089054091941563143176094050444799012171081539721321786755307076274602717003792794453593019124224828904640592766190733869209960398955")
    v_prime_response = Bn.from_decimal("930401833442556048954810956066821001094106683380918922610147216724718347679854246682690061274042716015957693675615113399347898060611144526167949042936228868420203309360695585386210327439216083389841383395698722832808268885873389302262079691644125050748391319832394519920382663304621540520277648619992590872190274152359156399474623649137315708728792245711389032617438368799004840694779408839779419604877135070624376537994035936")
    s_response = Bn.from_decimal("59776396667523329313292302350278517468587673934875085337674938789292900859071752886820910103285722288747559744087880906618151651690169988337871960870439882357345503256963847251")

    proof_u = ProofU(c, v_prime_response, s_response)
    assert proof_u.verify(pk, U, context, n_1)

    assert not proof_u.verify(pk, U, context, n_1 + 1)
    assert not proof_u.verify(pk, U, context + 1, n_1)
    assert not proof_u.verify(pk, U + 1, context, n_1)
    assert not ProofU(c, v_prime_response, s_response + 1).verify(pk, U, context, n_1)
    assert not proof_u.verify(pk, Bn(0), context, n_1)


def test_proof_d_structure():
    from .testkeys import key_pair
    _, pk = key_pair()

    ok = ProofD(1, 2, 3, 4, {0: 5, 2: 6}, {1: 7})
    assert ok.check_structure(pk)

    # Overlapping, gapped, or secret-revealing index sets
    assert not ProofD(1, 2, 3, 4, {0: 5, 1: 6}, {1: 7}).check_structure(pk)
    assert not ProofD(1, 2, 3, 4, {0: 5}, {2: 7}).check_structure(pk)
    assert not ProofD(1, 2, 3, 4, {1: 5}, {0: 7}).check_structure(pk)
    assert not ProofD(1, 2, 3, 4, dict((i, 5) for i in range(7)), {}).check_structure(pk)

    # Oversized responses
    big = two_pow(pk.params.l_m_commit + 1)
    assert not ProofD(1, 2, 3, 4, {0: big}, {}).check_structure(pk)
    assert not ProofD(1, 2, two_pow(pk.params.l_e_commit + 2), 4, {0: 5}, {}).check_structure(pk)

    # Malformed proofs are rejected, never raised
    assert not ok.verify(pk, 1, 2)
    assert not ProofD(1, 0, 3, 4, {0: 5}, {}).verify(pk, 1, 2)


def test_empty_collection_does_not_verify():
    assert not ProofCollection(None, [], []).verify(1, 2)
    assert ProofCollection(None, [], []).challenge is None


def test_ill_typed_collection_does_not_verify():
    from .testkeys import key_pair
    _, pk = key_pair()

    assert not ProofCollection(None, [Bn(1)], [pk]).verify(1, 2)
    assert not ProofCollection(None, [None], [pk]).verify(1, 2)
    assert not ProofCollection(None, [ProofD(1, 2, 3, 4, {0: 5}, {})], [Bn(3)]).verify(1, 2)
    assert not ProofCollection(Bn(1), [], [], pk).verify(1, 2, Bn(5))
    assert not ProofCollection(ProofU(1, 2, 3), [], [], "key").verify(1, 2, Bn(5))
    assert not ProofCollection(None, [Bn(1)], [pk]).well_typed()


def test_negative_context_or_nonce_does_not_verify():
    from .testkeys import key_pair
    from .clsig import CLSignature
    from .credential import Credential
    sk, pk = key_pair()

    attrs = [Bn(12), Bn(34)]
    cred = Credential(pk, attrs, CLSignature.sign(sk, pk, attrs))
    proof = cred.create_disclosure_proof([1], 1, 2)
    assert proof.verify(pk, 1, 2)
    assert not proof.verify(pk, -1, 2)
    assert not proof.verify(pk, 1, -2)

    collection = ProofCollection(None, [proof], [pk])
    assert not collection.verify(-1, 2)
    assert not collection.verify(1, -2)

    assert not ProofU(1, 2, 3).verify(pk, Bn(5), -1, 2)
