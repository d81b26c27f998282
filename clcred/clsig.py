"""Camenisch-Lysyanskaya signatures over an RSA modulus.

A signature (A, e, v) on attributes m_0, ..., m_k satisfies

    Z = A^e * S^v * R_0^{m_0} * ... * R_k^{m_k}  (mod n)

with e a prime from a fixed interval. The issuer computes A by taking an
e-th root, which requires the factorization of n. Anyone can re-randomize
a signature into an unlinkable signature on the same attributes.

See: Jan Camenisch, Anna Lysyanskaya. "A Signature Scheme with Efficient
Protocols." SCN 2002.
"""

from petlib.bn import Bn

from .bnutil import to_bn, two_pow, random_bits, random_prime_in_range, mod_pow, mod_prod
from .errors import InvalidAttributeError

import pytest


def check_attributes(pk, attributes, first=0):
    """Coerces attributes to Bn and checks them against the bit budget of pk.

    The attributes are bound to the bases R_first, R_first+1, ...
    """
    ms = [to_bn(m) for m in attributes]
    if first + len(ms) > pk.max_attributes():
        raise InvalidAttributeError("Public key has %d bases, cannot sign %d attributes."
                                    % (pk.max_attributes(), first + len(ms)))
    for i, m in enumerate(ms, first):
        if m < 0 or m.num_bits() > pk.params.l_m:
            raise InvalidAttributeError("Attribute %d exceeds %d bits." % (i, pk.params.l_m))
    return ms


def represent(pk, attributes, first=0):
    """The product R_first^{m_0} * R_first+1^{m_1} * ... mod n."""
    return mod_prod([pk.generator_r(i).mod_pow(m, pk.n)
                     for i, m in enumerate(attributes, first)], pk.n)


class CLSignature(object):
    """A CL signature (A, e, v). Never mutated once created."""

    __slots__ = ["A", "e", "v"]

    def __init__(self, A, e, v):
        self.A = to_bn(A)
        self.e = to_bn(e)
        self.v = to_bn(v)

    @staticmethod
    def _solve(sk, pk, numerator, e):
        # A = (Z / numerator)^{1/e}
        n = pk.n
        Q = pk.Z.mod_mul(numerator.mod_inverse(n), n)
        d = e.mod_inverse(sk.phi())
        return Q.mod_pow(d, n)

    @staticmethod
    def _sample_e(params):
        return random_prime_in_range(two_pow(params.l_e - 1), params.l_e_prime - 1)

    @staticmethod
    def _sample_v(params):
        # l_v bits, top bit set
        return two_pow(params.l_v - 1) + random_bits(params.l_v - 1)

    @staticmethod
    def sign(sk, pk, attributes):
        """Signs the attributes m_0, ..., m_k with the issuer key pair.

        Raises:
            InvalidAttributeError: an attribute exceeds l_m bits, or there
                are more attributes than bases in pk.
        """
        ms = check_attributes(pk, attributes)
        params = pk.params

        e = CLSignature._sample_e(params)
        v = CLSignature._sample_v(params)

        numerator = pk.S.mod_pow(v, pk.n).mod_mul(represent(pk, ms), pk.n)
        A = CLSignature._solve(sk, pk, numerator, e)
        return CLSignature(A, e, v)

    sign_message_block = sign

    @staticmethod
    def sign_commitment(sk, pk, U, attributes):
        """Blindly signs the committed secret U = S^{v'} R_0^{m_0} together
        with the attributes m_1, ..., m_k.

        The returned signature carries v'' in place of v; the holder
        completes it with v = v' + v''.
        """
        ms = check_attributes(pk, attributes, first=1)
        params = pk.params
        U = to_bn(U)
        if not 0 < U < pk.n:
            raise InvalidAttributeError("Commitment outside of Z_n.")

        e = CLSignature._sample_e(params)
        v_prime_prime = CLSignature._sample_v(params)

        numerator = pk.S.mod_pow(v_prime_prime, pk.n)
        numerator = numerator.mod_mul(U, pk.n)
        numerator = numerator.mod_mul(represent(pk, ms, first=1), pk.n)
        A = CLSignature._solve(sk, pk, numerator, e)
        return CLSignature(A, e, v_prime_prime)

    def e_in_range(self, params):
        """Checks 2^{l_e-1} <= e <= 2^{l_e-1} + 2^{l_e_prime}."""
        start = two_pow(params.l_e - 1)
        end = start + two_pow(params.l_e_prime)
        return start <= self.e <= end

    def verify(self, pk, attributes):
        """Returns True if this is a valid signature on attributes under pk."""
        try:
            ms = [to_bn(m) for m in attributes]
        except TypeError:
            return False

        if len(ms) > pk.max_attributes():
            return False
        # BN_mod_exp drops the sign of the exponent
        if any(m < 0 or m.num_bits() > pk.params.l_m for m in ms):
            return False
        if not self.e_in_range(pk.params):
            return False
        if not 0 < self.A < pk.n:
            return False

        n = pk.n
        lhs = self.A.mod_pow(self.e, n)
        lhs = lhs.mod_mul(mod_pow(pk.S, self.v, n), n)
        lhs = lhs.mod_mul(represent(pk, ms), n)
        return lhs == pk.Z

    def randomize(self, pk):
        """A fresh signature (A * S^r, e, v - e * r) on the same attributes."""
        r = random_bits(pk.params.l_r_a)
        A_prime = self.A.mod_mul(pk.S.mod_pow(r, pk.n), pk.n)
        v_prime = self.v - self.e * r
        return CLSignature(A_prime, self.e, v_prime)

    def __eq__(self, other):
        if not isinstance(other, CLSignature):
            return NotImplemented
        return (self.A, self.e, self.v) == (other.A, other.e, other.v)

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    def __hash__(self):
        return hash((self.A, self.e, self.v))

    def __repr__(self):
        return "CLSignature(A=%s, e=%s, v=%s)" % (self.A, self.e, self.v)

# ---------- TESTS -------------


def test_cl_signature():
    from .testkeys import key_pair
    sk, pk = key_pair()

    ms = [Bn(1), Bn(2), Bn(3)]
    sig = CLSignature.sign_message_block(sk, pk, ms)
    assert sig.verify(pk, ms)

    ms[0] = Bn(1337)
    assert not sig.verify(pk, ms)


def test_verify_rejects_out_of_range_attributes():
    from .testkeys import key_pair
    sk, pk = key_pair()

    ms = [Bn(1), Bn(2), Bn(3)]
    sig = CLSignature.sign(sk, pk, ms)
    assert sig.verify(pk, ms)

    assert not sig.verify(pk, [Bn(-1), Bn(2), Bn(3)])
    assert not sig.verify(pk, [Bn(1), -Bn(2), Bn(3)])
    assert not sig.verify(pk, [Bn(1), Bn(2), Bn(3) + two_pow(pk.params.l_m)])


def test_sign_native_ints():
    from .testkeys import key_pair
    sk, pk = key_pair()

    ms = [2**255 + 3, 7, 0, 42, 1, 2**256 - 1]
    sig = CLSignature.sign(sk, pk, ms)
    assert sig.verify(pk, ms)
    assert not sig.verify(pk, ms[:5])
    assert not sig.verify(pk, ms + [1])


def test_signature_shape():
    from .testkeys import key_pair
    sk, pk = key_pair()
    params = pk.params

    sig = CLSignature.sign(sk, pk, [Bn(5)])
    assert sig.e.is_prime()
    assert sig.e_in_range(params)
    assert sig.v.num_bits() == params.l_v


def test_sign_invalid_attributes():
    from .testkeys import key_pair
    sk, pk = key_pair()

    with pytest.raises(InvalidAttributeError):
        CLSignature.sign(sk, pk, [Bn(2).pow(256)])
    with pytest.raises(InvalidAttributeError):
        CLSignature.sign(sk, pk, [Bn(-1)])
    with pytest.raises(InvalidAttributeError):
        CLSignature.sign(sk, pk, [Bn(1)] * 7)


def test_verify_rejects_bad_e():
    from .testkeys import key_pair
    sk, pk = key_pair()

    ms = [Bn(10), Bn(20)]
    sig = CLSignature.sign(sk, pk, ms)
    wrong = CLSignature(sig.A, sig.e + 2, sig.v)
    assert not wrong.verify(pk, ms)
    too_small = CLSignature(sig.A, Bn(65537), sig.v)
    assert not too_small.verify(pk, ms)
    assert not sig.verify(pk, ["not a number"])


def test_randomize():
    from .testkeys import key_pair
    sk, pk = key_pair()

    ms = [Bn(1), Bn(2), Bn(3)]
    sig = CLSignature.sign(sk, pk, ms)
    rsig = sig.randomize(pk)

    assert rsig.verify(pk, ms)
    assert rsig.e == sig.e
    assert rsig.A != sig.A
    assert rsig != sig
    assert not rsig.verify(pk, [Bn(1), Bn(2), Bn(4)])

    # Randomizing twice gives unrelated A values
    assert sig.randomize(pk).A != rsig.A


def test_sign_commitment():
    from .testkeys import key_pair
    sk, pk = key_pair()
    params = pk.params

    secret = random_bits(params.l_m)
    v_prime = random_bits(params.l_v_prime)
    U = pk.S.mod_pow(v_prime, pk.n).mod_mul(pk.generator_r(0).mod_pow(secret, pk.n), pk.n)

    attrs = [Bn(100), Bn(200)]
    blind = CLSignature.sign_commitment(sk, pk, U, attrs)
    assert not blind.verify(pk, [secret] + attrs)

    sig = CLSignature(blind.A, blind.e, blind.v + v_prime)
    assert sig.verify(pk, [secret] + attrs)

    with pytest.raises(InvalidAttributeError):
        CLSignature.sign_commitment(sk, pk, U, [Bn(1)] * 6)
