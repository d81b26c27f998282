"""Issuer key material.

The public key holds the RSA modulus n and the quadratic residues Z, S and
R_0..R_k; R_0 is the base of the holder's secret key, R_1..R_k those of the
other attributes. Issuer key generation is not part of this library: keys
are produced elsewhere and loaded from their numbers.
"""

import warnings

from petlib.bn import Bn

from .bnutil import to_bn
from .errors import InvalidAttributeError
from .params import DEFAULT_PARAMS

import pytest


class PublicKey(object):
    """An issuer public key (n, Z, S, R) bound to its system parameters."""

    __slots__ = ["n", "Z", "S", "R", "params"]

    def __init__(self, n, Z, S, R, params=DEFAULT_PARAMS):
        self.n = to_bn(n)
        self.Z = to_bn(Z)
        self.S = to_bn(S)
        self.R = tuple(to_bn(Ri) for Ri in R)
        self.params = params

        if len(self.R) == 0:
            raise InvalidAttributeError("A public key needs at least the base R_0.")
        for x in (self.Z, self.S) + self.R:
            if not 0 < x < self.n:
                raise InvalidAttributeError("Public key base outside of Z_n.")

        bits = self.n.num_bits()
        if not params.l_n - 1 <= bits <= params.l_n:
            warnings.warn("Modulus of %d bits does not match l_n = %d"
                          % (bits, params.l_n))

    def generator_r(self, i):
        """The base R_i of attribute i."""
        if not 0 <= i < len(self.R):
            raise InvalidAttributeError("No base R_%s in this public key." % i)
        return self.R[i]

    def max_attributes(self):
        """Number of attributes (including the secret key) this key can sign."""
        return len(self.R)

    def __eq__(self, other):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return (self.n, self.Z, self.S, self.R) == (other.n, other.Z, other.S, other.R) \
            and self.params == other.params

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    def __hash__(self):
        return hash((self.n, self.Z, self.S, self.R))

    def __repr__(self):
        return "PublicKey(n=%s..., %d bases)" % (repr(self.n)[:16], len(self.R))


class SecretKey(object):
    """The factorization p, q of an issuer modulus. Only signing code needs it."""

    __slots__ = ["p", "q"]

    def __init__(self, p, q):
        self.p = to_bn(p)
        self.q = to_bn(q)

    def modulus(self):
        return self.p * self.q

    def phi(self):
        """Euler's totient of the modulus."""
        return (self.p - 1) * (self.q - 1)

    def matches(self, pk):
        """Returns True if this key factors the modulus of pk."""
        return self.modulus() == pk.n

    def __repr__(self):
        # Never print the factors
        return "SecretKey(<%d bits>)" % self.modulus().num_bits()

# ---------- TESTS -------------


def test_public_key():
    from .testkeys import n, Z, S, R, p, q

    pk = PublicKey(n, Z, S, R)
    sk = SecretKey(p, q)
    assert sk.modulus() == pk.n
    assert sk.matches(pk)
    assert pk.max_attributes() == 6
    assert pk.generator_r(0) == R[0]
    assert pk.params == DEFAULT_PARAMS
    assert "SecretKey" in repr(sk) and str(p) not in repr(sk)

    with pytest.raises(InvalidAttributeError):
        pk.generator_r(6)
    with pytest.raises(InvalidAttributeError):
        pk.generator_r(-1)


def test_public_key_equality():
    from .testkeys import n, Z, S, R

    pk1 = PublicKey(n, Z, S, R)
    pk2 = PublicKey(n, Z, S, list(R))
    assert pk1 == pk2
    assert hash(pk1) == hash(pk2)
    assert pk1 != PublicKey(n, Z, S, R[:3])


def test_public_key_bad_bases():
    from .testkeys import n, Z, S, R

    with pytest.raises(InvalidAttributeError):
        PublicKey(n, Z, S, [])
    with pytest.raises(InvalidAttributeError):
        PublicKey(n, Z, to_bn(n) + 1, R)
    with pytest.raises(InvalidAttributeError):
        PublicKey(n, 0, S, R)


def test_modulus_size_warning():
    with pytest.warns(UserWarning):
        PublicKey(Bn(1009 * 1013), Bn(4), Bn(9), [Bn(16)])
