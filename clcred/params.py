"""System parameters: the bit-length budget of every secret, randomizer
and response in the scheme.

The commit lengths are derived so that each response statistically hides
the value it covers: a commitment length is the base length plus the
statistical zero-knowledge margin plus the challenge length.
"""

import warnings

import pytest


class SystemParameters(object):
    """Named bit lengths for a given modulus size.

    Args:
        l_n (int): modulus length.
        l_m (int): attribute length.
        l_statzk (int): statistical zero-knowledge security parameter.
        l_h (int): challenge (hash output) length.
        l_e (int): signature exponent length.
        l_e_prime (int): length of the interval e is sampled from.
        l_v (int): signature randomizer length.
    """

    __slots__ = ["l_n", "l_m", "l_statzk", "l_h", "l_e", "l_e_prime", "l_v",
                 "l_e_commit", "l_m_commit", "l_v_commit", "l_v_prime",
                 "l_v_prime_commit", "l_r_a"]

    def __init__(self, l_n=1024, l_m=256, l_statzk=80, l_h=256, l_e=597,
                 l_e_prime=120, l_v=1700):
        self.l_n = l_n
        self.l_m = l_m
        self.l_statzk = l_statzk
        self.l_h = l_h
        self.l_e = l_e
        self.l_e_prime = l_e_prime
        self.l_v = l_v

        # Derived values
        self.l_e_commit = l_e_prime + l_statzk + l_h
        self.l_m_commit = l_m + l_statzk + l_h
        self.l_v_commit = l_v + l_statzk + l_h
        self.l_v_prime = l_n + l_statzk
        self.l_v_prime_commit = l_n + 2 * l_statzk + l_h
        self.l_r_a = l_n + l_statzk

        for problem in self.check():
            warnings.warn("Weak system parameters: %s" % problem)

    def check(self):
        """Lists the constraints of the scheme these parameters violate."""
        problems = []
        if self.l_e_prime >= self.l_e - 1:
            problems.append("l_e_prime must be smaller than l_e - 1")
        if self.l_e <= self.l_m + 2:
            problems.append("l_e must exceed l_m + 2")
        if self.l_v <= self.l_n + self.l_m:
            problems.append("l_v must exceed l_n + l_m")
        if self.l_h < 160:
            problems.append("l_h below 160 bits")
        if self.l_statzk < 60:
            problems.append("l_statzk below 60 bits")
        return problems

    def __eq__(self, other):
        if not isinstance(other, SystemParameters):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    def __hash__(self):
        return hash(self.as_tuple())

    def as_tuple(self):
        """The base lengths, from which all others are derived."""
        return (self.l_n, self.l_m, self.l_statzk, self.l_h, self.l_e,
                self.l_e_prime, self.l_v)

    def __repr__(self):
        return ("SystemParameters(l_n=%d, l_m=%d, l_statzk=%d, l_h=%d, "
                "l_e=%d, l_e_prime=%d, l_v=%d)" % self.as_tuple())


DEFAULT_PARAMS = SystemParameters()

# ---------- TESTS -------------


def test_default_lengths():
    p = DEFAULT_PARAMS
    assert (p.l_n, p.l_m, p.l_statzk, p.l_h) == (1024, 256, 80, 256)
    assert (p.l_e, p.l_e_prime, p.l_v) == (597, 120, 1700)

    assert p.l_e_commit == 456
    assert p.l_m_commit == 592
    assert p.l_v_commit == 2036
    assert p.l_v_prime == 1104
    assert p.l_v_prime_commit == 1440
    assert p.check() == []


def test_commit_margins():
    p = DEFAULT_PARAMS
    margin = p.l_statzk + p.l_h
    assert p.l_e_commit - p.l_e_prime >= margin
    assert p.l_m_commit - p.l_m >= margin
    assert p.l_v_commit - p.l_v >= margin
    assert p.l_v_prime_commit - p.l_v_prime >= margin


def test_weak_params_warn():
    with pytest.warns(UserWarning) as record:
        weak = SystemParameters(l_statzk=20)
    assert "l_statzk" in str(record[0].message)
    assert weak.l_m_commit == 256 + 20 + 256


def test_equality():
    assert SystemParameters() == DEFAULT_PARAMS
    assert hash(SystemParameters()) == hash(DEFAULT_PARAMS)
    with pytest.warns(UserWarning):
        assert SystemParameters(l_h=128) != DEFAULT_PARAMS
