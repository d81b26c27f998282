"""Small helpers around petlib big numbers used throughout clcred."""

from petlib.bn import Bn

import pytest

# Largest magnitude petlib accepts through Bn(int)
_WORD_BOUND = 2**63


def to_bn(x):
    """Coerce a native integer of any size (or a Bn) into a Bn."""
    if isinstance(x, Bn):
        return x
    if not isinstance(x, int) or isinstance(x, bool):
        raise TypeError("Cannot coerce %r into a Bn." % (x,))
    if -_WORD_BOUND < x < _WORD_BOUND:
        return Bn(x)
    return Bn.from_decimal(str(x))


def two_pow(l):
    """Returns 2^l as a Bn."""
    return Bn(2).pow(l)


def random_bits(l):
    """A cryptographically strong random number 0 <= rnd < 2^l."""
    return two_pow(l).random()


def random_prime_in_range(start, l):
    """A probable prime in [start, start + 2^l). start must be even."""
    while True:
        candidate = start + random_bits(l)
        if not candidate.is_odd():
            candidate = candidate + 1
        if candidate.is_prime():
            return candidate


def mod_pow(base, exp, n):
    """base^exp mod n, where exp may be negative."""
    if exp < 0:
        return base.mod_inverse(n).mod_pow(-exp, n)
    return base.mod_pow(exp, n)


def mod_prod(factors, n):
    """The product of all factors, reduced mod n."""
    res = Bn(1)
    for f in factors:
        res = res.mod_mul(f, n)
    return res

# ---------- TESTS -------------


def test_to_bn():
    assert to_bn(5) == Bn(5)
    assert to_bn(-5) == -5
    big = 2**300 + 17
    assert to_bn(big) == Bn.from_decimal(str(big))
    assert to_bn(-big) == -Bn.from_decimal(str(big))
    b = Bn(7)
    assert to_bn(b) is b

    with pytest.raises(TypeError):
        to_bn("100")


def test_random_bits():
    for _ in range(20):
        r = random_bits(100)
        assert 0 <= r < two_pow(100)
    assert two_pow(10) == 1024


def test_random_prime_in_range():
    start = two_pow(127)
    p = random_prime_in_range(start, 64)
    assert p.is_prime()
    assert start <= p < start + two_pow(64)


def test_mod_pow_negative():
    n = Bn(1009)
    x = Bn(123)
    assert mod_pow(x, 5, n) == pow(123, 5, 1009)
    inv = mod_pow(x, -1, n)
    assert inv.mod_mul(x, n) == 1
    assert mod_pow(x, -3, n).mod_mul(mod_pow(x, 3, n), n) == 1
    assert mod_pow(x, 0, n) == 1


def test_mod_prod():
    n = Bn(97)
    assert mod_prod([Bn(10), Bn(20), Bn(30)], n) == (10 * 20 * 30) % 97
    assert mod_prod([], n) == 1
