"""Shared fixtures: a brute-force correct rounding oracle built on fractions.Fraction,
independent of the rounding code under test.
"""

import math
from fractions import Fraction

import pytest

from exactfp.exact.digital import Digital
from exactfp.exact.ops import RM, OF
from exactfp.arithmetic.mpnum import Status


def as_fraction(x):
    """The exact value of a finite digital number."""
    return Fraction(x.m) * Fraction(2) ** x.exp


def as_number(x):
    """The exact value of any digital number: a Fraction, or a float for inf and NaN."""
    if x.isnan:
        return math.nan
    elif x.isinf:
        return -math.inf if x.negative else math.inf
    else:
        return as_fraction(x)


def from_fraction(q):
    """The digital number for a Fraction with a power of two denominator."""
    den = q.denominator
    assert den & (den - 1) == 0, 'not a dyadic rational: {}'.format(q)
    return Digital(m=q.numerator, exp=-(den.bit_length() - 1))


def leading_exponent(q):
    """e such that 2**e <= |q| < 2**(e+1)."""
    q = abs(q)
    e = q.numerator.bit_length() - q.denominator.bit_length()
    if Fraction(2) ** e > q:
        e -= 1
    return e


def choose(rm, k):
    """Round the Fraction k to one of the integers floor(k), ceil(k)."""
    lo = math.floor(k)
    hi = math.ceil(k)
    if lo == hi:
        return lo
    if rm in (RM.RNE, RM.RNA):
        d = k - lo
        if d < Fraction(1, 2):
            return lo
        elif d > Fraction(1, 2):
            return hi
        elif rm == RM.RNA:
            return hi if k > 0 else lo
        else:
            return lo if lo % 2 == 0 else hi
    elif rm == RM.RTZ:
        return lo if k > 0 else hi
    elif rm == RM.RAZ:
        return hi if k > 0 else lo
    elif rm == RM.RTP:
        return hi
    elif rm == RM.RTN:
        return lo
    elif rm == RM.RTE:
        return lo if lo % 2 == 0 else hi
    elif rm == RM.RTO:
        return lo if lo % 2 == 1 else hi
    raise ValueError(rm)


def oracle_round(ctx, x):
    """Correctly round the Fraction x into ctx, by brute force.
    Returns the expected value (a Fraction, or a float infinity) and Status.
    """
    if x == 0:
        return Fraction(0), Status()

    if ctx.single_scale:
        q = Fraction(2) ** ctx.expmin
        k = choose(ctx.rm, x / q)
        r = k * q
        lo = as_fraction(ctx.minval)
        hi = as_fraction(ctx.maxval)
        if lo <= r <= hi:
            return r, Status(exact=(r == x))
        if ctx.of == OF.SATURATE:
            r = hi if r > hi else lo
        else:
            modulus = 1 << ctx.p
            i = k % modulus
            if ctx.signed and i >= modulus // 2:
                i -= modulus
            r = i * q
        return r, Status(exact=False, overflowed=True)

    e = leading_exponent(x)

    # tininess after rounding, with an unbounded exponent range
    ue = e - ctx.p + 1
    unbounded = choose(ctx.rm, x / Fraction(2) ** ue) * Fraction(2) ** ue
    tiny = abs(unbounded) < Fraction(2) ** ctx.emin

    if not ctx.subnormals:
        if tiny:
            return Fraction(0), Status(exact=False, underflowed=True, underflowed_pre=True)
        r = unbounded
    else:
        qe = max(ue, ctx.expmin)
        r = choose(ctx.rm, x / Fraction(2) ** qe) * Fraction(2) ** qe

    carry = r != 0 and ctx.emin <= leading_exponent(r) and e < leading_exponent(r)

    maxval = as_fraction(ctx.maxval)
    if abs(r) > maxval:
        to_inf = (ctx.rm in (RM.RNE, RM.RNA, RM.RAZ, RM.RTE)
                  or (ctx.rm == RM.RTP and x > 0)
                  or (ctx.rm == RM.RTN and x < 0))
        if to_inf and ctx.of == OF.INFINITY:
            r = math.inf if x > 0 else -math.inf
        else:
            r = maxval if x > 0 else -maxval
        return r, Status(exact=False, overflowed=True, carry=carry)

    inexact = r != x
    return r, Status(exact=not inexact, underflowed=(tiny and inexact),
                     underflowed_pre=(e < ctx.emin and inexact), carry=carry)


def sqrt_bracket(x, expmin):
    """A dyadic stand-in for sqrt(x), for a nonnegative dyadic Fraction x:
    exact if the root is exact, otherwise strictly between two points
    much finer than any grid point or midpoint at or above 2**(expmin - 2).
    """
    k = 64 - expmin
    scaled = x * Fraction(4) ** k
    s = math.isqrt(math.floor(scaled))
    if s * s == scaled:
        return Fraction(s, 1 << k)
    else:
        return Fraction(2 * s + 1, 1 << (k + 1))


def finite_values(ctx):
    """Every finite value of a small context (both zeros for floats), as digital numbers."""
    values = []
    if ctx.single_scale:
        for i in range(ctx.minval.m, ctx.maxval.m + 1):
            values.append(Digital(m=i, exp=ctx.expmin))
    else:
        for exp in range(ctx.expmin, ctx.expmax + 1):
            start = 0 if exp == ctx.expmin else 1 << (ctx.p - 1)
            if exp == ctx.expmin and not ctx.subnormals:
                start = 1 << (ctx.p - 1)
                values.append(Digital(c=0, exp=exp))
                values.append(Digital(c=0, exp=exp, negative=True))
            for c in range(start, 1 << ctx.p):
                values.append(Digital(c=c, exp=exp))
                values.append(Digital(c=c, exp=exp, negative=True))
    return values


@pytest.fixture
def oracle():
    return oracle_round


@pytest.fixture
def fraction_of():
    return as_number


@pytest.fixture
def dyadic():
    return from_fraction


@pytest.fixture
def enumerate_finite():
    return finite_values


@pytest.fixture
def sqrt_approx():
    return sqrt_bracket


@pytest.fixture
def check_rounding():
    """Assert that a Result matches the oracle for the exact value x.
    denorm describes the arguments rather than the result, so it is not compared.
    """
    def check(ctx, x, result, context=''):
        expected, status = oracle_round(ctx, x)
        value = as_number(result.value)
        assert value == expected, '{}: {} rounded to {}, expected {}'.format(context, x, value, expected)
        assert result.status._replace(denorm=False) == status, '{}: {} flags {}, expected {}'.format(context, x, result.status, status)
        if expected == 0 and ctx.has_signed_zero and x != 0:
            assert result.value.negative == (x < 0), '{}: {} lost the sign of zero'.format(context, x)
    return check
