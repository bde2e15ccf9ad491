"""Exact conversions between digital numbers and Python or GMP numbers,
using gmpy2 as a backend.
"""

import math

import gmpy2 as gmp

from .digital import Digital, nan, infinity, zero


def _exact_context(prec):
    return gmp.context(
        precision=max(2, prec),
        emin=gmp.get_emin_min(),
        emax=gmp.get_emax_max(),
        subnormalize=False,
        trap_underflow=True,
        trap_overflow=True,
        # conversions must never round
        trap_inexact=True,
        trap_invalid=True,
        trap_erange=True,
        trap_divzero=True,
    )


def digital_to_mpfr(x):
    """Convert a digital number to an mpfr, with exactly enough precision
    to represent it.
    """
    if x.isnan:
        return gmp.nan()
    elif x.isinf:
        if x.negative:
            return -gmp.inf()
        else:
            return gmp.inf()

    # Apparently a multiplication between a small precision 0 and a huge
    # scale can raise a TypeError, so special case zero.
    with _exact_context(x.p):
        if x.is_zero():
            if x.negative:
                return -gmp.zero()
            else:
                return gmp.zero()
        else:
            return gmp.mul(gmp.mpfr(x.m), gmp.exp2(x.exp))


def mpfr_to_digital(x):
    if gmp.is_nan(x):
        return nan()

    negative = gmp.is_signed(x)

    if gmp.is_infinite(x):
        return infinity(negative=negative)
    elif gmp.is_zero(x):
        return zero(negative=negative)

    m, exp = x.as_mantissa_exp()
    return Digital(m=int(m), exp=int(exp))


def to_digital(x):
    """Convert any supported number to a digital number, without losing anything.
    Supported types are digital numbers themselves, Python ints and floats,
    and gmpy2 mpz and mpfr values.
    """
    if isinstance(x, Digital):
        return x
    elif isinstance(x, (int, type(gmp.mpz(0)))):
        return Digital(m=int(x), exp=0)
    elif isinstance(x, float):
        if math.isnan(x):
            return nan()
        elif math.isinf(x):
            return infinity(negative=(x < 0))
        with _exact_context(53):
            f = gmp.mpfr(x)
        return mpfr_to_digital(f)
    elif isinstance(x, type(gmp.mpfr(0))):
        return mpfr_to_digital(x)
    else:
        raise TypeError('cannot convert {} to a digital number'.format(repr(x)))


def digital_to_float(x):
    """Nearest Python float, with ties to even."""
    return float(digital_to_mpfr(x))
