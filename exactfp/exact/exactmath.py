"""Arithmetic on digital numbers, without rounding.

Addition, subtraction, multiplication and fused multiply-add are computed
exactly. Division and square root are computed exactly down to a guard digit,
with a single sticky bit below it that records whether anything nonzero was
left over. The guard digit is chosen by the caller (see
RoundingContext.guard_n) so that the final rounding cannot tell the difference.

Special values are handled by per-operator tables keyed on the kinds of the
operands. Every table is total: each combination of Kind values has an entry.

Every operation returns a triple (result, invalid, divzero), where the flags
follow IEEE 754 invalid operation and division by zero.
"""

import itertools

import gmpy2 as gmp

from . import utils
from .ops import RM, OP
from .digital import Digital, Kind, nan, infinity, zero


ALL_KINDS = tuple(Kind)
REALS = (Kind.ZERO, Kind.FINITE)


def _ok(x):
    return x, False, False

def _invalid(*args):
    return nan(), True, False


# unary rules

def _first(x, *args):
    return _ok(Digital(x))

def _second(x, y, *args):
    return _ok(Digital(y))

def _neg(x, *args):
    return _ok(Digital(x, negative=not x.negative))

def _fabs(x, *args):
    return _ok(Digital(x, negative=False))


# addition

def _add_zeros(x, y, rm, *args):
    # IEEE 754 section 6.3: the sum of opposite zeros is +0,
    # except when rounding toward negative
    if x.negative == y.negative:
        return _ok(zero(negative=x.negative))
    else:
        return _ok(zero(negative=(rm == RM.RTN)))

def _add_infs(x, y, *args):
    if x.negative == y.negative:
        return _ok(Digital(x))
    else:
        return _invalid()

def _compress(big, small, guard):
    """Replace an addend that lies entirely below every digit that could matter
    with a single sticky bit in the same position of the binary expansion.
    The rounded sum is unchanged: the bits of the sum down to one below
    the lowest significant digit of big agree, and both are followed by
    some nonzero bits.
    """
    lowest = min(big.exp, guard(big.e - 1))
    if small.e < lowest - 2:
        return Digital(small, c=1, exp=lowest - 2)
    else:
        return small

def _reduce(big, small, modulus_exp):
    """Lower the exponent of an addend far above both the other addend and
    2**modulus_exp. Both versions are multiples of 2**modulus_exp, and both
    sums lie far above it, so the sums agree modulo 2**modulus_exp
    and both overflow.
    """
    ceiling = max(modulus_exp + 2, small.e + 2)
    if big.exp > ceiling:
        return Digital(big, exp=ceiling)
    else:
        return big

def _add_finite(x, y, rm, guard, modulus_exp):
    if x.e < y.e:
        x, y = y, x
    if modulus_exp is not None:
        x = _reduce(x, y, modulus_exp)
    if guard is not None:
        y = _compress(x, y, guard)

    exp = min(x.exp, y.exp)
    m = (x.m << (x.exp - exp)) + (y.m << (y.exp - exp))

    if m == 0:
        return _ok(zero(negative=(rm == RM.RTN), exp=exp))
    else:
        return _ok(Digital(m=m, exp=exp))

_add_table = {k: _invalid for k in itertools.product(ALL_KINDS, repeat=2)}
_add_table.update({
    (Kind.ZERO, Kind.ZERO): _add_zeros,
    (Kind.ZERO, Kind.FINITE): _second,
    (Kind.FINITE, Kind.ZERO): _first,
    (Kind.FINITE, Kind.FINITE): _add_finite,
    (Kind.INFINITY, Kind.ZERO): _first,
    (Kind.INFINITY, Kind.FINITE): _first,
    (Kind.ZERO, Kind.INFINITY): _second,
    (Kind.FINITE, Kind.INFINITY): _second,
    (Kind.INFINITY, Kind.INFINITY): _add_infs,
})


# multiplication

def _mul_zero(x, y, *args):
    return _ok(zero(negative=(x.negative != y.negative), exp=x.exp + y.exp))

def _mul_inf(x, y, *args):
    return _ok(infinity(negative=(x.negative != y.negative)))

def _mul_finite(x, y, *args):
    return _ok(Digital(negative=(x.negative != y.negative), c=x.c * y.c, exp=x.exp + y.exp))

_mul_table = {k: _invalid for k in itertools.product(ALL_KINDS, repeat=2)}
_mul_table.update({
    (Kind.ZERO, Kind.ZERO): _mul_zero,
    (Kind.ZERO, Kind.FINITE): _mul_zero,
    (Kind.FINITE, Kind.ZERO): _mul_zero,
    (Kind.FINITE, Kind.FINITE): _mul_finite,
    (Kind.INFINITY, Kind.FINITE): _mul_inf,
    (Kind.FINITE, Kind.INFINITY): _mul_inf,
    (Kind.INFINITY, Kind.INFINITY): _mul_inf,
    # (INFINITY, ZERO) and (ZERO, INFINITY) are invalid
})


# division

def _div_zero(x, y, *args):
    return _ok(zero(negative=(x.negative != y.negative)))

def _div_by_zero(x, y, *args):
    return infinity(negative=(x.negative != y.negative)), False, True

def _div_finite(x, y, rm, guard, modulus_exp):
    if guard is None:
        raise utils.RoundingError('cannot divide {} by {} without a guard digit'
                                  .format(str(x), str(y)))

    # the quotient is at least 2**(x.e - y.e - 1) and below 2**(x.e - y.e + 1)
    e_lo = x.e - y.e - 1
    n = guard(e_lo)
    negative = x.negative != y.negative
    if e_lo + 2 <= n:
        # only the sticky bit is left
        return _ok(Digital(negative=negative, c=1, exp=n - 1))

    shift = x.exp - y.exp - n
    if modulus_exp is not None and e_lo >= modulus_exp + 2 and shift > 0:
        # Only the quotient modulo 2**modulus_exp matters, and it overflows.
        # Keep k digits of it above n, then add 2**(n + k) so it still overflows.
        k = modulus_exp + 2 - n
        modulus = y.c << k
        q, r = divmod((x.c * pow(2, shift, modulus)) % modulus, y.c)
        q |= 1 << k
    elif shift >= 0:
        q, r = divmod(x.c << shift, y.c)
    else:
        q, r = divmod(x.c, y.c << -shift)

    if r == 0:
        return _ok(Digital(negative=negative, c=q, exp=n))
    else:
        return _ok(Digital(negative=negative, c=(q << 1) | 1, exp=n - 1))

_div_table = {k: _invalid for k in itertools.product(ALL_KINDS, repeat=2)}
_div_table.update({
    (Kind.ZERO, Kind.FINITE): _div_zero,
    (Kind.ZERO, Kind.INFINITY): _div_zero,
    (Kind.FINITE, Kind.INFINITY): _div_zero,
    (Kind.FINITE, Kind.ZERO): _div_by_zero,
    (Kind.FINITE, Kind.FINITE): _div_finite,
    (Kind.INFINITY, Kind.ZERO): _mul_inf,
    (Kind.INFINITY, Kind.FINITE): _mul_inf,
    # (ZERO, ZERO) and (INFINITY, INFINITY) are invalid
})


# square root

def _sqrt_special(x, *args):
    # sqrt(-0) is -0, sqrt(+inf) is +inf
    if x.negative and not x.is_zero():
        return _invalid()
    else:
        return _ok(Digital(x))

def _sqrt_finite(x, rm, guard, modulus_exp):
    if x.negative:
        return _invalid()
    if guard is None:
        raise utils.RoundingError('cannot take the square root of {} without a guard digit'
                                  .format(str(x)))

    # the root has leading exponent exactly floor(x.e / 2)
    e = x.e // 2
    n = guard(e)
    if e + 1 <= n:
        # only the sticky bit is left
        return _ok(Digital(negative=False, c=1, exp=n - 1))
    if modulus_exp is not None and e >= modulus_exp + 2:
        # An inexact root has no residue short of computing all of its digits.
        # Keep enough of them to tell if the root is exact.
        n = max(n, e - max(modulus_exp - n, x.p // 2 + 2))

    shift = x.exp - 2 * n
    if shift >= 0:
        lost = 0
        s, r = gmp.isqrt_rem(gmp.mpz(x.c) << shift)
    else:
        # floor(sqrt(floor(y))) == floor(sqrt(y))
        lost = utils.maskbits(x.c, -shift)
        s, r = gmp.isqrt_rem(gmp.mpz(x.c) >> -shift)

    s = int(s)
    if r == 0 and lost == 0:
        return _ok(Digital(negative=False, c=s, exp=n))
    else:
        return _ok(Digital(negative=False, c=(s << 1) | 1, exp=n - 1))

_sqrt_table = {
    (Kind.ZERO,): _sqrt_special,
    (Kind.FINITE,): _sqrt_finite,
    (Kind.INFINITY,): _sqrt_special,
    (Kind.NAN,): _invalid,
}


# sign manipulation

def _copysign(x, y, *args):
    return _ok(Digital(x, negative=y.negative))

_neg_table = {(k,): _neg for k in ALL_KINDS}
_neg_table[(Kind.NAN,)] = _invalid

_fabs_table = {(k,): _fabs for k in ALL_KINDS}
_fabs_table[(Kind.NAN,)] = _invalid

_copysign_table = {k: _invalid for k in itertools.product(ALL_KINDS, repeat=2)}
_copysign_table.update({k: _copysign for k in itertools.product((*REALS, Kind.INFINITY), repeat=2)})


# minimum and maximum, IEEE 754-2008 minNum and maxNum:
# a single NaN operand is ignored

def _fmin(x, y, *args):
    order = x.compareto(y)
    if order < 0 or (order == 0 and x.negative):
        return _ok(Digital(x))
    else:
        return _ok(Digital(y))

def _fmax(x, y, *args):
    order = x.compareto(y)
    if order > 0 or (order == 0 and not x.negative):
        return _ok(Digital(x))
    else:
        return _ok(Digital(y))

def _ignoring_nan(rule):
    table = {k: rule for k in itertools.product(ALL_KINDS, repeat=2)}
    for k in ALL_KINDS:
        if k is not Kind.NAN:
            table[(k, Kind.NAN)] = _first
            table[(Kind.NAN, k)] = _second
    table[(Kind.NAN, Kind.NAN)] = _invalid
    return table

_fmin_table = _ignoring_nan(_fmin)
_fmax_table = _ignoring_nan(_fmax)


def _sub(x, y, rm, guard, modulus_exp):
    return _dispatch(_add_table, x, Digital(y, negative=not y.negative),
                     rm=rm, guard=guard, modulus_exp=modulus_exp)

def _fma(x, y, z, rm, guard, modulus_exp):
    # the product is exact, so the sum is only rounded once, by the caller
    product, invalid, divzero = _dispatch(_mul_table, x, y)
    if product.isnan:
        return product, True, divzero
    return _dispatch(_add_table, product, z, rm=rm, guard=guard, modulus_exp=modulus_exp)


def _dispatch(table, *args, rm=RM.RNE, guard=None, modulus_exp=None):
    rule = table[tuple(arg.kind for arg in args)]
    return rule(*args, rm, guard, modulus_exp)

_tables = {
    OP.add: _add_table,
    OP.mul: _mul_table,
    OP.div: _div_table,
    OP.sqrt: _sqrt_table,
    OP.neg: _neg_table,
    OP.fabs: _fabs_table,
    OP.copysign: _copysign_table,
    OP.fmin: _fmin_table,
    OP.fmax: _fmax_table,
}

_arities = {
    OP.add: 2,
    OP.sub: 2,
    OP.mul: 2,
    OP.div: 2,
    OP.fma: 3,
    OP.sqrt: 1,
    OP.neg: 1,
    OP.fabs: 1,
    OP.copysign: 2,
    OP.fmin: 2,
    OP.fmax: 2,
}


def compute(opcode, *args, rm=RM.RNE, guard=None, modulus_exp=None):
    """Compute op(*args) without rounding.
    op is specified via opcode, and arguments are universal digital numbers.

    The rounding mode rm is only used to decide the sign of an exact zero sum.
    guard is a function from a lower bound on the leading exponent e of the result
    to the lowest binary digit that the eventual rounding can depend on;
    it is required for division and square root, and lets addition discard
    the bits of an operand that is far too small to matter.
    Without it, every operation other than division and square root is exact.
    modulus_exp is given by contexts that only keep results modulo 2**modulus_exp;
    operands and quotients far above it are then reduced to congruent values
    that still overflow.

    Returns (result, invalid, divzero).
    """
    try:
        arity = _arities[opcode]
    except KeyError:
        raise ValueError('unsupported operation {}'.format(repr(opcode))) from None
    if len(args) != arity:
        raise ValueError('{} takes {} arguments, got {}'.format(opcode.name, arity, len(args)))

    if opcode == OP.sub:
        return _sub(*args, rm, guard, modulus_exp)
    elif opcode == OP.fma:
        return _fma(*args, rm, guard, modulus_exp)
    else:
        return _dispatch(_tables[opcode], *args, rm=rm, guard=guard, modulus_exp=modulus_exp)
