"""Format-independent arithmetic.

Every operation computes its result with exactmath, then hands it to the
caller's rounding context, which produces the final value and status.
Contexts are always passed explicitly; a value's own context is only used
by the MPNum methods when no other context is given.
"""

import typing

from ..exact import digital, exactmath, gmpmath
from ..exact.ops import OP


class Status(typing.NamedTuple):
    """What happened while rounding a single result.

    underflowed is IEEE 754 underflow with tininess detected after rounding;
    underflowed_pre detects tininess before rounding instead. Both are only
    raised together with an inexact result. carry means rounding moved the
    leading digit up by one place into the normal range, and denorm means
    some argument of the operation was subnormal in the rounding context.
    """
    exact: bool = True
    overflowed: bool = False
    underflowed: bool = False
    invalid: bool = False
    divzero: bool = False
    underflowed_pre: bool = False
    carry: bool = False
    denorm: bool = False

    @property
    def inexact(self):
        return not self.exact


class Result(typing.NamedTuple):
    value: 'MPNum'
    status: Status


class MPNum(digital.Digital):

    _ctx = None

    @property
    def ctx(self):
        """The rounding context used to produce this value."""
        return self._ctx

    def __init__(self, x=None, ctx=None, **kwargs):
        """Create a value in ctx. Digital arguments are taken exactly; anything
        else (a Python or gmpy2 number) is rounded into ctx first. The Status of
        that rounding is dropped: use ctx.round(x) directly to keep it.
        """
        if ctx is None:
            if isinstance(x, MPNum):
                ctx = x.ctx
            else:
                ctx = type(self)._ctx

        if x is None or isinstance(x, digital.Digital):
            super().__init__(x=x, **kwargs)
        else:
            if kwargs:
                raise ValueError('cannot specify additional values {}'.format(repr(kwargs)))
            if ctx is None:
                raise ValueError('no context specified to round {}'.format(repr(x)))
            super().__init__(x=ctx.round(x).value)

        self._ctx = ctx

    def is_identical_to(self, other):
        if isinstance(other, MPNum):
            return super().is_identical_to(other) and self.ctx == other.ctx
        else:
            return super().is_identical_to(other)

    def __repr__(self):
        return '{}(negative={}, c={}, exp={}, isinf={}, isnan={}, ctx={})'.format(
            type(self).__name__, repr(self._negative), repr(self._c), repr(self._exp),
            repr(self._isinf), repr(self._isnan), repr(self._ctx)
        )

    def __str__(self):
        return str(gmpmath.digital_to_mpfr(self))

    # comparison with plain numbers goes through their exact digital value

    def _compare(self, other):
        if isinstance(other, digital.Digital):
            return self.compareto(other)
        try:
            return self.compareto(gmpmath.to_digital(other))
        except TypeError:
            return NotImplemented

    def __lt__(self, other):
        order = self._compare(other)
        if order is NotImplemented:
            return order
        return order is not None and order < 0

    def __le__(self, other):
        order = self._compare(other)
        if order is NotImplemented:
            return order
        return order is not None and order <= 0

    def __eq__(self, other):
        order = self._compare(other)
        if order is NotImplemented:
            return order
        return order is not None and order == 0

    def __ne__(self, other):
        order = self._compare(other)
        if order is NotImplemented:
            return order
        return order is None or order != 0

    def __ge__(self, other):
        order = self._compare(other)
        if order is NotImplemented:
            return order
        return order is not None and order >= 0

    def __gt__(self, other):
        order = self._compare(other)
        if order is NotImplemented:
            return order
        return order is not None and order > 0

    __hash__ = None

    def __float__(self):
        return gmpmath.digital_to_float(self)

    def to_exact(self):
        """The exact value, as a plain digital number."""
        return digital.Digital(self)

    def _select_context(self, ctx):
        if ctx is not None:
            return ctx
        elif self.ctx is not None:
            return self.ctx
        else:
            raise ValueError('no context specified for {}'.format(repr(self)))

    # operations

    def add(self, other, ctx=None):
        return add(self, other, self._select_context(ctx))

    def sub(self, other, ctx=None):
        return sub(self, other, self._select_context(ctx))

    def mul(self, other, ctx=None):
        return mul(self, other, self._select_context(ctx))

    def div(self, other, ctx=None):
        return div(self, other, self._select_context(ctx))

    def fma(self, other1, other2, ctx=None):
        return fma(self, other1, other2, self._select_context(ctx))

    def sqrt(self, ctx=None):
        return sqrt(self, self._select_context(ctx))

    def neg(self, ctx=None):
        return neg(self, self._select_context(ctx))

    def fabs(self, ctx=None):
        return fabs(self, self._select_context(ctx))

    def copysign(self, other, ctx=None):
        return copysign(self, other, self._select_context(ctx))

    def fmin(self, other, ctx=None):
        return fmin(self, other, self._select_context(ctx))

    def fmax(self, other, ctx=None):
        return fmax(self, other, self._select_context(ctx))

    def compare(self, other):
        return compare(self, other)

    def isfinite(self):
        return not (self.isinf or self.isnan)

    # isinf and isnan are properties

    # isnormal is implementation specific - override if necessary
    def isnormal(self):
        return not (
            self.is_zero()
            or self.isinf
            or self.isnan
        )

    def signbit(self):
        return self.negative


def _compute(ctx, opcode, *args):
    args, denorm = ctx.read_arguments(gmpmath.to_digital(arg) for arg in args)
    unrounded, invalid, divzero = exactmath.compute(opcode, *args, rm=ctx.rm, guard=ctx.guard_n,
                                                    modulus_exp=ctx.modulus_exp)
    value, status = ctx.round(unrounded)
    return Result(value, status._replace(invalid=(status.invalid or invalid), divzero=divzero, denorm=denorm))


def add(x, y, ctx):
    return _compute(ctx, OP.add, x, y)

def sub(x, y, ctx):
    return _compute(ctx, OP.sub, x, y)

def mul(x, y, ctx):
    return _compute(ctx, OP.mul, x, y)

def div(x, y, ctx):
    return _compute(ctx, OP.div, x, y)

def fma(x, y, z, ctx):
    """x * y + z, rounded once."""
    return _compute(ctx, OP.fma, x, y, z)

def sqrt(x, ctx):
    return _compute(ctx, OP.sqrt, x)

def neg(x, ctx):
    return _compute(ctx, OP.neg, x)

def fabs(x, ctx):
    return _compute(ctx, OP.fabs, x)

def copysign(x, y, ctx):
    return _compute(ctx, OP.copysign, x, y)

def fmin(x, y, ctx):
    return _compute(ctx, OP.fmin, x, y)

def fmax(x, y, ctx):
    return _compute(ctx, OP.fmax, x, y)


def compare(x, y):
    """Three-way comparison of two values in any formats.
    Returns -1, 0 or 1, or None if the values are unordered (either is NaN).
    """
    return gmpmath.to_digital(x).compareto(gmpmath.to_digital(y))

def isunordered(x, y):
    return compare(x, y) is None
