"""Universal representation for digital numbers (in base 2)"""

from enum import IntEnum, unique

from . import utils
from .ops import RM
from .rounding import Discard, RoundingDirection, round_direction


@unique
class Kind(IntEnum):
    ZERO = 0
    FINITE = 1
    INFINITY = 2
    NAN = 3


class Digital(object):

    # for numbers with a real value, the magnitude is exactly _c * (2 ** _exp)
    _c : int = 0
    _exp : int = 0

    # the sign is stored separately
    _negative : bool = False

    # as is information about infiniteness or NaN
    _isinf : bool = False
    _isnan : bool = False

    # the internal state is not directly visible: expose it with properties

    @property
    def c(self):
        """Unsigned integer significand.
        The magnitude of the real value is exactly (c * 2**exp).
        """
        return self._c

    @property
    def exp(self):
        """Signed integer exponent.
        The magnitude of the real value is exactly (c * 2**exp).
        """
        return self._exp

    @property
    def m(self):
        """Signed integer significand.
        The real value is exactly (m * 2**exp).
        """
        if self._negative:
            return -self._c
        else:
            return self._c

    @property
    def e(self):
        """IEEE 754 style exponent.
        If the significand is interpreted as a binary fraction between 1 and 2,
        i.e. x = 0b1.100101001110... etc. then the real value is (x * 2**e).
        """
        return (self._exp - 1) + self._c.bit_length()

    @property
    def n(self):
        """The binary place where digits are no longer significant.
        I.e. -1 for an integer. Always equal to exp - 1.
        """
        return self._exp - 1

    @property
    def p(self):
        """The precision of the significand.
        Always equal to the number of bits in c; 0 for any zero.
        """
        return self._c.bit_length()

    @property
    def negative(self):
        """The sign bit - is this value negative?"""
        return self._negative

    @property
    def sign(self):
        """-1 for negative values (including -0 and -inf), 1 otherwise."""
        if self._negative:
            return -1
        else:
            return 1

    @property
    def isinf(self):
        """Is this value infinite?"""
        return self._isinf

    @property
    def isnan(self):
        """Is this value NaN?"""
        return self._isnan

    @property
    def kind(self):
        if self._isnan:
            return Kind.NAN
        elif self._isinf:
            return Kind.INFINITY
        elif self._c == 0:
            return Kind.ZERO
        else:
            return Kind.FINITE

    def is_zero(self):
        """Is this value zero (of either sign)?"""
        return self._c == 0 and not (self._isinf or self._isnan)

    def is_infinite(self):
        return self._isinf

    def is_nan(self):
        return self._isnan

    def is_nonzero(self):
        """Is this value a real number with a nonzero significand?"""
        return self._c != 0 and not (self._isinf or self._isnan)

    def is_integer(self):
        """Is this value an integer?"""
        if not self.is_finite_real():
            return False
        elif self._exp >= 0 or self._c == 0:
            return True
        elif -self._exp >= self._c.bit_length():
            return False
        else:
            return utils.maskbits(self._c, -self._exp) == 0

    def is_finite_real(self):
        """Is this value a finite real number, i.e. not an infinity or NaN?"""
        return not (self._isinf or self._isnan)

    def is_nar(self):
        """Is this value "not a real" number, i.e. an infinity or NaN?"""
        return self._isinf or self._isnan

    def is_identical_to(self, other):
        """Is this value encoded identically to some other value?
        This is a structural property, and may be stricter than real valued equality.
        """
        return (
            self._c == other._c
            and self._exp == other._exp
            and self._negative == other._negative
            and self._isinf == other._isinf
            and self._isnan == other._isnan
        )

    def __init__(self,
                 x=None,
                 c=None,
                 negative=None,
                 m=None,
                 exp=None,
                 e=None,
                 isinf=None,
                 isnan=None,
    ):
        """Create a new digital number. The first argument, "x", is a base number
        to clone and update, otherwise the default values will be used.
        The significand can be specified as either c or m (if m is specified, then
        negative cannot be provided as an argument).
        The exponent can be specified as either exp or e. If it is specified as e,
        then the significand will first be set based on other arguments, then exp
        will be computed accordingly.
        """
        # _c and _negative
        if c is not None:
            if m is not None:
                raise ValueError('cannot specify both c={} and m={}'.format(repr(c), repr(m)))
            if c < 0:
                raise ValueError('unsigned significand c={} must not be negative'.format(repr(c)))
            self._c = int(c)
            if negative is not None:
                self._negative = negative
            elif x is not None:
                self._negative = x._negative
            else:
                self._negative = type(self)._negative
        elif m is not None:
            if negative is not None:
                raise ValueError('cannot specify both m={} and negative={}'.format(repr(m), repr(negative)))
            self._c = abs(int(m))
            self._negative = m < 0
        elif x is not None:
            self._c = x._c
            if negative is not None:
                self._negative = negative
            else:
                self._negative = x._negative
        else:
            self._c = type(self)._c
            if negative is not None:
                self._negative = negative
            else:
                self._negative = type(self)._negative

        # _exp
        if exp is not None:
            if e is not None:
                raise ValueError('cannot specify both exp={} and e={}'.format(repr(exp), repr(e)))
            self._exp = int(exp)
        elif e is not None:
            self._exp = e - self._c.bit_length() + 1
        elif x is not None:
            self._exp = x._exp
        else:
            self._exp = type(self)._exp

        # _isinf
        if isinf is not None:
            self._isinf = isinf
        elif x is not None:
            self._isinf = x._isinf
        else:
            self._isinf = type(self)._isinf

        # _isnan
        if isnan is not None:
            self._isnan = isnan
        elif x is not None:
            self._isnan = x._isnan
        else:
            self._isnan = type(self)._isnan

    def __repr__(self):
        return '{}(negative={}, c={}, exp={}, isinf={}, isnan={})'.format(
            type(self).__name__, repr(self._negative), repr(self._c), repr(self._exp),
            repr(self._isinf), repr(self._isnan),
        )

    def __str__(self):
        if self._isnan:
            return 'nan'
        elif self._isinf:
            return '-inf' if self._negative else '+inf'
        return '{:s} {:d} * 2**{:d}'.format(
            '-' if self.negative else '+',
            self.c,
            self.exp,
        )

    def compareto(self, other):
        """Compare to another digital number. The ordering returned is:
            -1 iff self < other
             0 iff self = other
             1 iff self > other
          None iff self and other are unordered
        Finite values are compared by sign, then by leading exponent, and only
        then by aligning their significands, so the exponents can be arbitrarily
        far apart without building a huge integer.
        """
        # deal with special cases
        if self.isnan or other.isnan:
            return None

        if self.isinf:
            if other.isinf and self.negative == other.negative:
                return 0
            elif self.negative:
                return -1
            else:
                return 1
        elif other.isinf:
            if other.negative:
                return 1
            else:
                return -1

        # zeros compare equal regardless of sign
        if self.is_zero():
            if other.is_zero():
                return 0
            elif other.negative:
                return 1
            else:
                return -1
        elif other.is_zero():
            if self.negative:
                return -1
            else:
                return 1

        if self.negative != other.negative:
            if self.negative:
                return -1
            else:
                return 1

        # same sign: compare magnitudes
        if self.e != other.e:
            order = 1 if self.e > other.e else -1
        else:
            # with equal leading exponents, the shift is bounded by the precision
            n = min(self.n, other.n)
            self_ord = self.c << (self.n - n)
            other_ord = other.c << (other.n - n)
            if self_ord < other_ord:
                order = -1
            elif self_ord == other_ord:
                order = 0
            else:
                order = 1

        if self.negative:
            return -order
        else:
            return order

    def __lt__(self, other):
        if not isinstance(other, Digital):
            return NotImplemented
        order = self.compareto(other)
        return order is not None and order < 0

    def __le__(self, other):
        if not isinstance(other, Digital):
            return NotImplemented
        order = self.compareto(other)
        return order is not None and order <= 0

    def __eq__(self, other):
        if not isinstance(other, Digital):
            return NotImplemented
        order = self.compareto(other)
        return order is not None and order == 0

    def __ne__(self, other):
        if not isinstance(other, Digital):
            return NotImplemented
        order = self.compareto(other)
        return order is None or order != 0

    def __ge__(self, other):
        if not isinstance(other, Digital):
            return NotImplemented
        order = self.compareto(other)
        return order is not None and order >= 0

    def __gt__(self, other):
        if not isinstance(other, Digital):
            return NotImplemented
        order = self.compareto(other)
        return order is not None and order > 0

    __hash__ = None


    # Rounding is broken up into 3 phases:
    #  - determine the target p and n, and split up the input
    #  - determine which direction to round
    #  - actually apply the rounding
    # The first and last phases are independent of the rounding mode.

    def round_setup(self, max_p=None, min_n=None):
        """Split the significand in preparation for rounding.
        Will fail for infinities and NaN.

        The result is the precision p (or None, if using fixed-point style rounding),
        as well as the exponent and the kept significand, and the classification
        of the discarded bits.
        """
        if self.is_nar():
            raise utils.RoundingError('cannot round infinite or non-real value {}'.format(repr(self)))

        c = self._c
        exp = self._exp

        if max_p is None:
            if min_n is None:
                # How are we supposed to round???
                raise utils.RoundingError('must specify max_p or min_n')
            else: # min_n is not None
                # Fixed-point rounding: limited by n, precision can change.
                n = min_n
        else: # max_p is not None:
            e = (exp - 1) + c.bit_length()
            if min_n is None:
                # Floating-point rounding: limited by some fixed precision.
                n = e - max_p
            else: # min_n is not None
                # Floating-point rounding, with subnormals:
                # limited by some fixed precision, or a smallest representable bit.
                n = max(min_n, e - max_p)

        offset = n - (exp - 1)

        if offset > c.bit_length():
            # Every digit is below the half bit, so no mask is needed.
            half_bit = 0
            sticky_bit = c != 0
            c = 0
            exp += offset
        elif offset > 0:
            # Round off offset bits.
            half_bit = (c >> (offset - 1)) & 1
            sticky_bit = utils.maskbits(c, offset - 1) != 0
            c >>= offset
            exp += offset
        else:
            # Extend with zeros, which is entirely fine for exact values.
            c <<= -offset
            exp += offset
            half_bit = 0
            sticky_bit = False

        return max_p, exp, c, Discard.from_bits(half_bit, sticky_bit)

    def round_apply(self, p, exp, c, direction):
        """Apply a rounding direction, to produce a rounded result."""
        if direction is RoundingDirection.ROUND_AWAY:
            # If c is zero, we will round away to one, which is right for fixed-point.
            # If the increment carries out of p bits, c is now a power of two,
            # so we can chop off the low zero and widen the exponent instead.
            c += 1
            if p is not None and c.bit_length() > p:
                c >>= 1
                exp += 1
        elif direction is not RoundingDirection.TRUNCATE:
            raise ValueError('unknown rounding direction: {}'.format(repr(direction)))

        return Digital(self, c=c, exp=exp)

    def round_new(self, max_p=None, min_n=None, rm=RM.RNE):
        """Round the significand to at most max_p precision, or a least absolute digit
        in position min_n, whichever is less precise. The requested precision
        may be as small as one bit, but there is no limit on the resulting exponent,
        and infinite and NaN cannot be rounded in this way.

        If only min_n is given, then rounding is performed as for fixed-point,
        and the resulting significand may have any number of bits.
        If max_p is given, then rounding is performed as for floating-point,
        and the exponent will be adjusted to ensure the result has at most max_p bits.
        If both max_p and min_n are specified, then min_n takes precedence,
        so the result may have significantly less than max_p precision.
        This behavior can be used to emulate IEEE 754 subnormals.

        Returns the rounded (plain Digital) value, and the classification
        of the discarded bits, which is Discard.EXACT iff nothing was lost.
        """
        p, exp, c, discard = self.round_setup(max_p=max_p, min_n=min_n)
        odd = not utils.is_even_for_rounding(c, exp, p)
        direction = round_direction(rm, discard, self.negative, odd)
        return self.round_apply(p, exp, c, direction), discard


# named constructors

def zero(negative=False, exp=0):
    return Digital(negative=negative, c=0, exp=exp)

def infinity(negative=False):
    return Digital(negative=negative, isinf=True)

def nan():
    return Digital(isnan=True)

def finite(negative, exp, c):
    """The exact value (-1)**negative * c * 2**exp.
    A zero significand produces a signed zero.
    """
    return Digital(negative=bool(negative), c=c, exp=exp)
