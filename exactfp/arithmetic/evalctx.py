"""Rounding contexts, shared across arithmetics.

A context is an immutable record of the parameters of a number format.
Every format is rounded by the same procedure, RoundingContext.round;
formats only differ in the parameters they supply.
"""

import logging

from ..exact import utils
from ..exact import digital
from ..exact import gmpmath
from ..exact.digital import Digital
from ..exact.ops import RM, OF, NS
from ..exact.rounding import Discard, overflows_to_infinity
from .mpnum import MPNum, Result, Status


logger = logging.getLogger(__name__)


binary16_synonyms = {'binary16', 'float16', 'float16_t', 'half'}
binary32_synonyms = {'binary32', 'float32', 'float32_t', 'single', 'float'}
binary64_synonyms = {'binary64', 'float64', 'float64_t', 'double'}
binary128_synonyms = {'binary128', 'float128', 'float128_t', 'quadruple'}

int8_synonyms = {'int8', 'int8_t', 'char'}
int16_synonyms = {'int16', 'int16_t', 'short'}
int32_synonyms = {'int32', 'int32_t', 'int'}
int64_synonyms = {'int64', 'int64_t', 'long'}

uint8_synonyms = {'uint8', 'uint8_t'}
uint16_synonyms = {'uint16', 'uint16_t'}
uint32_synonyms = {'uint32', 'uint32_t'}
uint64_synonyms = {'uint64', 'uint64_t'}

# option names are compared with case, underscores and dashes removed
RNE_synonyms = {'rne', 'nearesteven', 'roundnearesteven', 'nearesttiestoeven', 'roundnearesttiestoeven'}
RNA_synonyms = {'rna', 'nearestaway', 'roundnearestaway', 'nearesttiestoaway', 'roundnearesttiestoaway'}
RTP_synonyms = {'rtp', 'topositive', 'roundtopositive', 'towardpositive', 'roundtowardpositive', 'towardposinf'}
RTN_synonyms = {'rtn', 'tonegative', 'roundtonegative', 'towardnegative', 'roundtowardnegative', 'towardneginf'}
RTZ_synonyms = {'rtz', 'tozero', 'roundtozero', 'towardzero', 'roundtowardzero'}
RAZ_synonyms = {'raz', 'awayzero', 'roundawayzero', 'awayfromzero'}
RTE_synonyms = {'rte', 'toeven', 'roundtoeven'}
RTO_synonyms = {'rto', 'toodd', 'roundtoodd'}

infinity_synonyms = {'infinity', 'inf', 'infinite'}
saturate_synonyms = {'saturate', 'clamp'}
wrap_synonyms = {'wrap'}

zero_synonyms = {'zero'}
maxval_synonyms = {'maxval', 'max'}
minval_synonyms = {'minval', 'min'}

rounding_modes = {}
rounding_modes.update((k, RM.RNE) for k in RNE_synonyms)
rounding_modes.update((k, RM.RNA) for k in RNA_synonyms)
rounding_modes.update((k, RM.RTP) for k in RTP_synonyms)
rounding_modes.update((k, RM.RTN) for k in RTN_synonyms)
rounding_modes.update((k, RM.RTZ) for k in RTZ_synonyms)
rounding_modes.update((k, RM.RAZ) for k in RAZ_synonyms)
rounding_modes.update((k, RM.RTE) for k in RTE_synonyms)
rounding_modes.update((k, RM.RTO) for k in RTO_synonyms)

overflow_modes = {}
overflow_modes.update((k, OF.INFINITY) for k in infinity_synonyms)
overflow_modes.update((k, OF.SATURATE) for k in saturate_synonyms)
overflow_modes.update((k, OF.WRAP) for k in wrap_synonyms)

nan_sentinels = {}
nan_sentinels.update((k, NS.ZERO) for k in zero_synonyms)
nan_sentinels.update((k, NS.MAXVAL) for k in maxval_synonyms)
nan_sentinels.update((k, NS.MINVAL) for k in minval_synonyms)


class EvalCtx(object):
    """Generic immutable context for holding properties."""

    # this placeholder should never have anything put in it
    props = utils.ImmutableDict()

    _recognized_props = frozenset()

    def __init__(self, props=None):
        self._set_fields(props=utils.ImmutableDict(props or {}))

    def __setattr__(self, name, value):
        raise AttributeError('{} is immutable: cannot assign {}'.format(type(self).__name__, name))

    def __delattr__(self, name):
        raise AttributeError('{} is immutable: cannot delete {}'.format(type(self).__name__, name))

    def _set_fields(self, **fields):
        self.__dict__.update(fields)

    def _check_props(self, props):
        unknown = set(props) - self._recognized_props
        if unknown:
            raise utils.ConfigurationError('unsupported {} properties {}'
                                           .format(type(self).__name__, repr(sorted(unknown))))

    def __repr__(self):
        args = []
        if len(self.props) > 0:
            args.append('props=' + repr(dict(self.props)))
        return '{}({})'.format(type(self).__name__, ', '.join(args))

    def let(self, props=None):
        """Create a new context, updated with any provided properties."""
        cls = type(self)
        newctx = cls.__new__(cls)
        newctx.__dict__.update(self.__dict__)

        if props:
            merged = dict(self.props)
            merged.update(props)
            newctx._configure(merged, **newctx._read_props(props))

        return newctx

    def _read_props(self, props):
        self._check_props(props)
        return {}

    def _configure(self, props, **fields):
        self._set_fields(props=utils.ImmutableDict(props))


class RoundingContext(EvalCtx):
    """Parameters of a number format, and the procedure that rounds into it.

    Finite values of the format are (-1)**s * c * 2**exp with c < 2**p and
    expmin <= exp. Values with a full p bits of precision also have exp <= expmax;
    values with less (the subnormals) have exp == expmin, and only exist if
    subnormals are allowed. A single-scale context (expmin == expmax)
    is fixed-point: every value is an integer multiple of 2**expmin,
    stored as a p-bit two's complement (or unsigned) integer.
    """

    # binary64 by default
    p = 53
    expmin = -1074
    expmax = 971
    subnormals = True
    rm = RM.RNE
    of = OF.INFINITY
    signed = True
    nan_sentinel = NS.MINVAL
    dtz = False

    _recognized_props = frozenset(('round', 'overflow', 'nan'))

    def __init__(self, precision_bits=None, exponent_min=None, exponent_max=None,
                 subnormals_allowed=None, tie_policy=None, overflow_policy=None,
                 signed=None, nan_sentinel=None, denormals_as_zero=None, props=None):
        props = dict(props or {})
        fields = self._read_props(props)

        # arguments are allowed to override properties
        arguments = {
            'p': precision_bits,
            'expmin': exponent_min,
            'expmax': exponent_max,
            'subnormals': subnormals_allowed,
            'rm': tie_policy,
            'of': overflow_policy,
            'signed': signed,
            'nan_sentinel': nan_sentinel,
            'dtz': denormals_as_zero,
        }
        fields.update((k, v) for k, v in arguments.items() if v is not None)

        self._configure(props, **fields)

    def _read_props(self, props):
        fields = super()._read_props(props)
        if 'round' in props:
            fields['rm'] = utils.lookup_synonym(rounding_modes, props['round'], 'rounding mode')
        if 'overflow' in props:
            fields['of'] = utils.lookup_synonym(overflow_modes, props['overflow'], 'overflow mode')
        if 'nan' in props:
            fields['nan_sentinel'] = utils.lookup_synonym(nan_sentinels, props['nan'], 'NaN sentinel')
        return fields

    def _configure(self, props, p=None, expmin=None, expmax=None, subnormals=None,
                   rm=None, of=None, signed=None, nan_sentinel=None, dtz=None):
        # missing fields keep their current (or class default) values
        p = self.p if p is None else p
        expmin = self.expmin if expmin is None else expmin
        expmax = self.expmax if expmax is None else expmax
        subnormals = self.subnormals if subnormals is None else bool(subnormals)
        signed = self.signed if signed is None else bool(signed)
        dtz = self.dtz if dtz is None else bool(dtz)
        rm = utils.lookup_synonym(rounding_modes, self.rm if rm is None else rm, 'rounding mode')
        of = utils.lookup_synonym(overflow_modes, self.of if of is None else of, 'overflow mode')
        nan_sentinel = utils.lookup_synonym(nan_sentinels, self.nan_sentinel if nan_sentinel is None else nan_sentinel,
                                            'NaN sentinel')

        self._validate(p, expmin, expmax, of, signed)

        single_scale = expmin == expmax
        if single_scale:
            max_p = None
            min_n = expmin - 1
            emin = expmin
            if signed:
                maxval = Digital(negative=False, c=(1 << (p - 1)) - 1, exp=expmin)
                minval = Digital(negative=True, c=1 << (p - 1), exp=expmin)
            else:
                maxval = Digital(negative=False, c=(1 << p) - 1, exp=expmin)
                minval = Digital(negative=False, c=0, exp=expmin)
        else:
            max_p = p
            min_n = expmin - 1 if subnormals else None
            emin = expmin + p - 1
            maxval = Digital(negative=False, c=(1 << p) - 1, exp=expmax)
            minval = Digital(negative=True, c=(1 << p) - 1, exp=expmax)

        super()._configure(props)
        self._set_fields(
            p=p, expmin=expmin, expmax=expmax, subnormals=subnormals,
            rm=rm, of=of, signed=signed, nan_sentinel=nan_sentinel, dtz=dtz,
            single_scale=single_scale,
            max_p=max_p, min_n=min_n,
            emin=emin, emax=expmax + p - 1,
            maxval=maxval, minval=minval,
            quantum=Digital(negative=False, c=1, exp=expmin),
            has_infinity=(of == OF.INFINITY),
            has_nan=not single_scale,
            has_signed_zero=not single_scale,
        )
        logger.debug('configured %r', self)

    def _validate(self, p, expmin, expmax, of, signed):
        problem = None
        if not isinstance(p, int) or p < 1:
            problem = 'precision must be a positive integer, got {}'.format(repr(p))
        elif not isinstance(expmin, int) or not isinstance(expmax, int):
            problem = 'exponent bounds must be integers, got {} and {}'.format(repr(expmin), repr(expmax))
        elif expmin > expmax:
            problem = 'exponent_min={} is larger than exponent_max={}'.format(expmin, expmax)
        elif expmin == expmax and of == OF.INFINITY:
            problem = 'fixed-point contexts cannot overflow to infinity'
        elif expmin != expmax and of == OF.WRAP:
            problem = 'only fixed-point contexts can wrap on overflow'
        elif expmin != expmax and not signed:
            problem = 'only fixed-point contexts can be unsigned'

        if problem is not None:
            logger.debug('rejected %s configuration: %s', type(self).__name__, problem)
            raise utils.ConfigurationError(problem)

    # the recognized configuration options, by name

    @property
    def precision_bits(self):
        return self.p

    @property
    def exponent_min(self):
        return self.expmin

    @property
    def exponent_max(self):
        return self.expmax

    @property
    def subnormals_allowed(self):
        return self.subnormals

    @property
    def tie_policy(self):
        return self.rm

    @property
    def overflow_policy(self):
        return self.of

    @property
    def denormals_as_zero(self):
        return self.dtz

    def _key(self):
        return (type(self), self.p, self.expmin, self.expmax, self.subnormals,
                self.rm, self.of, self.signed, self.nan_sentinel, self.dtz)

    def __eq__(self, other):
        if not isinstance(other, RoundingContext):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        args = ['precision_bits=' + repr(self.p),
                'exponent_min=' + repr(self.expmin),
                'exponent_max=' + repr(self.expmax),
                'subnormals_allowed=' + repr(self.subnormals),
                'tie_policy=RM.' + self.rm.name,
                'overflow_policy=OF.' + self.of.name]
        if not self.signed:
            args.append('signed=False')
        if self.dtz:
            args.append('denormals_as_zero=True')
        return '{}({})'.format(type(self).__name__, ', '.join(args))

    @property
    def dtype(self):
        """The type of values produced by rounding."""
        return MPNum

    def guard_n(self, e):
        """The lowest binary digit that can affect the rounding of any value
        whose leading exponent is at least e. This includes the digit that would
        be used to detect tininess, which ignores the minimum exponent.
        """
        if not self.single_scale:
            return e - self.p
        elif self.of == OF.WRAP:
            return self.min_n
        else:
            # values that saturate keep only their leading digits
            return max(self.min_n, e - self.p - 2)

    @property
    def modulus_exp(self):
        """Wrapping contexts only depend on values modulo 2**modulus_exp;
        None for every other context.
        """
        if self.of == OF.WRAP:
            return self.expmin + self.p
        else:
            return None

    def is_subnormal(self, x):
        return not self.single_scale and x.is_nonzero() and x.e < self.emin

    def read_arguments(self, args):
        """Prepare the arguments of an operation. Returns them as a list,
        and whether any of them was subnormal in this context. With
        denormals_as_zero, subnormal arguments are read as zeros of the same sign.
        """
        args = list(args)
        denorm = any(self.is_subnormal(arg) for arg in args)
        if denorm and self.dtz:
            args = [digital.zero(negative=arg.negative) if self.is_subnormal(arg) else arg for arg in args]
        return args, denorm

    def _sentinel(self):
        if self.nan_sentinel is NS.ZERO:
            return digital.zero(exp=self.expmin)
        elif self.nan_sentinel is NS.MAXVAL:
            return self.maxval
        else:
            return self.minval

    def _wrap(self, x):
        """Reduce a value on this context's grid to the range of a p-bit integer."""
        modulus = 1 << self.p
        i = x.m % modulus
        if self.signed and i >= modulus >> 1:
            i -= modulus
        return Digital(m=i, exp=self.expmin)

    def _result(self, x, **flags):
        return Result(self.dtype(x, ctx=self), Status(**flags))

    def round(self, x):
        """Round any digital number (or exact Python number) into this context.
        Returns a Result: the rounded value, and a Status describing
        what was lost along the way.
        """
        x = gmpmath.to_digital(x)

        if x.isnan:
            if self.has_nan:
                return self._result(digital.nan(), invalid=True)
            else:
                logger.debug('NaN is not representable in %r', self)
                return self._result(self._sentinel(), exact=False, invalid=True)

        if x.isinf:
            if self.has_infinity:
                return self._result(digital.infinity(negative=x.negative))
            else:
                logger.debug('%s is not representable in %r', str(x), self)
                extreme = self.minval if x.negative else self.maxval
                return self._result(extreme, exact=False, overflowed=True, invalid=True)

        if x.is_zero():
            return self._result(digital.zero(negative=(x.negative and self.has_signed_zero), exp=self.expmin))

        if self.single_scale and x.e > self.emax + 1:
            # far above the range: never shift x onto the grid of quanta
            if self.of != OF.WRAP:
                return self._overflow(x)
            elif x.exp - self.expmin >= self.p:
                logger.debug('%s overflowed in %r', str(x), self)
                return self._result(digital.zero(exp=self.expmin), exact=False, overflowed=True)

        rounded, discard = x.round_new(max_p=self.max_p, min_n=self.min_n, rm=self.rm)
        exact = discard is Discard.EXACT
        flags = {}

        if not self.single_scale:
            # tininess is detected after rounding, as if the exponent range were unbounded
            if self.min_n is None:
                tiny = rounded.e < self.emin
            elif x.e < self.emin:
                unbounded, _ = x.round_new(max_p=self.p, rm=self.rm)
                tiny = unbounded.e < self.emin
            else:
                tiny = False

            if tiny and self.min_n is None:
                # no subnormals: flush to zero
                return self._result(digital.zero(negative=x.negative, exp=self.expmin),
                                    exact=False, underflowed=True, underflowed_pre=True)

            flags['underflowed'] = tiny and not exact
            flags['underflowed_pre'] = x.e < self.emin and not exact
            flags['carry'] = rounded.is_nonzero() and self.emin <= rounded.e and x.e < rounded.e

        if rounded.is_zero():
            return self._result(digital.zero(negative=(x.negative and self.has_signed_zero), exp=self.expmin),
                                exact=exact, **flags)

        if rounded > self.maxval or rounded < self.minval:
            return self._overflow(x, rounded, carry=flags.get('carry', False))

        return self._result(rounded, exact=exact, **flags)

    def _overflow(self, x, rounded=None, carry=False):
        logger.debug('%s overflowed in %r', str(x), self)
        if self.of == OF.WRAP:
            result = self._wrap(rounded)
        elif self.of == OF.INFINITY and overflows_to_infinity(self.rm, x.negative):
            result = digital.infinity(negative=x.negative)
        elif x.negative:
            result = self.minval
        else:
            result = self.maxval
        return self._result(result, exact=False, overflowed=True, carry=carry)
