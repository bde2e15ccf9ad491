"""Emulated IEEE 754 binary floating-point arithmetic.
"""

import numpy as np

from ..exact import utils
from ..exact.digital import Digital
from ..exact.ops import RM, OF
from . import evalctx
from . import mpnum


IEEE_esnbits = {}
IEEE_esnbits.update((k, (5, 16)) for k in evalctx.binary16_synonyms)
IEEE_esnbits.update((k, (8, 32)) for k in evalctx.binary32_synonyms)
IEEE_esnbits.update((k, (11, 64)) for k in evalctx.binary64_synonyms)
IEEE_esnbits.update((k, (15, 128)) for k in evalctx.binary128_synonyms)

np_types = {
    (5, 16): np.float16,
    (8, 32): np.float32,
    (11, 64): np.float64,
}


class IEEECtx(evalctx.RoundingContext):
    """Context for IEEE 754-like arithmetic, with es exponent bits
    and nbits bits in total (including the sign).
    """

    es = 11
    nbits = 64

    _recognized_props = evalctx.RoundingContext._recognized_props | {'precision'}

    def __init__(self, es=None, nbits=None, rm=None, subnormals=None, of=None, dtz=None, ftz=None, props=None):
        """ftz (flush subnormal results to zero) is the opposite of subnormals;
        dtz reads subnormal arguments of operations as zero.
        """
        props = dict(props or {})
        fields = self._read_props(props)

        if ftz is not None:
            if subnormals is not None and subnormals == bool(ftz):
                raise utils.ConfigurationError('conflicting subnormals={} and ftz={}'
                                               .format(repr(subnormals), repr(ftz)))
            subnormals = not ftz

        # arguments are allowed to override properties
        arguments = {'es': es, 'nbits': nbits, 'rm': rm, 'subnormals': subnormals, 'of': of, 'dtz': dtz}
        fields.update((k, v) for k, v in arguments.items() if v is not None)

        self._configure(props, **fields)

    def _read_props(self, props):
        fields = super()._read_props(props)
        if 'precision' in props:
            prec = props['precision']
            precstr = str(prec).lower()
            if precstr in IEEE_esnbits:
                fields['es'], fields['nbits'] = IEEE_esnbits[precstr]
            else:
                # try to decipher a custom (es, nbits) type
                try:
                    fields['es'], fields['nbits'] = (int(x) for x in prec)
                except (TypeError, ValueError):
                    raise utils.ConfigurationError('unsupported IEEE 754 precision {}'
                                                   .format(repr(prec))) from None
        return fields

    def _configure(self, props, es=None, nbits=None, **fields):
        es = self.es if es is None else es
        nbits = self.nbits if nbits is None else nbits
        if not isinstance(es, int) or not isinstance(nbits, int) or es < 2 or nbits <= es:
            raise utils.ConfigurationError('unsupported IEEE 754 format with es={}, nbits={}'
                                           .format(repr(es), repr(nbits)))

        p = nbits - es
        emax = (1 << (es - 1)) - 1
        emin = 1 - emax

        self._set_fields(es=es, nbits=nbits)
        super()._configure(props, p=p, expmin=emin - p + 1, expmax=emax - p + 1, **fields)

    def _key(self):
        return (type(self), self.es, self.nbits, self.rm, self.subnormals, self.of, self.dtz)

    def __repr__(self):
        args = ['es=' + repr(self.es), 'nbits=' + repr(self.nbits), 'rm=RM.' + self.rm.name]
        if not self.subnormals:
            args.append('subnormals=False')
        if self.dtz:
            args.append('dtz=True')
        if self.of != OF.INFINITY:
            args.append('of=OF.' + self.of.name)
        return '{}({})'.format(type(self).__name__, ', '.join(args))

    @property
    def dtype(self):
        return Float

    @property
    def bias(self):
        return self.emax

    @property
    def ftz(self):
        return not self.subnormals

    @property
    def np_type(self):
        try:
            return np_types[(self.es, self.nbits)]
        except KeyError:
            raise ValueError('no numpy type for {}'.format(repr(self))) from None


used_ctxs = {}
def ieee_ctx(es, nbits, rm=RM.RNE):
    try:
        return used_ctxs[(es, nbits, rm)]
    except KeyError:
        ctx = IEEECtx(es=es, nbits=nbits, rm=rm)
        used_ctxs[(es, nbits, rm)] = ctx
        return ctx


class Float(mpnum.MPNum):

    _ctx : IEEECtx = ieee_ctx(11, 64)

    def isnormal(self):
        return not (
            self.is_zero()
            or self.isinf
            or self.isnan
            or self.e < self.ctx.emin
        )

    def issubnormal(self):
        return self.is_nonzero() and self.e < self.ctx.emin

    # structural fields, in the layout of the standard interchange formats

    @property
    def sign_bit(self):
        return 1 if self.negative else 0

    @property
    def biased_exponent(self):
        ctx = self.ctx
        if self.isinf or self.isnan:
            return utils.bitmask(ctx.es)
        elif self.is_zero() or self.e < ctx.emin:
            return 0
        elif self.e > ctx.emax:
            raise utils.PrecisionError('exponent out of range: {}'.format(str(self)))
        else:
            return self.e + ctx.bias

    @property
    def trailing_significand(self):
        ctx = self.ctx
        pbits = ctx.p - 1
        if self.isnan:
            # canonical quiet NaN
            if pbits < 1:
                raise utils.PrecisionError('no room for a NaN significand in {}'.format(repr(ctx)))
            return 1 << (pbits - 1)
        elif self.isinf or self.is_zero():
            return 0

        if self.p > ctx.p:
            raise utils.PrecisionError('too much precision: given {}, can represent {}'
                                       .format(self.p, ctx.p))
        if self.e < ctx.emin:
            # subnormal, as a multiple of the smallest subnormal
            if self.exp < ctx.expmin:
                raise utils.PrecisionError('too much precision for a subnormal: {}'.format(str(self)))
            return self.c << (self.exp - ctx.expmin)
        else:
            # normal, with the implicit leading bit removed
            return (self.c << (ctx.p - self.p)) & utils.bitmask(pbits)

    @classmethod
    def from_fields(cls, sign_bit, biased_exponent, trailing_significand, ctx=None):
        """Decode structural fields, the inverse of the field properties."""
        if ctx is None:
            ctx = cls._ctx
        pbits = ctx.p - 1
        if not (0 <= biased_exponent <= utils.bitmask(ctx.es)) or not (0 <= trailing_significand <= utils.bitmask(pbits)):
            raise utils.PrecisionError('fields ({}, {}, {}) do not fit in {}'
                                       .format(sign_bit, biased_exponent, trailing_significand, repr(ctx)))

        negative = sign_bit != 0
        if biased_exponent == utils.bitmask(ctx.es):
            if trailing_significand == 0:
                return cls(negative=negative, isinf=True, ctx=ctx)
            else:
                return cls(isnan=True, ctx=ctx)
        elif biased_exponent == 0:
            # subnormal
            return cls(negative=negative, c=trailing_significand, exp=ctx.expmin, ctx=ctx)
        else:
            c = trailing_significand | (1 << pbits)
            return cls(negative=negative, c=c, exp=biased_exponent - ctx.bias - pbits, ctx=ctx)

    # numpy interop, for the formats numpy supports

    def to_numpy(self):
        # every supported format is exactly representable as a Python float
        return self.ctx.np_type(float(self))

    @classmethod
    def from_numpy(cls, x, ctx=None):
        if ctx is None:
            for (es, nbits), np_type in np_types.items():
                if isinstance(x, np_type):
                    ctx = ieee_ctx(es, nbits)
                    break
            else:
                raise TypeError('unsupported numpy value {}'.format(repr(x)))
        return ctx.round(float(x)).value
