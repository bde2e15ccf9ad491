"""Emulated fixed-point arithmetic, including bounded integers.
"""

from ..exact import utils
from ..exact.ops import RM, OF, NS
from . import evalctx
from . import mpnum


# precision -> scale, nbits, signed
fixed_snbits = {}
fixed_snbits.update((k, (0, 8, True)) for k in evalctx.int8_synonyms)
fixed_snbits.update((k, (0, 16, True)) for k in evalctx.int16_synonyms)
fixed_snbits.update((k, (0, 32, True)) for k in evalctx.int32_synonyms)
fixed_snbits.update((k, (0, 64, True)) for k in evalctx.int64_synonyms)
fixed_snbits.update((k, (0, 8, False)) for k in evalctx.uint8_synonyms)
fixed_snbits.update((k, (0, 16, False)) for k in evalctx.uint16_synonyms)
fixed_snbits.update((k, (0, 32, False)) for k in evalctx.uint32_synonyms)
fixed_snbits.update((k, (0, 64, False)) for k in evalctx.uint64_synonyms)


class FixedCtx(evalctx.RoundingContext):
    """Context for fixed point arithmetic: nbits-bit integers scaled by 2**scale.
    NaN and infinity are not representable; NaN rounds to the configured sentinel
    and infinities saturate, both signaling invalid.
    """

    scale = 0
    nbits = 64
    rm = RM.RTZ
    of = OF.WRAP

    _recognized_props = evalctx.RoundingContext._recognized_props | {'precision'}

    def __init__(self, scale=None, nbits=None, signed=None, rm=None, of=None, nan_sentinel=None, props=None):
        props = dict(props or {})
        fields = self._read_props(props)

        arguments = {'scale': scale, 'nbits': nbits, 'signed': signed,
                     'rm': rm, 'of': of, 'nan_sentinel': nan_sentinel}
        fields.update((k, v) for k, v in arguments.items() if v is not None)

        self._configure(props, **fields)

    def _read_props(self, props):
        fields = super()._read_props(props)
        if 'precision' in props:
            prec = props['precision']
            precstr = str(prec).lower()
            if precstr in fixed_snbits:
                fields['scale'], fields['nbits'], fields['signed'] = fixed_snbits[precstr]
            else:
                # try to decipher a custom (scale, nbits) type
                try:
                    fields['scale'], fields['nbits'] = (int(x) for x in prec)
                except (TypeError, ValueError):
                    raise utils.ConfigurationError('unsupported fixed-point precision {}'
                                                   .format(repr(prec))) from None
        return fields

    def _configure(self, props, scale=None, nbits=None, **fields):
        scale = self.scale if scale is None else scale
        nbits = self.nbits if nbits is None else nbits

        self._set_fields(scale=scale, nbits=nbits)
        super()._configure(props, p=nbits, expmin=scale, expmax=scale, **fields)

    def _key(self):
        return (type(self), self.scale, self.nbits, self.signed, self.rm, self.of, self.nan_sentinel)

    def __repr__(self):
        args = ['scale=' + repr(self.scale), 'nbits=' + repr(self.nbits)]
        if not self.signed:
            args.append('signed=False')
        args += ['rm=RM.' + self.rm.name, 'of=OF.' + self.of.name]
        if self.nan_sentinel is not NS.MINVAL:
            args.append('nan_sentinel=NS.' + self.nan_sentinel.name)
        return '{}({})'.format(type(self).__name__, ', '.join(args))

    @property
    def dtype(self):
        return Fixed


used_ctxs = {}
def fixed_ctx(scale, nbits, signed=True, rm=RM.RTZ, of=OF.WRAP):
    try:
        return used_ctxs[(scale, nbits, signed, rm, of)]
    except KeyError:
        ctx = FixedCtx(scale=scale, nbits=nbits, signed=signed, rm=rm, of=of)
        used_ctxs[(scale, nbits, signed, rm, of)] = ctx
        return ctx


class Fixed(mpnum.MPNum):

    _ctx : FixedCtx = fixed_ctx(0, 64)

    # structural fields

    @property
    def integer(self):
        """The signed number of quanta, i.e. the value is exactly integer * 2**scale."""
        if self.is_nar():
            raise utils.PrecisionError('{} has no fixed-point representation'.format(str(self)))
        offset = self.exp - self.ctx.scale
        if offset >= 0:
            return self.m << offset
        elif utils.maskbits(self.c, -offset) == 0:
            return self.m >> -offset
        else:
            raise utils.PrecisionError('{} is not a multiple of 2**{}'.format(str(self), self.ctx.scale))

    @property
    def field(self):
        """The integer as an nbits-wide two's complement (or unsigned) bit pattern."""
        ctx = self.ctx
        i = self.integer
        if not (ctx.minval.m <= i <= ctx.maxval.m):
            raise utils.PrecisionError('{} does not fit in {} bits'.format(str(self), ctx.nbits))
        return i & utils.bitmask(ctx.nbits)

    @classmethod
    def from_integer(cls, i, ctx=None):
        """The value i * 2**scale, which must be in range."""
        if ctx is None:
            ctx = cls._ctx
        x = cls(m=i, exp=ctx.scale, ctx=ctx)
        if x > ctx.maxval or x < ctx.minval:
            raise utils.PrecisionError('{} is out of range for {}'.format(i, repr(ctx)))
        return x

    @classmethod
    def from_field(cls, bits, ctx=None):
        """Decode an nbits-wide bit pattern, the inverse of the field property."""
        if ctx is None:
            ctx = cls._ctx
        if not (0 <= bits <= utils.bitmask(ctx.nbits)):
            raise utils.PrecisionError('{} does not fit in {} bits'.format(bits, ctx.nbits))
        if ctx.signed and bits >> (ctx.nbits - 1):
            bits -= 1 << ctx.nbits
        return cls(m=bits, exp=ctx.scale, ctx=ctx)
