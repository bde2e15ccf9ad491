"""Floating-point arithmetic with a fixed precision and no bound on the exponent.
"""

from ..exact import utils
from ..exact import digital
from ..exact import gmpmath
from ..exact.ops import RM
from ..exact.rounding import Discard
from . import evalctx
from . import mpnum


class MPFCtx(evalctx.RoundingContext):
    """Context for floating-point numbers with p bits of precision.
    Nothing overflows or underflows, and there are no subnormals.
    """

    p = 53

    _recognized_props = frozenset(('round', 'precision'))

    def __init__(self, p=None, rm=None, props=None):
        props = dict(props or {})
        fields = self._read_props(props)

        # arguments are allowed to override properties
        arguments = {'p': p, 'rm': rm}
        fields.update((k, v) for k, v in arguments.items() if v is not None)

        self._configure(props, **fields)

    def _read_props(self, props):
        fields = super()._read_props(props)
        if 'precision' in props:
            try:
                fields['p'] = int(props['precision'])
            except (TypeError, ValueError):
                raise utils.ConfigurationError('unsupported precision {}'
                                               .format(repr(props['precision']))) from None
        return fields

    def _configure(self, props, p=None, rm=None):
        p = self.p if p is None else p
        rm = utils.lookup_synonym(evalctx.rounding_modes, self.rm if rm is None else rm, 'rounding mode')
        if not isinstance(p, int) or p < 1:
            raise utils.ConfigurationError('precision must be a positive integer, got {}'.format(repr(p)))

        evalctx.EvalCtx._configure(self, props)
        self._set_fields(
            p=p, rm=rm,
            expmin=None, expmax=None, emin=None, emax=None,
            maxval=None, minval=None, quantum=None,
            subnormals=False, single_scale=False,
            max_p=p, min_n=None,
            has_infinity=True, has_nan=True, has_signed_zero=True,
        )

    def _key(self):
        return (type(self), self.p, self.rm)

    def __repr__(self):
        return '{}(p={}, rm=RM.{})'.format(type(self).__name__, repr(self.p), self.rm.name)

    @property
    def dtype(self):
        return MPF

    def is_subnormal(self, x):
        return False

    def round(self, x):
        x = gmpmath.to_digital(x)

        if x.isnan:
            return self._result(digital.nan(), invalid=True)
        elif x.isinf:
            return self._result(digital.infinity(negative=x.negative))
        elif x.is_zero():
            return self._result(digital.zero(negative=x.negative))

        rounded, discard = x.round_new(max_p=self.p, rm=self.rm)
        return self._result(rounded, exact=(discard is Discard.EXACT), carry=(rounded.e > x.e))


used_ctxs = {}
def mpf_ctx(p, rm=RM.RNE):
    try:
        return used_ctxs[(p, rm)]
    except KeyError:
        ctx = MPFCtx(p=p, rm=rm)
        used_ctxs[(p, rm)] = ctx
        return ctx


class MPF(mpnum.MPNum):

    _ctx : MPFCtx = mpf_ctx(53)
