import logging

from .exact import utils, ops, digital, rounding, exactmath, gmpmath
from .arithmetic import mpnum, evalctx, ieee754, fixed, mpf

logging.getLogger(__name__).addHandler(logging.NullHandler())

RM = ops.RM
OF = ops.OF
NS = ops.NS

Digital = digital.Digital
zero = digital.zero
infinity = digital.infinity
nan = digital.nan
finite = digital.finite

ConfigurationError = utils.ConfigurationError

RoundingContext = evalctx.RoundingContext
Status = mpnum.Status
Result = mpnum.Result

Float = ieee754.Float
IEEECtx = ieee754.IEEECtx
ieee_ctx = ieee754.ieee_ctx
Fixed = fixed.Fixed
FixedCtx = fixed.FixedCtx
fixed_ctx = fixed.fixed_ctx
MPF = mpf.MPF
MPFCtx = mpf.MPFCtx
mpf_ctx = mpf.mpf_ctx

add = mpnum.add
sub = mpnum.sub
mul = mpnum.mul
div = mpnum.div
fma = mpnum.fma
sqrt = mpnum.sqrt
neg = mpnum.neg
fabs = mpnum.fabs
copysign = mpnum.copysign
fmin = mpnum.fmin
fmax = mpnum.fmax
compare = mpnum.compare
isunordered = mpnum.isunordered
