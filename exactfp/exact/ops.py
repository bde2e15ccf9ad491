"""Standard operation codes and rounding options, shared by every format."""

from enum import IntEnum, unique

class RM(IntEnum):
    ROUND_NEAREST_EVEN = 0
    RNE = 0
    ROUND_NEAREST_AWAY = 1
    RNA = 1
    ROUND_UP = 2
    RTP = 2
    ROUND_DOWN = 3
    RTN = 3
    ROUND_TO_ZERO = 4
    RTZ = 4
    ROUND_AWAY_ZERO = 5
    RAZ = 5
    ROUND_TO_EVEN = 6
    RTE = 6
    ROUND_TO_ODD = 7
    RTO = 7

class OF(IntEnum):
    INFINITY = 1
    INF = 1
    SATURATE = 2
    CLAMP = 2
    WRAP = 3

@unique
class NS(IntEnum):
    """Value produced in place of NaN by formats that cannot represent it."""
    ZERO = 0
    MAXVAL = 1
    MINVAL = 2

@unique
class OP(IntEnum):
    add = 0
    sub = 1
    mul = 2
    div = 3
    neg = 4
    sqrt = 5
    fma = 6
    copysign = 7
    fabs = 8
    fmax = 9
    fmin = 10
