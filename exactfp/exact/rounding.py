"""Rounding decisions, independent of any number format.

Rounding is broken into three phases (see Digital.round_new):
  - split the significand at the target digit, producing the kept bits
    and a classification of the discarded bits
  - decide which direction to round, which depends only on the discarded
    bits, the sign, and the parity of the kept bits
  - apply the direction to the kept bits
Only the middle phase depends on the rounding mode, and it lives here as a
table of pure functions.
"""

from enum import IntEnum, unique

from .ops import RM


@unique
class Discard(IntEnum):
    """Classification of the bits thrown away by rounding,
    relative to half a unit in the last kept place.
    """
    EXACT = 0
    BELOW_HALF = 1
    HALF = 2
    ABOVE_HALF = 3

    @classmethod
    def from_bits(cls, half_bit, sticky_bit):
        if half_bit:
            if sticky_bit:
                return cls.ABOVE_HALF
            else:
                return cls.HALF
        elif sticky_bit:
            return cls.BELOW_HALF
        else:
            return cls.EXACT

@unique
class RoundingDirection(IntEnum):
    TRUNCATE = 0
    ROUND_AWAY = 1


def nearest_even(discard, negative, odd):
    if discard is Discard.ABOVE_HALF or (discard is Discard.HALF and odd):
        return RoundingDirection.ROUND_AWAY
    else:
        return RoundingDirection.TRUNCATE

def nearest_away(discard, negative, odd):
    if discard is Discard.ABOVE_HALF or discard is Discard.HALF:
        return RoundingDirection.ROUND_AWAY
    else:
        return RoundingDirection.TRUNCATE

def toward_zero(discard, negative, odd):
    return RoundingDirection.TRUNCATE

def away_zero(discard, negative, odd):
    if discard is Discard.EXACT:
        return RoundingDirection.TRUNCATE
    else:
        return RoundingDirection.ROUND_AWAY

def toward_positive(discard, negative, odd):
    # rounding up is away from zero only for positive values
    if negative:
        return RoundingDirection.TRUNCATE
    else:
        return away_zero(discard, negative, odd)

def toward_negative(discard, negative, odd):
    if negative:
        return away_zero(discard, negative, odd)
    else:
        return RoundingDirection.TRUNCATE


# Not nearest: any inexact value goes to the neighbor with the wanted parity.
# Rounding to odd keeps enough information for a second, narrower rounding
# to be correct.

def to_even(discard, negative, odd):
    if discard is Discard.EXACT or not odd:
        return RoundingDirection.TRUNCATE
    else:
        return RoundingDirection.ROUND_AWAY

def to_odd(discard, negative, odd):
    if discard is Discard.EXACT or odd:
        return RoundingDirection.TRUNCATE
    else:
        return RoundingDirection.ROUND_AWAY


policies = {
    RM.RNE: nearest_even,
    RM.RNA: nearest_away,
    RM.RTZ: toward_zero,
    RM.RTP: toward_positive,
    RM.RTN: toward_negative,
    RM.RAZ: away_zero,
    RM.RTE: to_even,
    RM.RTO: to_odd,
}

def round_direction(rm, discard, negative, odd):
    """Which way to round a value with the given sign, kept parity and
    discarded bits, under rounding mode rm.
    """
    try:
        policy = policies[rm]
    except KeyError:
        raise ValueError('invalid rounding mode: {}'.format(repr(rm))) from None
    return policy(discard, negative, odd)

def overflows_to_infinity(rm, negative):
    """IEEE 754 section 7.4: a value too large to represent rounds to infinity
    if the rounding mode would carry it away from zero, and to the largest
    finite value otherwise. The largest finite value has an odd significand.
    """
    return round_direction(rm, Discard.ABOVE_HALF, negative, True) is RoundingDirection.ROUND_AWAY
