"""General utilities, such as exception classes."""

# exactfp-specific exceptions

class ExactError(Exception):
    """Base exactfp error."""

class ConfigurationError(ExactError, ValueError):
    """Inconsistent rounding context parameters, rejected at construction."""

class RoundingError(ExactError):
    """Rounding error, such as attempting to round NaN."""

class PrecisionError(RoundingError):
    """A value cannot be encoded exactly with the available precision."""


# some common data structures

class ImmutableDict(dict):
    def __delitem__(self, key):
        raise ValueError('ImmutableDict cannot be modified: attempt to delete {}'
                         .format(repr(key)))

    def __setitem__(self, key, value):
        raise ValueError('ImmutableDict cannot be modified: attempt to assign [{}] = {}'
                         .format(repr(key), repr(value)))

    def clear(self):
        raise ValueError('ImmutableDict cannot be modified: attempt to clear')

    def pop(self, key, *args):
        raise ValueError('ImmutableDict cannot be modified: attempt to pop {}'
                         .format(repr(key)))

    def popitem(self):
        raise ValueError('ImmutableDict cannot be modified: attempt to popitem')

    def setdefault(self, key, default=None):
        raise ValueError('ImmutableDict cannot be modified: attempt to setdefault {}, default={}'
                         .format(repr(key), repr(default)))

    def update(self, *args, **kwargs):
        raise ValueError('ImmutableDict cannot be modified: attempt to update')


# Useful things

def bitmask(n: int) -> int:
    """Produces a bitmask of n 1s if n is positive, or n 0s if n is negative."""
    if n >= 0:
        return (1 << n) - 1
    else:
        return -1 << -n

def maskbits(x: int, n: int) -> int:
    """Mask x & bitmask(n)"""
    if n >= 0:
        return x & ((1 << n) - 1)
    else:
        return x & (-1 << -n)

def is_even_for_rounding(c, exp, p=None):
    """General-purpose tiebreak used when rounding to even.
    With a single bit of floating-point precision, every nonzero significand
    is 1 and the two candidates differ only in their exponents,
    so decide evenness based on the representation of the exponent.
    """
    if p == 1 and c == 1:
        return exp & 1 == 0
    else:
        return c & 1 == 0

def lookup_synonym(table, name, what):
    """Resolve a user-facing option name (or enum member) through a synonym table.
    Names are compared case-insensitively with underscores, dashes and spaces removed,
    so 'nearest_even', 'NearestEven' and 'nearest-even' are all the same option.
    """
    for option in table.values():
        if name is option:
            return option
    key = str(name).lower().replace('_', '').replace('-', '').replace(' ', '')
    try:
        return table[key]
    except KeyError:
        raise ConfigurationError('unsupported {} {}'.format(what, repr(name))) from None
