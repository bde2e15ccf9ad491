from fractions import Fraction

import pytest

from exactfp.exact import utils
from exactfp.exact.digital import Digital, nan, infinity
from exactfp.exact.ops import RM, OF, NS
from exactfp.arithmetic import mpnum
from exactfp.arithmetic.fixed import Fixed, FixedCtx, fixed_ctx
from exactfp.arithmetic.mpnum import Status


int8 = fixed_ctx(0, 8)
uint8 = fixed_ctx(0, 8, signed=False)
int8_sat = FixedCtx(scale=0, nbits=8, of=OF.SATURATE)


class TestRange:

    def test_signed_bounds(self):
        assert int8.maxval.m == 127 and int8.minval.m == -128
        assert uint8.maxval.m == 255 and uint8.minval.m == 0

    def test_in_range_is_exact(self):
        for i in range(-128, 128):
            value, status = int8.round(i)
            assert value.integer == i
            assert status == Status()

    def test_saturation(self):
        value, status = mpnum.add(100, 100, int8_sat)
        assert value.integer == 127
        assert status == Status(exact=False, overflowed=True)
        value, status = mpnum.sub(-100, 100, int8_sat)
        assert value.integer == -128
        assert status.overflowed

    def test_wrap(self):
        value, status = mpnum.add(int8.maxval, int8.quantum, int8)
        assert value == int8.minval
        assert status == Status(exact=False, overflowed=True)
        value, status = mpnum.mul(10, 13, int8)
        assert value.integer == 130 - 256
        value, status = mpnum.add(255, 1, uint8)
        assert value.integer == 0 and status.overflowed
        value, status = mpnum.sub(0, 1, uint8)
        assert value.integer == 255 and status.overflowed

    def test_unsigned_saturates_at_zero(self):
        ctx = FixedCtx(scale=0, nbits=8, signed=False, of=OF.SATURATE)
        value, status = mpnum.sub(3, 5, ctx)
        assert value.is_zero() and not value.negative
        assert status.overflowed

    def test_small_negative_values_round_into_unsigned_range(self):
        ctx = FixedCtx(scale=0, nbits=8, signed=False, of=OF.SATURATE)
        value, status = ctx.round(-0.25)
        assert value.is_zero()
        assert status == Status(exact=False)


class TestRounding:

    def test_default_truncates(self):
        ctx = fixed_ctx(-2, 8)
        assert ctx.rm is RM.RTZ
        assert float(ctx.round(0.375).value) == 0.25
        assert float(ctx.round(-0.375).value) == -0.25

    @pytest.mark.parametrize('rm, expected', [
        (RM.RNE, 0.5),
        (RM.RNA, 0.5),
        (RM.RTZ, 0.25),
        (RM.RAZ, 0.5),
        (RM.RTP, 0.5),
        (RM.RTN, 0.25),
    ])
    def test_modes(self, rm, expected):
        # 0.375 is one and a half quanta
        value, status = fixed_ctx(-2, 8, rm=rm).round(0.375)
        assert float(value) == expected
        assert status == Status(exact=False)

    def test_ties_to_even_quanta(self):
        ctx = fixed_ctx(-2, 8, rm=RM.RNE)
        assert float(ctx.round(0.625).value) == 0.5
        assert float(ctx.round(0.875).value) == 1.0
        assert float(ctx.round(-0.125).value) == 0.0

    def test_no_negative_zero(self):
        value, status = fixed_ctx(-2, 8).round(-0.0)
        assert value.is_zero() and not value.negative
        assert status == Status()
        value, status = fixed_ctx(-2, 8).round(-0.125)
        assert value.is_zero() and not value.negative
        assert status == Status(exact=False)

    def test_never_underflows(self):
        value, status = fixed_ctx(0, 8).round(Digital(c=1, exp=-1000))
        assert value.is_zero()
        assert status == Status(exact=False)

    @pytest.mark.parametrize('signed', [True, False])
    @pytest.mark.parametrize('of', [OF.SATURATE, OF.WRAP])
    @pytest.mark.parametrize('rm', list(RM))
    def test_exhaustive(self, check_rounding, rm, of, signed):
        ctx = FixedCtx(scale=-1, nbits=4, signed=signed, rm=rm, of=of)
        for k in range(-200, 201):
            x = Digital(m=k, exp=-4)
            check_rounding(ctx, Fraction(k, 16), ctx.round(x), context=repr(ctx))

    def test_round_trip(self, enumerate_finite):
        for ctx in (fixed_ctx(-3, 6), fixed_ctx(2, 5, signed=False)):
            for x in enumerate_finite(ctx):
                value, status = ctx.round(x)
                assert value.to_exact().is_identical_to(x)
                assert status == Status()


class TestSpecialValues:

    @pytest.mark.parametrize('sentinel, expected', [
        (NS.MINVAL, -128),
        (NS.MAXVAL, 127),
        (NS.ZERO, 0),
    ])
    def test_nan_sentinel(self, sentinel, expected):
        ctx = FixedCtx(scale=0, nbits=8, nan_sentinel=sentinel)
        value, status = ctx.round(nan())
        assert value.integer == expected
        assert status == Status(exact=False, invalid=True)

    def test_invalid_operation(self):
        value, status = mpnum.div(0, 0, int8)
        assert value == int8.minval
        assert status == Status(exact=False, invalid=True)
        value, status = mpnum.sqrt(-4, int8)
        assert value == int8.minval
        assert status.invalid

    def test_infinity(self):
        value, status = int8.round(infinity())
        assert value == int8.maxval
        assert status == Status(exact=False, overflowed=True, invalid=True)
        value, status = int8.round(infinity(negative=True))
        assert value == int8.minval

    def test_division_by_zero(self):
        value, status = mpnum.div(5, 0, int8)
        assert value == int8.maxval
        assert status == Status(exact=False, overflowed=True, invalid=True, divzero=True)
        value, status = mpnum.div(-5, 0, uint8)
        assert value.is_zero()
        assert status.divzero


class TestArithmetic:

    def test_division(self):
        ctx = FixedCtx(scale=-8, nbits=16)
        value, status = mpnum.div(1, 3, ctx)
        assert value.integer == 85
        assert status == Status(exact=False)
        value, status = mpnum.div(-1, 3, ctx.let(props={'round': 'rne'}))
        assert value.integer == -85

    def test_division_of_large_integers(self):
        ctx = fixed_ctx(0, 64)
        value, status = mpnum.div((1 << 62) + 1, 3, ctx)
        assert value.integer == ((1 << 62) + 1) // 3
        assert status.inexact

    def test_sqrt(self):
        ctx = FixedCtx(scale=-8, nbits=16)
        value, status = mpnum.sqrt(2, ctx)
        assert value.integer == 362
        assert status == Status(exact=False)
        value, status = mpnum.sqrt(2.25, ctx)
        assert float(value) == 1.5
        assert status == Status()

    def test_mixed_scales(self):
        coarse = fixed_ctx(2, 8)
        fine = fixed_ctx(-4, 16)
        x = Fixed.from_integer(3, coarse)
        y = Fixed.from_integer(-5, fine)
        value, status = mpnum.add(x, y, fine)
        assert float(value) == 12 - 5 / 16
        assert status == Status()
        # truncated to a multiple of 4
        value, status = x.add(y)
        assert value.ctx is coarse
        assert value.integer == 2
        assert status == Status(exact=False)

    def test_fma(self):
        ctx = fixed_ctx(-2, 8, rm=RM.RNE)
        value, status = mpnum.fma(0.75, 0.75, -0.5, ctx)
        assert float(value) == 0.0
        assert status == Status(exact=False)


class TestFields:

    def test_integer_and_field(self):
        for bits in range(256):
            value = Fixed.from_field(bits, int8)
            i = bits - 256 if bits >= 128 else bits
            assert value.integer == i
            assert value.field == bits
            assert Fixed.from_integer(i, int8).is_identical_to(value)

    def test_unsigned_fields(self):
        assert Fixed.from_field(0xff, uint8).integer == 255
        assert Fixed.from_integer(200, uint8).field == 200

    def test_scaled(self):
        ctx = FixedCtx(scale=-4, nbits=16)
        value = ctx.round(1.5).value
        assert value.integer == 24
        assert Fixed.from_integer(-24, ctx) == Digital(m=-3, exp=-1)

    def test_out_of_range(self):
        with pytest.raises(utils.PrecisionError):
            Fixed.from_integer(128, int8)
        with pytest.raises(utils.PrecisionError):
            Fixed.from_integer(-1, uint8)
        with pytest.raises(utils.PrecisionError):
            Fixed.from_field(256, int8)
        with pytest.raises(utils.PrecisionError):
            Fixed(m=1, exp=-1, ctx=int8).integer
        with pytest.raises(utils.PrecisionError):
            Fixed(m=300, exp=0, ctx=int8).field


class TestExtremeExponents:

    huge = 1 << 40

    def test_round_far_below(self):
        x = Digital(c=1, exp=-self.huge)
        value, status = fixed_ctx(0, 8).round(x)
        assert value.is_zero()
        assert status == Status(exact=False)
        value, status = FixedCtx(scale=0, nbits=8, rm=RM.RAZ, of=OF.SATURATE).round(x)
        assert value.integer == 1
        assert status == Status(exact=False)

    def test_round_far_above(self):
        value, status = int8_sat.round(Digital(c=1, exp=self.huge))
        assert value == int8.maxval
        assert status == Status(exact=False, overflowed=True)
        value, status = int8_sat.round(Digital(m=-3, exp=self.huge))
        assert value == int8.minval
        # a multiple of 256 wraps to zero
        value, status = int8.round(Digital(c=5, exp=self.huge))
        assert value.is_zero()
        assert status == Status(exact=False, overflowed=True)

    def test_add_far_above(self):
        big = Digital(c=1, exp=self.huge)
        value, status = mpnum.add(big, 1, int8_sat)
        assert value == int8.maxval
        assert status == Status(exact=False, overflowed=True)
        value, status = mpnum.add(-1, Digital(m=-1, exp=self.huge), int8_sat)
        assert value == int8.minval
        # the multiple of 256 drops out of the wrapped sum
        value, status = mpnum.add(big, 3, int8)
        assert value.integer == 3
        assert status == Status(exact=False, overflowed=True)
        # -5 * 2**huge + 1/2 truncates to -5 * 2**huge + 1
        value, status = mpnum.sub(Digital(m=-5, exp=self.huge), Digital(m=-1, exp=-1), int8)
        assert value.integer == 1
        assert status == Status(exact=False, overflowed=True)
        value, status = mpnum.fma(big, 2, 1, int8_sat)
        assert value == int8.maxval and status.overflowed

    def test_divide_far_apart(self):
        big = Digital(c=1, exp=self.huge)
        value, status = mpnum.div(big, 3, int8_sat)
        assert value == int8.maxval
        assert status == Status(exact=False, overflowed=True)
        # 2**huge == 256 (mod 768), so floor(2**huge / 3) == 85 (mod 256)
        value, status = mpnum.div(big, 3, int8)
        assert value.integer == 85
        assert status == Status(exact=False, overflowed=True)
        value, status = mpnum.div(1, big, fixed_ctx(0, 8, rm=RM.RAZ))
        assert value.integer == 1
        assert status == Status(exact=False)
        value, status = mpnum.div(-1, big, int8)
        assert value.is_zero()
        assert status == Status(exact=False)

    def test_sqrt_far_apart(self):
        value, status = mpnum.sqrt(Digital(c=1, exp=-self.huge), fixed_ctx(0, 8, rm=RM.RAZ))
        assert value.integer == 1
        assert status == Status(exact=False)
        value, status = mpnum.sqrt(Digital(c=1, exp=self.huge), int8_sat)
        assert value == int8.maxval
        assert status == Status(exact=False, overflowed=True)
        # an exact root that is a multiple of 256
        value, status = mpnum.sqrt(Digital(c=9, exp=self.huge), int8)
        assert value.is_zero()
        assert status == Status(exact=False, overflowed=True)
        value, status = mpnum.sqrt(Digital(c=2, exp=self.huge), int8)
        assert status.overflowed and status.inexact
