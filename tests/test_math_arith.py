import math

import pytest

from airvm.math_arith import ArithOp, apply_arith
from airvm.registers import InvalidInstructionError, RegisterFile, ValueKind


def _run(op, kind, a, b):
    regs = RegisterFile(8)
    regs.write(2, kind, a)
    regs.write(4, kind, b)
    apply_arith(regs, op, 0, 2, 4)
    return regs.read(0, kind)


def test_add_i32_simple():
    assert _run(ArithOp.ADD_I32, ValueKind.I32, 40, 2) == 42


def test_add_i32_wraps_to_minimum():
    assert _run(ArithOp.ADD_I32, ValueKind.I32, 2**31 - 1, 1) == -(2**31)


def test_sub_u32_underflow_is_all_ones():
    regs = RegisterFile(4)
    regs.write(1, ValueKind.U32, 0)
    regs.write(2, ValueKind.U32, 1)
    apply_arith(regs, ArithOp.SUB_U32, 0, 1, 2)
    assert regs.read(0, ValueKind.I32) == -1
    assert regs.read(0, ValueKind.U32) == 2**32 - 1


@pytest.mark.parametrize(
    "add, sub, kind",
    [
        (ArithOp.ADD_I32, ArithOp.SUB_I32, ValueKind.I32),
        (ArithOp.ADD_U32, ArithOp.SUB_U32, ValueKind.U32),
        (ArithOp.ADD_I64, ArithOp.SUB_I64, ValueKind.I64),
        (ArithOp.ADD_U64, ArithOp.SUB_U64, ValueKind.U64),
    ],
)
@pytest.mark.parametrize("a, b", [(5, 9), (-3, 1000), (2**31 - 1, 2**31 - 1)])
def test_add_then_sub_round_trips(add, sub, kind, a, b):
    regs = RegisterFile(8)
    regs.write(2, kind, a)
    regs.write(4, kind, b)
    original = regs.read(2, kind)
    apply_arith(regs, add, 6, 2, 4)
    apply_arith(regs, sub, 0, 6, 4)
    assert regs.read(0, kind) == original


@pytest.mark.parametrize(
    "div, mod, kind",
    [
        (ArithOp.DIV_I32, ArithOp.MOD_I32, ValueKind.I32),
        (ArithOp.DIV_I64, ArithOp.MOD_I64, ValueKind.I64),
    ],
)
@pytest.mark.parametrize("a, b", [(7, 2), (-7, 2), (7, -2), (-7, -2), (100, 7), (-1, 5)])
def test_signed_division_identity(div, mod, kind, a, b):
    q = _run(div, kind, a, b)
    r = _run(mod, kind, a, b)
    assert q * b + r == a
    assert abs(r) < abs(b)
    assert r == 0 or (r < 0) == (a < 0)


def test_div_i32_truncates_toward_zero():
    assert _run(ArithOp.DIV_I32, ValueKind.I32, -7, 2) == -3


@pytest.mark.parametrize(
    "div, mod, kind",
    [
        (ArithOp.DIV_U32, ArithOp.MOD_U32, ValueKind.U32),
        (ArithOp.DIV_U64, ArithOp.MOD_U64, ValueKind.U64),
    ],
)
@pytest.mark.parametrize("a, b", [(7, 2), (2**31 + 5, 3), (9, 10)])
def test_unsigned_division_identity(div, mod, kind, a, b):
    q = _run(div, kind, a, b)
    r = _run(mod, kind, a, b)
    assert q * b + r == a
    assert 0 <= r < b


def test_div_u32_treats_high_bit_as_positive():
    regs = RegisterFile(4)
    regs.write(1, ValueKind.I32, -2)
    regs.write(2, ValueKind.U32, 2)
    apply_arith(regs, ArithOp.DIV_U32, 0, 1, 2)
    assert regs.read(0, ValueKind.U32) == (2**32 - 2) // 2


@pytest.mark.parametrize(
    "op, kind",
    [
        (ArithOp.DIV_I32, ValueKind.I32),
        (ArithOp.MOD_U32, ValueKind.U32),
        (ArithOp.DIV_I64, ValueKind.I64),
        (ArithOp.MOD_U64, ValueKind.U64),
    ],
)
def test_integer_division_by_zero_raises(op, kind):
    with pytest.raises(ZeroDivisionError):
        _run(op, kind, 5, 0)


def test_i64_add_wraps():
    assert _run(ArithOp.ADD_I64, ValueKind.I64, 2**63 - 1, 1) == -(2**63)


def test_mul_u64_keeps_low_bits():
    assert _run(ArithOp.MUL_U64, ValueKind.U64, 2**63, 2) == 0


def test_i64_uses_two_slots():
    regs = RegisterFile(8)
    regs.write(2, ValueKind.I64, 2**40)
    regs.write(4, ValueKind.I64, 2**40)
    apply_arith(regs, ArithOp.ADD_I64, 0, 2, 4)
    assert regs.read(0, ValueKind.I64) == 2**41


@pytest.mark.parametrize("kind_ops", [
    (ValueKind.F32, ArithOp.ADD_F32, ArithOp.SUB_F32, ArithOp.MUL_F32, ArithOp.DIV_F32),
    (ValueKind.F64, ArithOp.ADD_F64, ArithOp.SUB_F64, ArithOp.MUL_F64, ArithOp.DIV_F64),
])
def test_float_exact_operations(kind_ops):
    kind, add, sub, mul, div = kind_ops
    assert _run(add, kind, 0.5, 0.25) == 0.5 + 0.25
    assert _run(sub, kind, 0.5, 0.25) == 0.5 - 0.25
    assert _run(mul, kind, 0.5, 0.25) == 0.5 * 0.25
    assert _run(div, kind, 0.5, 0.25) == 0.5 / 0.25


@pytest.mark.parametrize("op, kind", [
    (ArithOp.DIV_F32, ValueKind.F32),
    (ArithOp.DIV_F64, ValueKind.F64),
])
def test_float_division_by_zero_follows_ieee(op, kind):
    positive = _run(op, kind, 1.5, 0.0)
    negative = _run(op, kind, -1.5, 0.0)
    assert math.isinf(positive) and positive > 0
    assert math.isinf(negative) and negative < 0
    assert math.isnan(_run(op, kind, 0.0, 0.0))


@pytest.mark.parametrize("op, kind", [
    (ArithOp.MOD_F32, ValueKind.F32),
    (ArithOp.MOD_F64, ValueKind.F64),
])
def test_float_mod_matches_fmod(op, kind):
    assert _run(op, kind, -5.5, 2.0) == math.fmod(-5.5, 2.0)
    assert math.isnan(_run(op, kind, 1.0, 0.0))
    assert math.isnan(_run(op, kind, math.inf, 2.0))


def test_f32_overflow_becomes_infinity():
    assert _run(ArithOp.MUL_F32, ValueKind.F32, 3.0e38, 10.0) == math.inf
    assert _run(ArithOp.MUL_F32, ValueKind.F32, -3.0e38, 10.0) == -math.inf


@pytest.mark.parametrize("mx, mn, kind, a, b", [
    (ArithOp.MAX_I32, ArithOp.MIN_I32, ValueKind.I32, -5, 3),
    (ArithOp.MAX_U32, ArithOp.MIN_U32, ValueKind.U32, 2**32 - 1, 3),
    (ArithOp.MAX_I64, ArithOp.MIN_I64, ValueKind.I64, -(2**40), 2**40),
    (ArithOp.MAX_U64, ArithOp.MIN_U64, ValueKind.U64, 2**63, 1),
    (ArithOp.MAX_F32, ArithOp.MIN_F32, ValueKind.F32, -0.5, 2.25),
    (ArithOp.MAX_F64, ArithOp.MIN_F64, ValueKind.F64, 1.125, -7.75),
])
def test_max_min(mx, mn, kind, a, b):
    high = _run(mx, kind, a, b)
    low = _run(mn, kind, a, b)
    assert {high, low} == {a, b}
    assert high >= low


def test_max_i32_is_signed_max_u32_unsigned():
    regs = RegisterFile(4)
    regs.write(1, ValueKind.I32, -1)
    regs.write(2, ValueKind.I32, 1)
    apply_arith(regs, ArithOp.MAX_I32, 0, 1, 2)
    assert regs.read(0, ValueKind.I32) == 1
    apply_arith(regs, ArithOp.MAX_U32, 3, 1, 2)
    assert regs.read(3, ValueKind.I32) == -1


def test_nan_max_picks_second_operand():
    assert _run(ArithOp.MAX_F64, ValueKind.F64, math.nan, 2.5) == 2.5
    assert math.isnan(_run(ArithOp.MIN_F64, ValueKind.F64, 2.5, math.nan))


def test_accepts_integer_sub_op():
    assert _run(ArithOp.ADD_I32.value, ValueKind.I32, 20, 22) == 42


def test_unknown_sub_op_raises():
    regs = RegisterFile(4)
    with pytest.raises(InvalidInstructionError):
        apply_arith(regs, 255, 0, 1, 2)


def test_register_out_of_range_raises():
    regs = RegisterFile(4)
    with pytest.raises(IndexError):
        apply_arith(regs, ArithOp.ADD_I64, 3, 0, 1)


def test_destination_may_alias_source():
    regs = RegisterFile(4)
    regs.write(1, ValueKind.I32, 21)
    apply_arith(regs, ArithOp.ADD_I32, 1, 1, 1)
    assert regs.read(1, ValueKind.I32) == 21 + 21


def test_op_kind_and_verb():
    op = ArithOp.MOD_U64
    assert op.kind is ValueKind.U64
    assert ArithOp.MIN_F32.verb == "min"
    assert _run(op, op.kind, 2**40 + 7, 10) == 3
    assert _run(ArithOp.MIN_F32, ArithOp.MIN_F32.kind, 1.5, -0.25) == -0.25