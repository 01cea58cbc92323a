"""Three-register arithmetic: add, sub, mul, div, mod, max and min per value type."""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Union

from airvm.registers import InvalidInstructionError, RegisterFile, ValueKind

Number = Union[int, float]
_Binary = Callable[[Number, Number], Number]


class ArithOp(Enum):
    """Arithmetic sub-operations of the three-register math instruction."""

    ADD_I32 = 0
    SUB_I32 = 1
    MUL_I32 = 2
    DIV_I32 = 3
    MOD_I32 = 4
    ADD_U32 = 5
    SUB_U32 = 6
    MUL_U32 = 7
    DIV_U32 = 8
    MOD_U32 = 9
    ADD_I64 = 10
    SUB_I64 = 11
    MUL_I64 = 12
    DIV_I64 = 13
    MOD_I64 = 14
    ADD_U64 = 15
    SUB_U64 = 16
    MUL_U64 = 17
    DIV_U64 = 18
    MOD_U64 = 19
    ADD_F32 = 20
    SUB_F32 = 21
    MUL_F32 = 22
    DIV_F32 = 23
    MOD_F32 = 24
    ADD_F64 = 25
    SUB_F64 = 26
    MUL_F64 = 27
    DIV_F64 = 28
    MOD_F64 = 29
    MAX_I32 = 92
    MAX_U32 = 93
    MAX_I64 = 94
    MAX_U64 = 95
    MAX_F32 = 96
    MAX_F64 = 97
    MIN_I32 = 98
    MIN_U32 = 99
    MIN_I64 = 100
    MIN_U64 = 101
    MIN_F32 = 102
    MIN_F64 = 103

    @property
    def kind(self) -> ValueKind:
        """The value type the operation reads and writes."""
        return ValueKind[self.name.rpartition("_")[2]]

    @property
    def verb(self) -> str:
        """The operation name without its type suffix, e.g. ``"add"``."""
        return self.name.rpartition("_")[0].lower()


def _int_div(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _int_mod(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("integer modulo by zero")
    return a - b * _int_div(a, b)


def _float_div(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _float_mod(a: float, b: float) -> float:
    if math.isnan(a) or math.isnan(b) or math.isinf(a) or b == 0.0:
        return math.nan
    return math.fmod(a, b)


def _max(a: Number, b: Number) -> Number:
    return a if a > b else b


def _min(a: Number, b: Number) -> Number:
    return a if a < b else b


_COMMON: dict[str, _Binary] = {
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "mul": lambda a, b: a * b,
    "max": _max,
    "min": _min,
}

_INTEGER: dict[str, _Binary] = {"div": _int_div, "mod": _int_mod}
_FLOAT: dict[str, _Binary] = {"div": _float_div, "mod": _float_mod}


def _operation(op: ArithOp) -> _Binary:
    if op.verb in _COMMON:
        return _COMMON[op.verb]
    return (_FLOAT if op.kind.is_float else _INTEGER)[op.verb]


def _resolve(op: Union[ArithOp, int]) -> ArithOp:
    if isinstance(op, ArithOp):
        return op
    try:
        return ArithOp(op)
    except ValueError:
        raise InvalidInstructionError(f"unknown ArithOp sub-operation {op!r}") from None


def apply_arith(
    regs: RegisterFile, op: Union[ArithOp, int], des: int, src: int, src2: int
) -> None:
    """Compute ``src op src2`` in the operation's type and store it in ``des``.

    Integer results wrap to the type's width; integer division truncates
    toward zero and raises ZeroDivisionError for a zero divisor.
    """
    arith = _resolve(op)
    kind = arith.kind
    result = _operation(arith)(regs.read(src, kind), regs.read(src2, kind))
    regs.write(des, kind, result)