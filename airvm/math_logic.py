"""Three-register logic: boolean and bitwise operations, shifts, rotates, comparisons."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Union

from airvm.registers import InvalidInstructionError, RegisterFile, ValueKind

_Handler = Callable[[RegisterFile, int, int, int], None]


class LogicOp(Enum):
    """Logic and comparison sub-operations of the three-register math instruction."""

    LAND_B32 = 30
    LAND_B64 = 31
    LOR_B32 = 32
    LOR_B64 = 33
    SHL_B32 = 34
    SHL_B64 = 35
    LSHR_B32 = 36
    LSHR_B64 = 37
    ASHR_B32 = 38
    ASHR_B64 = 39
    ROL_B32 = 40
    ROL_B64 = 41
    ROR_B32 = 42
    ROR_B64 = 43
    AND_B32 = 44
    AND_B64 = 45
    OR_B32 = 46
    OR_B64 = 47
    XOR_B32 = 48
    XOR_B64 = 49
    ANDN_B32 = 50
    ANDN_B64 = 51
    ORN_B32 = 52
    ORN_B64 = 53
    XORN_B32 = 54
    XORN_B64 = 55
    CMPLT_I32 = 56
    CMPLE_I32 = 57
    CMPEQ_I32 = 58
    CMPNE_I32 = 59
    CMPGT_I32 = 60
    CMPGE_I32 = 61
    CMPLT_U32 = 62
    CMPLE_U32 = 63
    CMPEQ_U32 = 64
    CMPNE_U32 = 65
    CMPGT_U32 = 66
    CMPGE_U32 = 67
    CMPLT_I64 = 68
    CMPLE_I64 = 69
    CMPEQ_I64 = 70
    CMPNE_I64 = 71
    CMPGT_I64 = 72
    CMPGE_I64 = 73
    CMPLT_U64 = 74
    CMPLE_U64 = 75
    CMPEQ_U64 = 76
    CMPNE_U64 = 77
    CMPGT_U64 = 78
    CMPGE_U64 = 79
    CMPLT_F32 = 80
    CMPLE_F32 = 81
    CMPEQ_F32 = 82
    CMPNE_F32 = 83
    CMPGT_F32 = 84
    CMPGE_F32 = 85
    CMPLT_F64 = 86
    CMPLE_F64 = 87
    CMPEQ_F64 = 88
    CMPNE_F64 = 89
    CMPGT_F64 = 90
    CMPGE_F64 = 91

    @property
    def verb(self) -> str:
        """The operation name without its type suffix, e.g. ``"xor"``."""
        return self.name.rpartition("_")[0].lower()

    @property
    def kind(self) -> ValueKind:
        """The value type the operands are read as."""
        suffix = self.name.rpartition("_")[2]
        if suffix == "B32":
            return ValueKind.I32 if self.verb == "ashr" else ValueKind.U32
        if suffix == "B64":
            return ValueKind.I64 if self.verb == "ashr" else ValueKind.U64
        return ValueKind[suffix]


_COMPARE = {
    "cmplt": lambda a, b: a < b,
    "cmple": lambda a, b: a <= b,
    "cmpeq": lambda a, b: a == b,
    "cmpne": lambda a, b: a != b,
    "cmpgt": lambda a, b: a > b,
    "cmpge": lambda a, b: a >= b,
}

_BITWISE = {
    "and": lambda a, b: a & b,
    "or": lambda a, b: a | b,
    "xor": lambda a, b: a ^ b,
    "andn": lambda a, b: ~(a & b),
    "orn": lambda a, b: ~(a | b),
    "xorn": lambda a, b: ~(a ^ b),
}


def _truth(kind: ValueKind, test: Callable[[object, object], bool]) -> _Handler:
    def handler(regs: RegisterFile, des: int, src: int, src2: int) -> None:
        result = test(regs.read(src, kind), regs.read(src2, kind))
        regs.write(des, ValueKind.U32, int(bool(result)))
    return handler


def _bitwise(kind: ValueKind, combine: Callable[[int, int], int]) -> _Handler:
    def handler(regs: RegisterFile, des: int, src: int, src2: int) -> None:
        regs.write(des, kind, combine(regs.read(src, kind), regs.read(src2, kind)))
    return handler


def _shift(kind: ValueKind, left: bool) -> _Handler:
    # Shift counts are reduced modulo the operand width.
    def handler(regs: RegisterFile, des: int, src: int, src2: int) -> None:
        value = regs.read(src, kind)
        count = regs.read(src2, kind) & (kind.bits - 1)
        regs.write(des, kind, value << count if left else value >> count)
    return handler


def _rotate(kind: ValueKind, left: bool) -> _Handler:
    bits = kind.bits

    def handler(regs: RegisterFile, des: int, src: int, src2: int) -> None:
        value = regs.read(src, kind)
        count = regs.read(src2, ValueKind.U32) & (bits - 1)
        if not left:
            count = (bits - count) % bits
        regs.write(des, kind, (value << count) | (value >> (bits - count)))
    return handler


def _build_table() -> dict[LogicOp, _Handler]:
    table: dict[LogicOp, _Handler] = {}
    for op in LogicOp:
        verb, kind = op.verb, op.kind
        if verb == "land":
            table[op] = _truth(kind, lambda a, b: bool(a) and bool(b))
        elif verb == "lor":
            table[op] = _truth(kind, lambda a, b: bool(a) or bool(b))
        elif verb in _COMPARE:
            table[op] = _truth(kind, _COMPARE[verb])
        elif verb in _BITWISE:
            table[op] = _bitwise(kind, _BITWISE[verb])
        elif verb in ("shl", "lshr", "ashr"):
            table[op] = _shift(kind, verb == "shl")
        else:
            table[op] = _rotate(kind, verb == "rol")
    return table


_LOGIC = _build_table()


def _resolve(op: Union[LogicOp, int]) -> LogicOp:
    if isinstance(op, LogicOp):
        return op
    try:
        return LogicOp(op)
    except ValueError:
        raise InvalidInstructionError(f"unknown LogicOp sub-operation {op!r}") from None


def apply_logic(
    regs: RegisterFile, op: Union[LogicOp, int], des: int, src: int, src2: int
) -> None:
    """Compute ``src op src2`` and store the result in ``des``.

    Boolean and comparison results are stored as 0 or 1 in a single slot.
    """
    _LOGIC[_resolve(op)](regs, des, src, src2)