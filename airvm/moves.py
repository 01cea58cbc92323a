"""Register-to-register moves, width extensions and numeric conversions."""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Sequence, Union

from airvm.registers import InvalidInstructionError, RegisterFile, ValueKind

_Handler = Callable[[RegisterFile, int, int], None]


class MoveR4Op(Enum):
    """Compact moves whose operands are two 4-bit register numbers."""

    W32_I32 = 0
    W32_U32 = 1
    W32_F32 = 2
    W64_I64 = 3
    W64_U64 = 4
    W64_F64 = 5

    @property
    def kind(self) -> ValueKind:
        return _R4_KINDS[self]


_R4_KINDS = {
    MoveR4Op.W32_I32: ValueKind.I32,
    MoveR4Op.W32_U32: ValueKind.U32,
    MoveR4Op.W32_F32: ValueKind.F32,
    MoveR4Op.W64_I64: ValueKind.I64,
    MoveR4Op.W64_U64: ValueKind.U64,
    MoveR4Op.W64_F64: ValueKind.F64,
}


class MoveOp(Enum):
    """Sub-operations shared by the 8-bit and 16-bit register move forms."""

    W32_SB0 = 0
    W32_UB0 = 1
    W32_SB1 = 2
    W32_UB1 = 3
    W32_SB2 = 4
    W32_UB2 = 5
    W32_SB3 = 6
    W32_UB3 = 7
    W32_SH16 = 8
    W32_UH16 = 9
    W32_SL16 = 10
    W32_UL16 = 11
    W32_I32 = 12
    W32_U32 = 13
    W32_F32 = 14
    BITCAST_W32 = 15
    W64_SB0 = 16
    W64_UB0 = 17
    W64_SB1 = 18
    W64_UB1 = 19
    W64_SB2 = 20
    W64_UB2 = 21
    W64_SB3 = 22
    W64_UB3 = 23
    W64_SH16 = 24
    W64_UH16 = 25
    W64_SL16 = 26
    W64_UL16 = 27
    W64_I64 = 28
    W64_U64 = 29
    W64_F64 = 30
    BITCAST_W64 = 31
    CAST_I32_TO_I64 = 32
    CAST_U32_TO_U64 = 33
    CAST_I64_TO_I32 = 34
    CAST_U64_TO_U32 = 35
    CAST_F32_TO_F64 = 36
    CAST_F64_TO_F32 = 37
    CAST_I32_TO_F32 = 38
    CAST_U32_TO_F32 = 39
    CAST_I32_TO_F64 = 40
    CAST_U32_TO_F64 = 41
    CAST_I64_TO_F32 = 42
    CAST_U64_TO_F32 = 43
    CAST_I64_TO_F64 = 44
    CAST_U64_TO_F64 = 45
    CAST_F32_TO_I32 = 46
    CAST_F32_TO_U32 = 47
    CAST_F32_TO_I64 = 48
    CAST_F32_TO_U64 = 49
    CAST_F64_TO_I32 = 50
    CAST_F64_TO_U32 = 51
    CAST_F64_TO_I64 = 52
    CAST_F64_TO_U64 = 53


def _copy(kind: ValueKind) -> _Handler:
    def handler(regs: RegisterFile, des: int, src: int) -> None:
        regs.write(des, kind, regs.read(src, kind))
    return handler


def _byte(position: int, signed: bool, target: ValueKind) -> _Handler:
    def handler(regs: RegisterFile, des: int, src: int) -> None:
        regs.write(des, target, regs.byte(src, position, signed))
    return handler


def _half(position: int, signed: bool, target: ValueKind) -> _Handler:
    def handler(regs: RegisterFile, des: int, src: int) -> None:
        regs.write(des, target, regs.half(src, position, signed))
    return handler


def _convert(source: ValueKind, target: ValueKind) -> _Handler:
    def handler(regs: RegisterFile, des: int, src: int) -> None:
        value = regs.read(src, source)
        if source.is_float and not target.is_float:
            if math.isnan(value) or math.isinf(value):
                raise ValueError(f"cannot convert {value} to {target.label}")
            value = math.trunc(value)
        regs.write(des, target, value)
    return handler


def _build_table() -> dict[MoveOp, _Handler]:
    table: dict[MoveOp, _Handler] = {}
    for width, target_s, target_u in (
        ("W32", ValueKind.I32, ValueKind.U32),
        ("W64", ValueKind.I64, ValueKind.U64),
    ):
        for position in range(4):
            table[MoveOp[f"{width}_SB{position}"]] = _byte(position, True, target_s)
            table[MoveOp[f"{width}_UB{position}"]] = _byte(position, False, target_u)
        table[MoveOp[f"{width}_SH16"]] = _half(1, True, target_s)
        table[MoveOp[f"{width}_UH16"]] = _half(1, False, target_u)
        table[MoveOp[f"{width}_SL16"]] = _half(0, True, target_s)
        table[MoveOp[f"{width}_UL16"]] = _half(0, False, target_u)

    raw32 = _copy(ValueKind.U32)
    raw64 = _copy(ValueKind.U64)
    for op in (MoveOp.W32_I32, MoveOp.W32_U32, MoveOp.W32_F32, MoveOp.BITCAST_W32):
        table[op] = raw32
    for op in (MoveOp.W64_I64, MoveOp.W64_U64, MoveOp.W64_F64, MoveOp.BITCAST_W64):
        table[op] = raw64

    kinds = {
        "I32": ValueKind.I32, "U32": ValueKind.U32,
        "I64": ValueKind.I64, "U64": ValueKind.U64,
        "F32": ValueKind.F32, "F64": ValueKind.F64,
    }
    for op in MoveOp:
        if op.name.startswith("CAST_"):
            source, _, target = op.name[len("CAST_"):].partition("_TO_")
            table[op] = _convert(kinds[source], kinds[target])
    return table


_MOVES = _build_table()


def _resolve(enum_type, op, pc=None):
    if isinstance(op, enum_type):
        return op
    try:
        return enum_type(op)
    except ValueError:
        raise InvalidInstructionError(
            f"unknown {enum_type.__name__} sub-operation {op!r}", pc
        ) from None


def apply_move(regs: RegisterFile, op: Union[MoveOp, int], des: int, src: int) -> None:
    """Perform move or conversion ``op`` from register ``src`` into ``des``."""
    _MOVES[_resolve(MoveOp, op)](regs, des, src)


def exec_mov_r4(regs: RegisterFile, op: Union[MoveR4Op, int], ins: int) -> int:
    """Execute a compact move whose registers sit in the low byte of ``ins``.

    Returns the number of code words the instruction occupies.
    """
    move = _resolve(MoveR4Op, op)
    des = (ins & 0x00F0) >> 4
    src = ins & 0x000F
    _copy(ValueKind.U64 if move.kind.slots == 2 else ValueKind.U32)(regs, des, src)
    return 1


def exec_mov_r8(
    regs: RegisterFile, op: Union[MoveOp, int], words: Sequence[int], pc: int
) -> int:
    """Execute the move at ``pc`` with 8-bit register numbers; return the next pc."""
    move = _resolve(MoveOp, op, pc)
    if pc < 0 or pc + 1 >= len(words):
        raise IndexError(f"move instruction at {pc} runs past the code")
    operands = words[pc + 1] & 0xFFFF
    des = operands >> 8
    src = operands & 0xFF
    _MOVES[move](regs, des, src)
    return pc + 2