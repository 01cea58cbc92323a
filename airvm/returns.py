"""Return instructions: produce the value a function hands back to its caller."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from airvm.registers import (
    InvalidInstructionError,
    RegisterFile,
    ValueKind,
    imm32,
    imm64,
)

_WORD_MASK = 0xFFFF


class ReturnOp(Enum):
    """Sub-operations of the return instruction."""

    VOID = 0
    I16 = 1
    U16 = 2
    I32 = 3
    U32 = 4
    I64 = 5
    U64 = 6
    F32 = 7
    F64 = 8
    R16_SB0 = 9
    R16_UB0 = 10
    R16_SB1 = 11
    R16_UB1 = 12
    R16_SB2 = 13
    R16_UB2 = 14
    R16_SB3 = 15
    R16_UB3 = 16
    R16_SL16 = 17
    R16_UL16 = 18
    R16_SH16 = 19
    R16_UH16 = 20
    R16_I32 = 21
    R16_U32 = 22
    R16_I64 = 23
    R16_U64 = 24
    R16_F32 = 25
    R16_F64 = 26
    R16_PTR = 27


@dataclass(frozen=True)
class ReturnValue:
    """The value returned, labelled with its type (``"void"`` for none)."""

    kind: str
    value: Optional[Union[int, float]] = None


def _word(words: Sequence[int], pc: int) -> int:
    if pc < 0 or pc + 1 >= len(words):
        raise IndexError(f"return instruction at {pc} runs past the code")
    return words[pc + 1] & _WORD_MASK


def _signed16(word: int) -> int:
    return word - 0x10000 if word >= 0x8000 else word


def _signed(value: int, bits: int) -> int:
    return value - (1 << bits) if value >= 1 << (bits - 1) else value


_Handler = Callable[[RegisterFile, Sequence[int], int], ReturnValue]


def _immediates() -> dict[ReturnOp, _Handler]:
    return {
        ReturnOp.VOID: lambda regs, words, pc: ReturnValue("void"),
        ReturnOp.I16: lambda regs, words, pc: ReturnValue(
            "i16", _signed16(_word(words, pc))
        ),
        ReturnOp.U16: lambda regs, words, pc: ReturnValue("u16", _word(words, pc)),
        ReturnOp.I32: lambda regs, words, pc: ReturnValue(
            "i32", _signed(imm32(words, pc + 1), 32)
        ),
        ReturnOp.U32: lambda regs, words, pc: ReturnValue("u32", imm32(words, pc + 1)),
        ReturnOp.I64: lambda regs, words, pc: ReturnValue(
            "i64", _signed(imm64(words, pc + 1), 64)
        ),
        ReturnOp.U64: lambda regs, words, pc: ReturnValue("u64", imm64(words, pc + 1)),
        ReturnOp.F32: lambda regs, words, pc: ReturnValue(
            "f32", struct.unpack("<f", struct.pack("<I", imm32(words, pc + 1)))[0]
        ),
        ReturnOp.F64: lambda regs, words, pc: ReturnValue(
            "f64", struct.unpack("<d", struct.pack("<Q", imm64(words, pc + 1)))[0]
        ),
    }


def _from_byte(position: int, signed: bool) -> _Handler:
    label = "i8" if signed else "u8"

    def handler(regs: RegisterFile, words: Sequence[int], pc: int) -> ReturnValue:
        return ReturnValue(label, regs.byte(_word(words, pc), position, signed))
    return handler


def _from_half(position: int, signed: bool) -> _Handler:
    label = "i16" if signed else "u16"

    def handler(regs: RegisterFile, words: Sequence[int], pc: int) -> ReturnValue:
        return ReturnValue(label, regs.half(_word(words, pc), position, signed))
    return handler


def _from_register(kind: ValueKind) -> _Handler:
    def handler(regs: RegisterFile, words: Sequence[int], pc: int) -> ReturnValue:
        return ReturnValue(kind.label, regs.read(_word(words, pc), kind))
    return handler


def _build_table() -> dict[ReturnOp, _Handler]:
    table = _immediates()
    for position in range(4):
        table[ReturnOp[f"R16_SB{position}"]] = _from_byte(position, True)
        table[ReturnOp[f"R16_UB{position}"]] = _from_byte(position, False)
    table[ReturnOp.R16_SL16] = _from_half(0, True)
    table[ReturnOp.R16_UL16] = _from_half(0, False)
    table[ReturnOp.R16_SH16] = _from_half(1, True)
    table[ReturnOp.R16_UH16] = _from_half(1, False)
    for op, kind in (
        (ReturnOp.R16_I32, ValueKind.I32),
        (ReturnOp.R16_U32, ValueKind.U32),
        (ReturnOp.R16_I64, ValueKind.I64),
        (ReturnOp.R16_U64, ValueKind.U64),
        (ReturnOp.R16_F32, ValueKind.F32),
        (ReturnOp.R16_F64, ValueKind.F64),
        (ReturnOp.R16_PTR, ValueKind.PTR),
    ):
        table[op] = _from_register(kind)
    return table


_RETURNS = _build_table()


def exec_return(
    regs: RegisterFile, op: Union[ReturnOp, int], words: Sequence[int], pc: int
) -> ReturnValue:
    """Evaluate the return instruction at ``pc`` and give back its value."""
    if isinstance(op, ReturnOp):
        ret = op
    else:
        try:
            ret = ReturnOp(op)
        except ValueError:
            raise InvalidInstructionError(
                f"unknown ReturnOp sub-operation {op!r}", pc
            ) from None
    return _RETURNS[ret](regs, words, pc)