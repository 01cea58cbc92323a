"""Decoding and execution of the three-register math instruction (8-bit operands)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from airvm.math_arith import ArithOp, apply_arith
from airvm.math_logic import LogicOp, apply_logic
from airvm.registers import InvalidInstructionError, RegisterFile

_WORD_MASK = 0xFFFF
INSTRUCTION_WORDS = 3


@dataclass(frozen=True)
class Math3Operands:
    """Register numbers of a three-register math instruction."""

    des: int
    src: int
    src2: int


def decode_math3_r8(words: Sequence[int], pc: int) -> Math3Operands:
    """Decode the operands of the instruction at ``pc``.

    The destination is the whole word after the opcode; the next word holds
    the first source in its high byte and the second in its low byte.
    """
    if pc < 0 or pc + 2 >= len(words):
        raise IndexError(f"math instruction at {pc} runs past the code")
    des = words[pc + 1] & _WORD_MASK
    ins2 = words[pc + 2] & _WORD_MASK
    return Math3Operands(des, (ins2 & 0xFF00) >> 8, ins2 & 0x00FF)


def _resolve(op: Union[ArithOp, LogicOp, int], pc: int) -> Union[ArithOp, LogicOp]:
    if isinstance(op, (ArithOp, LogicOp)):
        return op
    for enum_type in (ArithOp, LogicOp):
        try:
            return enum_type(op)
        except ValueError:
            continue
    raise InvalidInstructionError(f"unknown math sub-operation {op!r}", pc)


def exec_math3_r8(
    regs: RegisterFile,
    op: Union[ArithOp, LogicOp, int],
    words: Sequence[int],
    pc: int,
) -> int:
    """Execute the math instruction at ``pc`` and return the next pc."""
    math_op = _resolve(op, pc)
    operands = decode_math3_r8(words, pc)
    if isinstance(math_op, ArithOp):
        apply_arith(regs, math_op, operands.des, operands.src, operands.src2)
    else:
        apply_logic(regs, math_op, operands.des, operands.src, operands.src2)
    return pc + INSTRUCTION_WORDS