"""Register moves and conversions addressed by full 16-bit register numbers."""

from __future__ import annotations

from typing import Sequence, Union

from airvm.moves import MoveOp, apply_move
from airvm.registers import InvalidInstructionError, RegisterFile

_WORD_MASK = 0xFFFF


def exec_mov_r16(
    regs: RegisterFile, op: Union[MoveOp, int], words: Sequence[int], pc: int
) -> int:
    """Execute the move at ``pc`` whose operands are two whole code words.

    The destination register number is in the word after the opcode and the
    source register number in the one after that. Returns the next pc.
    """
    if isinstance(op, MoveOp):
        move = op
    else:
        try:
            move = MoveOp(op)
        except ValueError:
            raise InvalidInstructionError(
                f"unknown MoveOp sub-operation {op!r}", pc
            ) from None
    if pc < 0 or pc + 2 >= len(words):
        raise IndexError(f"move instruction at {pc} runs past the code")
    des = words[pc + 1] & _WORD_MASK
    src = words[pc + 2] & _WORD_MASK
    apply_move(regs, move, des, src)
    return pc + 3