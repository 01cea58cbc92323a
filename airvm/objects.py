"""Garbage-collected object instructions: allocate, reference, release, lock."""

from __future__ import annotations

from enum import Enum
from typing import Protocol, Sequence, Union, runtime_checkable

from airvm.registers import InvalidInstructionError, RegisterFile, ValueKind, imm32

_WORD_MASK = 0xFFFF


@runtime_checkable
class ObjectManager(Protocol):
    """The heap services used by the object instructions."""

    def new_object(self, func, type_serial: int) -> int:
        """Allocate an object of ``type_serial`` for ``func``; return its handle."""

    def grab_object(self, handle: int) -> None:
        """Add a reference to ``handle``."""

    def drop_object(self, handle: int) -> int:
        """Release a reference; return the handle the register holds afterwards."""

    def lock_object(self, handle: int) -> None:
        """Lock ``handle``."""

    def unlock_object(self, handle: int) -> None:
        """Unlock ``handle``."""


class ObjectOp(Enum):
    """Object instructions; the R8 forms carry the register in the opcode word."""

    NEW_OBJ_R8 = 0
    NEW_OBJ_R16 = 1
    GRAB_OBJ_R8 = 2
    GRAB_OBJ_R16 = 3
    DROP_OBJ_R8 = 4
    DROP_OBJ_R16 = 5
    LOCK_OBJ_R8 = 6
    LOCK_OBJ_R16 = 7
    UNLOCK_OBJ_R8 = 8
    UNLOCK_OBJ_R16 = 9

    @property
    def wide(self) -> bool:
        """True when the register number occupies its own code word."""
        return self.name.endswith("_R16")

    @property
    def action(self) -> str:
        return self.name.split("_", 1)[0].lower()


def _resolve(op: Union[ObjectOp, int], pc: int) -> ObjectOp:
    if isinstance(op, ObjectOp):
        return op
    try:
        return ObjectOp(op)
    except ValueError:
        raise InvalidInstructionError(f"unknown object operation {op!r}", pc) from None


def exec_object_op(
    regs: RegisterFile,
    manager: ObjectManager,
    func,
    op: Union[ObjectOp, int],
    words: Sequence[int],
    pc: int,
) -> int:
    """Execute the object instruction at ``pc`` and return the next pc."""
    obj_op = _resolve(op, pc)
    if obj_op.wide:
        if pc < 0 or pc + 1 >= len(words):
            raise IndexError(f"object instruction at {pc} runs past the code")
        des = words[pc + 1] & _WORD_MASK
        operand_at = pc + 2
    else:
        if pc < 0 or pc >= len(words):
            raise IndexError(f"object instruction at {pc} runs past the code")
        des = words[pc] & 0x00FF
        operand_at = pc + 1

    action = obj_op.action
    if action == "new":
        type_serial = imm32(words, operand_at)
        regs.write(des, ValueKind.PTR, manager.new_object(func, type_serial))
        return operand_at + 2

    handle = regs.read(des, ValueKind.PTR)
    if action == "grab":
        manager.grab_object(handle)
    elif action == "drop":
        regs.write(des, ValueKind.PTR, manager.drop_object(handle))
    elif action == "lock":
        manager.lock_object(handle)
    else:
        manager.unlock_object(handle)
    return operand_at