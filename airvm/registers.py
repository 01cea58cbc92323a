"""Register file of 32-bit slots and helpers for reading instruction immediates."""

from __future__ import annotations

import math
import operator
import struct
from enum import Enum
from typing import Optional, Sequence

SLOT_BYTES = 4
_WORD_MASK = 0xFFFF


class InvalidInstructionError(Exception):
    """Raised when an opcode or sub-opcode is not recognised."""

    def __init__(self, message: str, pc: Optional[int] = None) -> None:
        super().__init__(message)
        self.pc = pc


class ValueKind(Enum):
    """Typed views of register contents: label, struct format, slot count."""

    I32 = ("i32", "<i", 1)
    U32 = ("u32", "<I", 1)
    I64 = ("i64", "<q", 2)
    U64 = ("u64", "<Q", 2)
    F32 = ("f32", "<f", 1)
    F64 = ("f64", "<d", 2)
    PTR = ("ptr", "<Q", 2)

    def __init__(self, label: str, fmt: str, slots: int) -> None:
        self.label = label
        self.fmt = fmt
        self.slots = slots

    @property
    def is_float(self) -> bool:
        return self in (ValueKind.F32, ValueKind.F64)

    @property
    def is_signed(self) -> bool:
        return self in (ValueKind.I32, ValueKind.I64)

    @property
    def bits(self) -> int:
        return self.slots * SLOT_BYTES * 8


def _coerce(kind: ValueKind, value) -> int | float:
    if kind.is_float:
        number = float(value)
        if kind is ValueKind.F32:
            try:
                struct.pack(kind.fmt, number)
            except OverflowError:
                number = math.copysign(math.inf, number)
        return number
    number = operator.index(value) & ((1 << kind.bits) - 1)
    if kind.is_signed and number >= 1 << (kind.bits - 1):
        number -= 1 << kind.bits
    return number


class RegisterFile:
    """A bank of 32-bit registers; 64-bit values occupy two consecutive slots."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("register file must hold at least one register")
        self._size = size
        self._data = bytearray(size * SLOT_BYTES)

    def __len__(self) -> int:
        return self._size

    def _offset(self, index: int, slots: int) -> int:
        if not 0 <= index <= self._size - slots:
            raise IndexError(f"register r{index} out of range")
        return index * SLOT_BYTES

    def read(self, index: int, kind: ValueKind) -> int | float:
        """Read register ``index`` viewed as ``kind``."""
        offset = self._offset(index, kind.slots)
        return struct.unpack_from(kind.fmt, self._data, offset)[0]

    def write(self, index: int, kind: ValueKind, value) -> None:
        """Store ``value`` as ``kind`` at register ``index``, wrapping integers."""
        offset = self._offset(index, kind.slots)
        struct.pack_into(kind.fmt, self._data, offset, _coerce(kind, value))

    def byte(self, index: int, position: int, signed: bool) -> int:
        """Return byte ``position`` (0 is least significant) of a register."""
        if not 0 <= position < SLOT_BYTES:
            raise ValueError(f"byte position {position} out of range")
        value = self._data[self._offset(index, 1) + position]
        if signed and value >= 0x80:
            value -= 0x100
        return value

    def half(self, index: int, position: int, signed: bool) -> int:
        """Return 16-bit half ``position`` (0 low, 1 high) of a register."""
        if position not in (0, 1):
            raise ValueError(f"half position {position} out of range")
        offset = self._offset(index, 1) + position * 2
        return struct.unpack_from("<h" if signed else "<H", self._data, offset)[0]


def _join_words(words: Sequence[int], index: int, count: int) -> int:
    if index < 0 or index + count > len(words):
        raise IndexError(f"immediate at word {index} runs past the code")
    result = 0
    for shift, word in enumerate(words[index:index + count]):
        result |= (word & _WORD_MASK) << (16 * shift)
    return result


def imm32(words: Sequence[int], index: int) -> int:
    """Unsigned 32-bit immediate stored little-endian in two 16-bit code words."""
    return _join_words(words, index, 2)


def imm64(words: Sequence[int], index: int) -> int:
    """Unsigned 64-bit immediate stored little-endian in four 16-bit code words."""
    return _join_words(words, index, 4)