"""Native interface: argument packing and the sample native function library."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, TextIO, runtime_checkable

NAT_VERSION = 1
_U32 = 0xFFFFFFFF


@runtime_checkable
class VMInterface(Protocol):
    """Services the virtual machine offers to native libraries."""

    def alloc_actor(self):
        """Obtain an execution context."""

    def free_actor(self, actor) -> None:
        """Release an execution context."""

    def set_func(self, actor, func: int, argv: Sequence[int]) -> int:
        """Prepare ``func`` with 32-bit argument words on ``actor``."""

    def run(self, actor) -> None:
        """Run the function prepared on ``actor``."""


class ArgPacker:
    """Builds the 32-bit argument words handed to a VM function."""

    def __init__(self) -> None:
        self._words: list[int] = []

    def _push_bytes(self, data: bytes) -> None:
        self._words.extend(struct.unpack(f"<{len(data) // 4}I", data))

    def push_i32(self, value: int) -> None:
        self._words.append(value & _U32)

    def push_u32(self, value: int) -> None:
        self._words.append(value & _U32)

    def push_i64(self, value: int) -> None:
        self._push_bytes(struct.pack("<Q", value & 0xFFFFFFFFFFFFFFFF))

    def push_u64(self, value: int) -> None:
        self._push_bytes(struct.pack("<Q", value & 0xFFFFFFFFFFFFFFFF))

    def push_f32(self, value: float) -> None:
        self._push_bytes(struct.pack("<f", value))

    def push_f64(self, value: float) -> None:
        self._push_bytes(struct.pack("<d", value))

    def words(self) -> list[int]:
        """A copy of the words pushed so far."""
        return list(self._words)


@dataclass(frozen=True)
class NativeFunction:
    """A named entry point: ``entry(argv, ret)`` returns an exception status."""

    name: str
    entry: Callable[[Sequence[int], int], int]


def _as_i32(word: int) -> int:
    word &= _U32
    return word - (1 << 32) if word >= 1 << 31 else word


def _pointer(argv: Sequence[int]) -> int:
    if len(argv) < 2:
        raise ValueError("callback needs a 64-bit function pointer (two words)")
    return (argv[0] & _U32) | ((argv[1] & _U32) << 32)


class NativeLibrary:
    """The sample native library with its table of exported functions."""

    version = NAT_VERSION

    def __init__(self, interface: VMInterface, out: Optional[TextIO] = None) -> None:
        self.interface = interface
        self._out = out
        self._functions = (
            NativeFunction("test", self.nat_test),
            NativeFunction("print", self.nat_print),
            NativeFunction("add_i32", self.add_i32),
            NativeFunction("callback", self.callback),
            NativeFunction("callback2", self.callback2),
        )
        self._by_name = {fn.name: fn for fn in self._functions}

    @property
    def _stream(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def _emit(self, text: str) -> None:
        self._stream.write(text)

    def functions(self) -> tuple[NativeFunction, ...]:
        """Exported functions in table order."""
        return self._functions

    def lookup(self, name: str) -> NativeFunction:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"no native function named {name!r}") from None

    def nat_test(self, argv: Sequence[int], ret: int = 0) -> int:
        self._emit("\nnat lib test!\n")
        return 0

    def nat_print(self, argv: Sequence[int], ret: int = 0) -> int:
        self._emit(f"print-i32:{_as_i32(argv[0])}\n")
        return 0

    def add_i32(self, argv: Sequence[int], ret: int = 0) -> int:
        if len(argv) == 2:
            self._emit(f"add_i32:{_as_i32(argv[0] + argv[1])}\n")
        return 0

    def _invoke(self, func: int, args: Sequence[int]) -> None:
        vm = self.interface
        actor = vm.alloc_actor()
        try:
            vm.set_func(actor, func, args)
            vm.run(actor)
        finally:
            vm.free_actor(actor)

    def callback(self, argv: Sequence[int], ret: int = 0) -> int:
        func = _pointer(argv)
        self._emit(f"无参数回调：ptr:0x{func:016X}\n\n")
        self._invoke(func, [])
        self._emit("回调结束\n\n")
        return 0

    def callback2(self, argv: Sequence[int], ret: int = 0) -> int:
        func = _pointer(argv)
        self._emit(f"带参数回调：ptr:0x{func:016X}\n\n")
        packer = ArgPacker()
        packer.push_i32(-1)
        packer.push_i32(-2)
        self._invoke(func, packer.words())
        self._emit("回调结束\n\n")
        return 0

    def terminal(self) -> None:
        """Called when the library is unloaded."""
        self._emit("nat-test-dll release\n")


def nat_dll_init(
    interface: VMInterface, version: int, out: Optional[TextIO] = None
) -> Optional[NativeLibrary]:
    """Return the library for ``interface``, or None when the version differs."""
    if version != NAT_VERSION:
        return None
    return NativeLibrary(interface, out)