# airvm

The instruction handlers of a small register-based virtual machine. The package
uses only the standard library.

Registers are 32-bit slots. A 64-bit value takes two neighbouring slots, low
half first. Code is a sequence of 16-bit words, and 32-bit and 64-bit
immediates are stored little-endian across two or four words.

## Modules

- `airvm.registers`
  - `RegisterFile(size)` holds the registers. `read(index, kind)` and
    `write(index, kind, value)` work on typed views given by `ValueKind`:
    `I32`, `U32`, `I64`, `U64`, `F32`, `F64`, `PTR`. Integer writes wrap to the
    width of the type. `byte(index, position, signed)` and
    `half(index, position, signed)` read one byte or one 16-bit half of a slot.
  - `imm32(words, index)` and `imm64(words, index)` decode immediates from the
    code.
  - Every handler raises `InvalidInstructionError` when given a sub-operation
    it does not know. The error carries the `pc` when one was available.
- `airvm.moves`
  - `apply_move(regs, op, des, src)` carries out a `MoveOp`: sign or zero
    extension of a byte or half, a 32-bit or 64-bit copy or bit cast, or a
    numeric conversion between integer and float types. Float-to-integer
    conversions truncate toward zero. NaN or infinity raises `ValueError`.
  - `exec_mov_r4(regs, op, ins)` runs a `MoveR4Op`. The two 4-bit register
    numbers are taken from the low byte of `ins`, and the function returns the
    instruction length, which is 1.
  - `exec_mov_r8(regs, op, words, pc)` takes both register numbers from the
    next word (destination in the high byte, source in the low byte) and
    returns the next pc.
- `airvm.moves_r16`
  - `exec_mov_r16(regs, op, words, pc)` takes the destination and source
    register numbers from two whole words and returns the next pc.
- `airvm.math_arith`
  - `apply_arith(regs, op, des, src, src2)` computes add, sub, mul, div, mod,
    max and min (`ArithOp`) for i32, u32, i64, u64, f32 and f64. Integer
    division and modulo truncate toward zero and raise `ZeroDivisionError` when
    the divisor is zero.
- `airvm.math_logic`
  - `apply_logic(regs, op, des, src, src2)` computes the `LogicOp` operations:
    logical and/or, bitwise and/or/xor and their negations, shifts, rotates,
    and the six comparisons for each type. Logical and comparison results are
    stored as 0 or 1.
- `airvm.math3`
  - `decode_math3_r8(words, pc)` returns the operands of a three-register math
    instruction as `Math3Operands(des, src, src2)`.
  - `exec_math3_r8(regs, op, words, pc)` runs an `ArithOp` or a `LogicOp` and
    returns `pc + 3`.
- `airvm.returns`
  - `exec_return(regs, op, words, pc)` evaluates a `ReturnOp` and returns a
    `ReturnValue(kind, value)`. The value comes either from an immediate or
    from a register, and `kind` is `"void"` when there is no value.
- `airvm.objects`
  - `exec_object_op(regs, manager, func, op, words, pc)` runs an `ObjectOp`
    (new, grab, drop, lock, unlock, each in an R8 and an R16 form) against an
    object that implements the `ObjectManager` protocol, and returns the next
    pc.
- `airvm.ani`
  - The native interface. `ArgPacker` builds 32-bit argument words.
  - `NativeLibrary` exports the functions `test`, `print`, `add_i32`,
    `callback` and `callback2`, available through `functions()` and
    `lookup(name)`. The callbacks call back into the VM through a
    `VMInterface`.
  - `nat_dll_init(interface, version, out)` returns the library, or `None`
    when `version` is not 1.

## Example

```python
from airvm.registers import RegisterFile, ValueKind
from airvm.math_arith import ArithOp, apply_arith

regs = RegisterFile(16)
regs.write(0, ValueKind.I32, 40)
regs.write(1, ValueKind.I32, 2)
apply_arith(regs, ArithOp.ADD_I32, 2, 0, 1)
print(regs.read(2, ValueKind.I32))  # 42
```

## What it does not do

The package provides individual instruction handlers. It does not include:

- a fetch-and-dispatch loop over opcodes;
- call frames or a call stack;
- a loader for bytecode files;
- a heap (the caller supplies an `ObjectManager`);
- a command-line program.

A caller that wants to run whole programs has to build these on top of the
handlers.

## Running the tests

```
pip install -e .[test]
pytest
```