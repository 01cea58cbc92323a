"""Instruction handlers of a register-based bytecode VM and a native function interface."""

__version__ = "0.1.0"