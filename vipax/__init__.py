"""CHIP-8 emulator package."""

from vipax.state import EmulatorState, StackState, create_state
from vipax.emulator import (
    execute, step, fetch, decrement_timers, run_frame, run_frames,
    load_program, load_rom, StepStatus, StepResult, RomLoadError
)
from vipax.decode import DecodedInstruction, Operation, decode, disassemble
from vipax.debugger import Debugger, format_state
from vipax.constants import *
from vipax.rendering import display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "execute",
    "step",
    "fetch",
    "decrement_timers",
    "run_frame",
    "run_frames",
    "load_program",
    "load_rom",
    "StepStatus",
    "StepResult",
    "RomLoadError",
    "DecodedInstruction",
    "Operation",
    "decode",
    "disassemble",
    "Debugger",
    "format_state",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
]
