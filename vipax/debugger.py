"""Breakpoint-driven state dumps around the execution driver.

The debugger only reads machine state. Before each step it checks three
trigger lists (program counter, instruction mask, address register value) and
writes a full state dump to its sink when any of them fires.
"""

from typing import Callable, List, Optional

import numpy as np

from vipax.constants import FLAG_REGISTER, INSTRUCTION_SIZE, MEMORY_SIZE, NUM_KEYS, NUM_REGISTERS
from vipax.decode import disassemble
from vipax.emulator import StepResult, step
from vipax.logging import logger
from vipax.state import EmulatorState

MEMORY_WINDOW = 3
UPCOMING_INSTRUCTIONS = 16


def _word_at(memory: np.ndarray, address: int) -> int:
    if address + 1 >= MEMORY_SIZE:
        return 0
    return (int(memory[address]) << 8) | int(memory[address + 1])


def format_state(state: EmulatorState) -> str:
    """Render registers, memory at I, upcoming instructions, keypad and stack as text."""
    memory = np.asarray(state.memory)
    registers = np.asarray(state.V)
    keypad = np.asarray(state.keypad)
    pc = int(state.pc)
    index = int(state.I)

    lines = ["registers:"]
    for row in range(0, NUM_REGISTERS, 4):
        lines.append("  ".join(
            f"V{i:X}: 0x{int(registers[i]):02x}" for i in range(row, row + 4)
        ))
    lines.append(f"address register: 0x{index:04x}")
    window = [
        f"0x{int(memory[address]):02x}"
        for address in range(index, index + MEMORY_WINDOW) if address < MEMORY_SIZE
    ]
    lines.append(f"memory at address register: {' '.join(window)}")
    lines.append(f"program counter: 0x{pc:04x}")
    upcoming = [
        f"0x{_word_at(memory, pc + INSTRUCTION_SIZE * i):04x}" for i in range(UPCOMING_INSTRUCTIONS)
    ]
    lines.append(f"next instructions: {' '.join(upcoming)}")
    lines.append(f"current instruction: {disassemble(_word_at(memory, pc))}")
    lines.append("keys: " + "  ".join(f"{i:X}:{int(keypad[i])}" for i in range(NUM_KEYS)))
    lines.append(f"stack depth: {int(state.stack.pointer)}")
    lines.append(f"waiting for key: {bool(state.waiting_for_key)}"
                 + (f" (into V{int(state.key_target):X})" if bool(state.waiting_for_key) else ""))
    lines.append(f"timers: delay={int(state.delay_timer)} sound={int(state.sound_timer)} "
                 f"VF={int(registers[FLAG_REGISTER])}")
    return "\n".join(lines)


class Debugger:
    """Wraps the execution driver with breakpoint checks.

    Trigger lists grow without bound and ignore duplicates. Checking triggers
    pulls the state back to the host, so a debugged run is much slower than a
    plain ``step`` loop.
    """

    def __init__(self, sink: Optional[Callable[[str], None]] = None):
        self.sink = sink or logger.info
        self._breakpoints: List[int] = []
        self._instruction_masks: List[int] = []
        self._index_breakpoints: List[int] = []

    @staticmethod
    def _add(triggers: List[int], value: int):
        if value not in triggers:
            triggers.append(value)

    @staticmethod
    def _remove(triggers: List[int], value: int):
        if value in triggers:
            triggers.remove(value)

    def add_breakpoint(self, address: int):
        """Fire when the program counter equals ``address``."""
        self._add(self._breakpoints, int(address))

    def add_instruction_breakpoint(self, mask: int):
        """Fire when the current instruction has every bit of ``mask`` set."""
        self._add(self._instruction_masks, int(mask))

    def add_index_breakpoint(self, value: int):
        """Fire when the address register equals ``value``."""
        self._add(self._index_breakpoints, int(value))

    def remove_breakpoint(self, address: int):
        self._remove(self._breakpoints, int(address))

    def remove_instruction_breakpoint(self, mask: int):
        self._remove(self._instruction_masks, int(mask))

    def remove_index_breakpoint(self, value: int):
        self._remove(self._index_breakpoints, int(value))

    def clear(self):
        """Remove every trigger."""
        self._breakpoints.clear()
        self._instruction_masks.clear()
        self._index_breakpoints.clear()

    @property
    def breakpoints(self) -> List[int]:
        return list(self._breakpoints)

    @property
    def instruction_masks(self) -> List[int]:
        return list(self._instruction_masks)

    @property
    def index_breakpoints(self) -> List[int]:
        return list(self._index_breakpoints)

    @property
    def active(self) -> bool:
        return bool(self._breakpoints or self._instruction_masks or self._index_breakpoints)

    def triggers(self, state: EmulatorState) -> List[str]:
        """Describe every trigger that fires for ``state``."""
        pc = int(state.pc)
        index = int(state.I)
        instruction = _word_at(np.asarray(state.memory), pc)

        fired = [f"pc == 0x{pc:04x}" for address in self._breakpoints if address == pc]
        fired += [
            f"instruction 0x{instruction:04x} matches mask 0x{mask:04x}"
            for mask in self._instruction_masks if instruction & mask == mask
        ]
        fired += [f"I == 0x{index:04x}" for value in self._index_breakpoints if value == index]
        return fired

    def step(self, state: EmulatorState) -> tuple[EmulatorState, StepResult]:
        """Dump the state if any trigger fires, then run one driver step."""
        if self.active:
            fired = self.triggers(state)
            if fired:
                self.sink(f"breakpoint: {', '.join(fired)}\n{format_state(state)}")
        return step(state)
