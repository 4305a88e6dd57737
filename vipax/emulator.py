"""Main CHIP-8 emulator execution engine."""

from enum import IntEnum
from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from flax.struct import dataclass

from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction, Operation, decode
from vipax.constants import PROGRAM_START, MEMORY_SIZE, MAX_PROGRAM_SIZE, INSTRUCTION_SIZE
from vipax.logging import scan_with_progress
from vipax.instructions.system import not_implemented, execute_clear_screen, execute_return
from vipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from vipax.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub, execute_alu_shift_right, execute_alu_sub_reversed, execute_alu_shift_left
)
from vipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from vipax.instructions.display import execute_display
from vipax.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)

DEFAULT_STEPS_PER_FRAME = 11  # ~700 Hz at 60 frames per second

HANDLERS = {
    Operation.NOT_IMPLEMENTED: not_implemented,
    Operation.CLEAR_SCREEN: execute_clear_screen,
    Operation.RETURN: execute_return,
    Operation.JUMP: execute_jump,
    Operation.CALL: execute_call,
    Operation.SKIP_EQUAL_IMMEDIATE: execute_skip_if_equal_immediate,
    Operation.SKIP_NOT_EQUAL_IMMEDIATE: execute_skip_if_not_equal_immediate,
    Operation.SKIP_EQUAL_REGISTER: execute_skip_if_equal_register,
    Operation.SET_IMMEDIATE: execute_set,
    Operation.ADD_IMMEDIATE: execute_add,
    Operation.ALU_SET: execute_alu_set,
    Operation.ALU_OR: execute_alu_or,
    Operation.ALU_AND: execute_alu_and,
    Operation.ALU_XOR: execute_alu_xor,
    Operation.ALU_ADD: execute_alu_add,
    Operation.ALU_SUB: execute_alu_sub,
    Operation.ALU_SHIFT_RIGHT: execute_alu_shift_right,
    Operation.ALU_SUB_REVERSED: execute_alu_sub_reversed,
    Operation.ALU_SHIFT_LEFT: execute_alu_shift_left,
    Operation.SKIP_NOT_EQUAL_REGISTER: execute_skip_if_not_equal_register,
    Operation.SET_INDEX: execute_set_index,
    Operation.JUMP_WITH_OFFSET: execute_jump_with_offset,
    Operation.RANDOM: execute_random,
    Operation.DRAW: execute_display,
    Operation.SKIP_IF_KEY: execute_skip_if_key,
    Operation.SKIP_IF_NOT_KEY: execute_skip_if_not_key,
    Operation.GET_DELAY_TIMER: execute_get_delay_timer,
    Operation.WAIT_FOR_KEY: execute_wait_for_key,
    Operation.SET_DELAY_TIMER: execute_set_delay_timer,
    Operation.SET_SOUND_TIMER: execute_set_sound_timer,
    Operation.ADD_TO_INDEX: execute_add_to_index,
    Operation.FONT_CHARACTER: execute_font_character,
    Operation.BCD: execute_bcd_conversion,
    Operation.STORE_REGISTERS: execute_store_registers,
    Operation.LOAD_REGISTERS: execute_load_registers,
}

# Dispatch table indexed by Operation value
DISPATCH_TABLE = tuple(HANDLERS[operation] for operation in Operation)


class StepStatus(IntEnum):
    """Outcome of a driver step, ordered by severity."""
    CONTINUE = 0
    REDRAW = 1
    FAULT = 2


@dataclass
class StepResult:
    """Typed result of one driver step.

    Attributes:
        status: StepStatus value
        instruction: Word fetched at ``address`` (0 if nothing was fetched)
        address: Program counter the word was fetched from
    """
    status: jnp.ndarray
    instruction: jnp.ndarray
    address: jnp.ndarray

    @property
    def redraw_due(self) -> jnp.ndarray:
        return self.status == int(StepStatus.REDRAW)

    @property
    def faulted(self) -> jnp.ndarray:
        return self.status == int(StepStatus.FAULT)


class RomLoadError(ValueError):
    """Raised when a program cannot be loaded into memory."""


def _make_result(status, instruction, address) -> StepResult:
    return StepResult(
        status=jnp.asarray(status, dtype=jnp.int32),
        instruction=jnp.asarray(instruction, dtype=jnp.uint16),
        address=jnp.asarray(address, dtype=jnp.uint16),
    )


def dispatch(state: EmulatorState, decoded_instruction: DecodedInstruction) -> EmulatorState:
    """Run the handler selected by the decoded operation tag."""
    return jax.lax.switch(decoded_instruction.operation, DISPATCH_TABLE, state, decoded_instruction)


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction."""
    return dispatch(state, decode(instruction))


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> jnp.ndarray:
    """Read the big-endian instruction word at the program counter."""
    return _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])


def _resolve_key_wait(state: EmulatorState) -> EmulatorState:
    """Deliver the lowest pressed key to the waiting register, if any key is down."""
    pressed = jnp.any(state.keypad)
    resumed = state.waiting_for_key & pressed
    key = jnp.argmax(state.keypad).astype(jnp.uint8)
    return state.replace(
        V=jnp.where(resumed, state.V.at[state.key_target].set(key), state.V),
        waiting_for_key=state.waiting_for_key & ~pressed,
    )


def _idle(state: EmulatorState) -> tuple[EmulatorState, StepResult]:
    return state, _make_result(StepStatus.CONTINUE, 0, state.pc)


def _cycle(state: EmulatorState) -> tuple[EmulatorState, StepResult]:
    in_bounds = state.pc <= MEMORY_SIZE - INSTRUCTION_SIZE
    instruction = jnp.where(in_bounds, fetch(state), 0)
    decoded_instruction = decode(instruction)
    operation = jnp.where(in_bounds, decoded_instruction.operation, int(Operation.NOT_IMPLEMENTED))

    status = jnp.where(
        operation == int(Operation.NOT_IMPLEMENTED),
        int(StepStatus.FAULT),
        jnp.where(operation == int(Operation.DRAW), int(StepStatus.REDRAW), int(StepStatus.CONTINUE)),
    )
    result = _make_result(status, instruction, state.pc)
    new_state = dispatch(state, decoded_instruction.replace(operation=operation))
    return new_state, result


@jax.jit
def step(state: EmulatorState) -> tuple[EmulatorState, StepResult]:
    """Advance the machine by one instruction.

    While waiting for a key the step is a no-op until some key is pressed; the
    key is then stored and the next instruction runs in the same step.

    Returns:
        Tuple of the new state and a StepResult. A FAULT leaves the state
        untouched, so the host can inspect it and decide whether to stop.
    """
    state = _resolve_key_wait(state)
    return jax.lax.cond(state.waiting_for_key, _idle, _cycle, state)


def decrement_timers(state: EmulatorState) -> EmulatorState:
    """60 Hz tick of the delay and sound timers, saturating at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, steps_per_frame: int = DEFAULT_STEPS_PER_FRAME) -> tuple[EmulatorState, StepResult]:
    """Run one host frame: up to ``steps_per_frame`` steps, then one timer tick.

    Stepping stops at the first fault. The returned status is the most severe
    one seen during the frame; instruction and address come from the last step
    that ran.
    """
    def run_step(carry, _):
        state, result = carry

        def advance_machine(state):
            state, step_result = step(state)
            return state, step_result.replace(status=jnp.maximum(result.status, step_result.status))

        return jax.lax.cond(result.faulted, lambda s: (s, result), advance_machine, state), None

    initial_result = _make_result(StepStatus.CONTINUE, 0, state.pc)
    (state, result), _ = jax.lax.scan(run_step, (state, initial_result), length=steps_per_frame)
    return decrement_timers(state), result


@partial(jax.jit, static_argnums=(1, 2, 3))
def run_frames(
    state: EmulatorState,
    num_frames: int,
    steps_per_frame: int = DEFAULT_STEPS_PER_FRAME,
    show_progress: bool = False,
) -> tuple[EmulatorState, StepResult]:
    """Run ``num_frames`` frames headlessly with the keypad left as it is.

    Returns:
        Tuple of the final state and the per-frame StepResults stacked along
        the leading axis.
    """
    def frame(state, _):
        return run_frame(state, steps_per_frame)

    if show_progress:
        frame = scan_with_progress(num_frames, desc=f"Emulating ({num_frames:,} frames)")(frame)

    return jax.lax.scan(frame, state, jnp.arange(num_frames))


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy program bytes into CHIP-8 memory starting at 0x200."""
    if len(program) > MAX_PROGRAM_SIZE:
        raise RomLoadError(
            f"Program is {len(program)} bytes; at most {MAX_PROGRAM_SIZE} bytes fit above 0x{PROGRAM_START:03X}"
        )
    if not program:
        return state
    program_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    try:
        with open(filename, 'rb') as f:
            rom_data = f.read()
    except OSError as e:
        raise RomLoadError(f"Could not read ROM '{filename}': {e}") from e
    return load_program(state, rom_data)
