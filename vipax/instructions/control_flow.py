"""CHIP-8 control flow instructions."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import INSTRUCTION_SIZE
from vipax.stack import push
from vipax.instructions import advance


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.asarray(instruction.nnn, dtype=jnp.uint16))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    stack, _ = push(state.stack, state.pc + INSTRUCTION_SIZE)
    return execute_jump(state.replace(stack=stack), instruction)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions: advance two instructions when the condition holds."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        return advance(state, jnp.where(condition, 2, 1))
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)

execute_skip_if_key = make_skip_instruction(
    lambda state, inst: state.keypad[state.V[inst.x] & 0xF]
)

execute_skip_if_not_key = make_skip_instruction(
    lambda state, inst: ~state.keypad[state.V[inst.x] & 0xF]
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0."""
    jump_address = jnp.asarray(instruction.nnn, dtype=jnp.uint16) + state.V[0].astype(jnp.uint16)
    return state.replace(pc=jump_address)
