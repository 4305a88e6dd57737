"""CHIP-8 instruction handlers, grouped by family."""

import jax.numpy as jnp
from vipax.constants import INSTRUCTION_SIZE
from vipax.state import EmulatorState


def advance(state: EmulatorState, instructions: int | jnp.ndarray = 1) -> EmulatorState:
    """Move the program counter forward by whole instructions."""
    offset = jnp.asarray(instructions * INSTRUCTION_SIZE, dtype=jnp.uint16)
    return state.replace(pc=state.pc + offset)
