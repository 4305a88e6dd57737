"""CHIP-8 memory and register operations."""

import jax
import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.instructions import advance


def execute_set(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """6XNN - Set VX = NN."""
    value = jnp.asarray(instruction.nn, dtype=jnp.uint8)
    return advance(state.replace(V=state.V.at[instruction.x].set(value)))


def execute_add(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """7XNN - Add NN to VX, wrapping at 256. VF is left alone."""
    value = jnp.asarray(instruction.nn, dtype=jnp.uint8)
    return advance(state.replace(V=state.V.at[instruction.x].add(value)))


def execute_set_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """ANNN - Set I = NNN."""
    return advance(state.replace(I=jnp.asarray(instruction.nnn, dtype=jnp.uint16)))


def execute_random(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """CXNN - Set VX = random & NN."""
    key, subkey = jax.random.split(state.rng)
    random_value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32)
    masked_value = (random_value & instruction.nn).astype(jnp.uint8)
    return advance(state.replace(V=state.V.at[instruction.x].set(masked_value), rng=key))
