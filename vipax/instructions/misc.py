"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import FONT_START, FONT_GLYPH_SIZE, NUM_REGISTERS
from vipax.instructions import advance


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return advance(state.replace(V=state.V.at[instruction.x].set(state.delay_timer)))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Suspend fetching until a key is pressed, then store it in VX.

    The program counter moves on immediately; the driver resolves the wait on
    a later step.
    """
    return advance(state.replace(
        waiting_for_key=jnp.asarray(True),
        key_target=jnp.asarray(instruction.x, dtype=jnp.uint8),
    ))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return advance(state.replace(delay_timer=state.V[instruction.x]))


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return advance(state.replace(sound_timer=state.V[instruction.x]))


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register. No overflow flag."""
    return advance(state.replace(I=state.I + state.V[instruction.x].astype(jnp.uint16)))


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for the low nibble of VX."""
    digit = (state.V[instruction.x] & 0xF).astype(jnp.uint16)
    return advance(state.replace(I=FONT_START + digit * FONT_GLYPH_SIZE))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + state.I.astype(jnp.int32)
    new_memory = state.memory.at[indices].set(digits)
    return advance(state.replace(memory=new_memory))


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX (inclusive) in memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = state.I.astype(jnp.int32) + jnp.arange(NUM_REGISTERS)
    current_memory_values = state.memory[base_indices]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values)
    return advance(state.replace(memory=new_memory))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX (inclusive) from memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = state.I.astype(jnp.int32) + jnp.arange(NUM_REGISTERS)
    memory_values = state.memory[base_indices]
    new_V = jnp.where(register_mask, memory_values, state.V)
    return advance(state.replace(V=new_V))
