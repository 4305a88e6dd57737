"""Test configuration and fixtures for vipax tests."""

import pytest
import jax.numpy as jnp
from vipax import create_state, load_program


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program_state(*words, state=None):
    """Build a state with the given instruction words loaded at 0x200."""
    program = b"".join(word.to_bytes(2, "big") for word in words)
    return load_program(state if state is not None else create_state(), program)
