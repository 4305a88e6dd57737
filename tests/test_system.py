"""Tests for system instructions (0NNN)."""

import jax.numpy as jnp
from vipax import execute, STACK_UNDERFLOW_ADDRESS


class TestSystemInstructions:
    def test_return_on_empty_stack(self, fresh_state):
        """00EE with nothing on the stack jumps to the underflow address."""
        state = execute(fresh_state, 0x00EE)
        assert state.pc == STACK_UNDERFLOW_ADDRESS
        assert state.stack.pointer == 0

    def test_unrecognised_instruction_leaves_state(self, fresh_state):
        """0NNN machine routines are not supported and change nothing."""
        state = execute(fresh_state, 0x0123)
        assert state.pc == fresh_state.pc
        assert jnp.array_equal(state.V, fresh_state.V)
        assert jnp.array_equal(state.memory, fresh_state.memory)

    def test_zero_word_changes_nothing(self, fresh_state):
        state = execute(fresh_state, 0x0000)
        assert state.pc == 0x200
