"""Tests for register and memory instructions (6XNN, 7XNN, ANNN, CXNN)."""

import jax
import pytest
from vipax import execute, create_state


class TestSetAndAdd:
    def test_set_immediate(self, fresh_state):
        """6XNN - Set VX = NN."""
        state = execute(fresh_state, 0x6A42)
        assert state.V[0xA] == 0x42
        assert state.pc == 0x202

    def test_add_immediate(self, fresh_state):
        """7XNN - Add NN to VX."""
        state = execute(fresh_state, 0x6305)
        state = execute(state, 0x7310)
        assert state.V[3] == 0x15

    def test_add_immediate_wraps_without_flag(self, fresh_state):
        state = execute(fresh_state, 0x63FF)
        state = execute(state, 0x7302)
        assert state.V[3] == 0x01
        assert state.V[15] == 0

    def test_add_immediate_to_vf(self, fresh_state):
        state = execute(fresh_state, 0x7F01)
        assert state.V[15] == 1


class TestIndex:
    def test_set_index(self, fresh_state):
        """ANNN - Set I = NNN."""
        state = execute(fresh_state, 0xA123)
        assert state.I == 0x123
        assert state.pc == 0x202

    def test_set_index_maximum(self, fresh_state):
        state = execute(fresh_state, 0xAFFF)
        assert state.I == 0xFFF


class TestRandom:
    def test_random_is_masked(self, fresh_state):
        """CXNN - VX = random & NN."""
        state = fresh_state
        for _ in range(10):
            state = execute(state, 0xC10F)
            assert int(state.V[1]) & 0xF0 == 0

    def test_random_zero_mask(self, fresh_state):
        state = execute(fresh_state, 0xC100)
        assert state.V[1] == 0

    def test_random_advances_rng(self, fresh_state):
        state = execute(fresh_state, 0xC1FF)
        assert not (state.rng == fresh_state.rng).all()

    def test_random_is_deterministic_per_seed(self):
        first = execute(create_state(jax.random.PRNGKey(7)), 0xC1FF)
        second = execute(create_state(jax.random.PRNGKey(7)), 0xC1FF)
        assert first.V[1] == second.V[1]
