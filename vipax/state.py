"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, field, PyTreeNode

from vipax.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS
)


@dataclass(frozen=True)
class StackState:
    """Return address stack.

    ``pointer`` counts the held entries; live entries occupy ``data[:pointer]``.
    """
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))

    @property
    def depth(self) -> int:
        return int(self.pointer)


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    waiting_for_key: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    key_target: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))

    @property
    def sound_active(self) -> jnp.ndarray:
        """Whether the tone should be playing."""
        return self.sound_timer > 0


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0)) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))
