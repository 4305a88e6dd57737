"""CHIP-8 display operations."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, FLAG_REGISTER
from vipax.instructions import advance

SPRITE_WIDTH = 8
MAX_SPRITE_HEIGHT = 15

# Pre-computed sprite-local coordinate grids, one entry per potential sprite pixel
rows, cols = jnp.meshgrid(jnp.arange(MAX_SPRITE_HEIGHT), jnp.arange(SPRITE_WIDTH), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - XOR an N-row sprite from memory[I] at (VX, VY), wrapping at the screen edges.

    VF is set to 1 when any lit pixel is switched off, 0 otherwise.
    """
    origin_x = state.V[instruction.x].astype(jnp.int32)
    origin_y = state.V[instruction.y].astype(jnp.int32)

    sprite_bytes = state.memory[state.I.astype(jnp.int32) + rows]
    bits = ((sprite_bytes >> (7 - cols)) & 1).astype(jnp.bool_) & (rows < instruction.n)

    # With at most 15 rows and 8 columns every grid cell maps to a distinct pixel.
    screen_y = (origin_y + rows) % SCREEN_HEIGHT
    screen_x = (origin_x + cols) % SCREEN_WIDTH
    sprite = jnp.zeros_like(state.display).at[screen_y, screen_x].set(bits)

    collision = jnp.any(state.display & sprite)
    return advance(state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(collision.astype(jnp.uint8)),
    ))
