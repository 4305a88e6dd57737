"""CHIP-8 ALU operations (8xxx).

Each ALU function maps ``(vx, vy)`` to ``(result, flag)``. A ``None`` flag
leaves VF untouched; otherwise VF is written after VX, so the flag wins when
X is F.
"""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import FLAG_REGISTER
from vipax.instructions import advance


def alu_set(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, None]:
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, None]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, None]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, None]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY4 - Add: VX += VY, VF = carry."""
    result = vx.astype(jnp.int32) + vy.astype(jnp.int32)
    carry = result > 0xFF
    return (result & 0xFF).astype(jnp.uint8), carry


def alu_sub_xy(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when there is no borrow (VX >= VY)."""
    return vx - vy, vx >= vy


def alu_shift_right(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out. VY is ignored."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY7 - Subtract reversed: VX = VY - VX, VF = 1 when there is no borrow (VY >= VX)."""
    return vy - vx, vy >= vx


def alu_shift_left(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out. VY is ignored."""
    return vx << 1, (vx >> 7) & 1


def make_alu_instruction(alu_fn):
    """Factory turning an ALU function into an 8XYN instruction handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        vx = state.V[instruction.x]
        vy = state.V[instruction.y]
        result, flag = alu_fn(vx, vy)

        new_V = state.V.at[instruction.x].set(result.astype(jnp.uint8))
        if flag is not None:
            new_V = new_V.at[FLAG_REGISTER].set(flag.astype(jnp.uint8))
        return advance(state.replace(V=new_V))
    alu_instruction.__doc__ = alu_fn.__doc__
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_alu_instruction(alu_add)
execute_alu_sub = make_alu_instruction(alu_sub_xy)
execute_alu_shift_right = make_alu_instruction(alu_shift_right)
execute_alu_sub_reversed = make_alu_instruction(alu_sub_yx)
execute_alu_shift_left = make_alu_instruction(alu_shift_left)
