"""CHIP-8 system instructions (0x0xxx)."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.stack import pop
from vipax.instructions import advance


def not_implemented(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Unrecognised instruction; the driver reports the fault."""
    return state


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return advance(state.replace(display=jnp.zeros_like(state.display)))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address, _ = pop(state.stack)
    return state.replace(stack=stack, pc=address)
