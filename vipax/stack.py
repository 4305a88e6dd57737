"""CHIP-8 stack operations.

Overflow and underflow are not fatal: the offending push is dropped, a pop
from an empty stack yields ``STACK_UNDERFLOW_ADDRESS``, and both are reported
through the package logger from inside compiled code.
"""

import jax
import jax.numpy as jnp
from vipax.constants import STACK_SIZE, STACK_UNDERFLOW_ADDRESS
from vipax.logging import logger
from vipax.state import StackState


def _report_overflow(overflowed, address):
    if overflowed:
        logger.warning(f"Stack overflow: dropped return address 0x{int(address):04X}")


def _report_underflow(underflowed):
    if underflowed:
        logger.warning(
            f"Stack underflow: returning to 0x{STACK_UNDERFLOW_ADDRESS:04X}"
        )


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack, returning the new stack and an overflow flag."""
    overflowed = stack.pointer >= STACK_SIZE
    new_pointer = jnp.where(overflowed, stack.pointer, stack.pointer + 1)
    new_data = jnp.where(
        overflowed,
        stack.data,
        stack.data.at[stack.pointer].set(jnp.asarray(address, dtype=jnp.uint16)),
    )
    jax.debug.callback(_report_overflow, overflowed, address)
    return stack.replace(data=new_data, pointer=new_pointer), overflowed


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack, returning the new stack, the address and an underflow flag."""
    underflowed = stack.pointer == 0
    top = jnp.maximum(stack.pointer, 1) - 1
    popped_address = jnp.where(
        underflowed,
        jnp.asarray(STACK_UNDERFLOW_ADDRESS, dtype=jnp.uint16),
        stack.data[top],
    )
    new_pointer = jnp.where(underflowed, stack.pointer, stack.pointer - 1)
    new_data = stack.data.at[top].set(0)
    jax.debug.callback(_report_underflow, underflowed)
    return stack.replace(data=new_data, pointer=new_pointer), popped_address, underflowed
