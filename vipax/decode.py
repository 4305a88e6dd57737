"""CHIP-8 instruction decoding."""

from enum import IntEnum

import jax.numpy as jnp
from chex import dataclass


class Operation(IntEnum):
    """Concrete CHIP-8 instructions, in dispatch-table order."""
    NOT_IMPLEMENTED = 0
    CLEAR_SCREEN = 1            # 00E0
    RETURN = 2                  # 00EE
    JUMP = 3                    # 1NNN
    CALL = 4                    # 2NNN
    SKIP_EQUAL_IMMEDIATE = 5    # 3XNN
    SKIP_NOT_EQUAL_IMMEDIATE = 6  # 4XNN
    SKIP_EQUAL_REGISTER = 7     # 5XY0
    SET_IMMEDIATE = 8           # 6XNN
    ADD_IMMEDIATE = 9           # 7XNN
    ALU_SET = 10                # 8XY0
    ALU_OR = 11                 # 8XY1
    ALU_AND = 12                # 8XY2
    ALU_XOR = 13                # 8XY3
    ALU_ADD = 14                # 8XY4
    ALU_SUB = 15                # 8XY5
    ALU_SHIFT_RIGHT = 16        # 8XY6
    ALU_SUB_REVERSED = 17       # 8XY7
    ALU_SHIFT_LEFT = 18         # 8XYE
    SKIP_NOT_EQUAL_REGISTER = 19  # 9XY0
    SET_INDEX = 20              # ANNN
    JUMP_WITH_OFFSET = 21       # BNNN
    RANDOM = 22                 # CXNN
    DRAW = 23                   # DXYN
    SKIP_IF_KEY = 24            # EX9E
    SKIP_IF_NOT_KEY = 25        # EXA1
    GET_DELAY_TIMER = 26        # FX07
    WAIT_FOR_KEY = 27           # FX0A
    SET_DELAY_TIMER = 28        # FX15
    SET_SOUND_TIMER = 29        # FX18
    ADD_TO_INDEX = 30           # FX1E
    FONT_CHARACTER = 31         # FX29
    BCD = 32                    # FX33
    STORE_REGISTERS = 33        # FX55
    LOAD_REGISTERS = 34         # FX65


def _lookup_table(entries: dict[int, Operation], size: int) -> jnp.ndarray:
    table = [Operation.NOT_IMPLEMENTED] * size
    for key, operation in entries.items():
        table[key] = operation
    return jnp.array([int(operation) for operation in table], dtype=jnp.int32)


# Keyed by the low nibble of 8XYN.
ALU_OPERATIONS = _lookup_table({
    0x0: Operation.ALU_SET,
    0x1: Operation.ALU_OR,
    0x2: Operation.ALU_AND,
    0x3: Operation.ALU_XOR,
    0x4: Operation.ALU_ADD,
    0x5: Operation.ALU_SUB,
    0x6: Operation.ALU_SHIFT_RIGHT,
    0x7: Operation.ALU_SUB_REVERSED,
    0xE: Operation.ALU_SHIFT_LEFT,
}, 16)

# Keyed by the low byte of EXNN.
KEY_OPERATIONS = _lookup_table({
    0x9E: Operation.SKIP_IF_KEY,
    0xA1: Operation.SKIP_IF_NOT_KEY,
}, 256)

# Keyed by the low byte of FXNN.
MISC_OPERATIONS = _lookup_table({
    0x07: Operation.GET_DELAY_TIMER,
    0x0A: Operation.WAIT_FOR_KEY,
    0x15: Operation.SET_DELAY_TIMER,
    0x18: Operation.SET_SOUND_TIMER,
    0x1E: Operation.ADD_TO_INDEX,
    0x29: Operation.FONT_CHARACTER,
    0x33: Operation.BCD,
    0x55: Operation.STORE_REGISTERS,
    0x65: Operation.LOAD_REGISTERS,
}, 256)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int     # First nibble
    x: int          # Second nibble (VX register)
    y: int          # Third nibble (VY register)
    n: int          # Fourth nibble (4-bit immediate)
    nn: int         # Last byte (8-bit immediate)
    nnn: int        # Last 12 bits (12-bit address)
    operation: int  # Operation tag, NOT_IMPLEMENTED when nothing matches


def classify(raw, opcode, n, nn) -> jnp.ndarray:
    """Resolve the Operation tag for an instruction word."""
    system_operation = jnp.where(
        raw == 0x00E0,
        int(Operation.CLEAR_SCREEN),
        jnp.where(raw == 0x00EE, int(Operation.RETURN), int(Operation.NOT_IMPLEMENTED)),
    )
    family_operations = jnp.array([
        system_operation,
        int(Operation.JUMP),
        int(Operation.CALL),
        int(Operation.SKIP_EQUAL_IMMEDIATE),
        int(Operation.SKIP_NOT_EQUAL_IMMEDIATE),
        int(Operation.SKIP_EQUAL_REGISTER),
        int(Operation.SET_IMMEDIATE),
        int(Operation.ADD_IMMEDIATE),
        ALU_OPERATIONS[n],
        int(Operation.SKIP_NOT_EQUAL_REGISTER),
        int(Operation.SET_INDEX),
        int(Operation.JUMP_WITH_OFFSET),
        int(Operation.RANDOM),
        int(Operation.DRAW),
        KEY_OPERATIONS[nn],
        MISC_OPERATIONS[nn],
    ], dtype=jnp.int32)
    return family_operations[opcode]


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    raw = instruction & 0xFFFF
    opcode = (raw & 0xF000) >> 12
    n = raw & 0x000F
    nn = raw & 0x00FF
    return DecodedInstruction(
        raw=raw,
        opcode=opcode,
        x=(raw & 0x0F00) >> 8,
        y=(raw & 0x00F0) >> 4,
        n=n,
        nn=nn,
        nnn=raw & 0x0FFF,
        operation=classify(raw, opcode, n, nn),
    )


MNEMONICS = {
    Operation.NOT_IMPLEMENTED: "??? {raw:#06x}",
    Operation.CLEAR_SCREEN: "CLS",
    Operation.RETURN: "RET",
    Operation.JUMP: "JP {nnn:#05x}",
    Operation.CALL: "CALL {nnn:#05x}",
    Operation.SKIP_EQUAL_IMMEDIATE: "SE V{x:X}, {nn:#04x}",
    Operation.SKIP_NOT_EQUAL_IMMEDIATE: "SNE V{x:X}, {nn:#04x}",
    Operation.SKIP_EQUAL_REGISTER: "SE V{x:X}, V{y:X}",
    Operation.SET_IMMEDIATE: "LD V{x:X}, {nn:#04x}",
    Operation.ADD_IMMEDIATE: "ADD V{x:X}, {nn:#04x}",
    Operation.ALU_SET: "LD V{x:X}, V{y:X}",
    Operation.ALU_OR: "OR V{x:X}, V{y:X}",
    Operation.ALU_AND: "AND V{x:X}, V{y:X}",
    Operation.ALU_XOR: "XOR V{x:X}, V{y:X}",
    Operation.ALU_ADD: "ADD V{x:X}, V{y:X}",
    Operation.ALU_SUB: "SUB V{x:X}, V{y:X}",
    Operation.ALU_SHIFT_RIGHT: "SHR V{x:X}",
    Operation.ALU_SUB_REVERSED: "SUBN V{x:X}, V{y:X}",
    Operation.ALU_SHIFT_LEFT: "SHL V{x:X}",
    Operation.SKIP_NOT_EQUAL_REGISTER: "SNE V{x:X}, V{y:X}",
    Operation.SET_INDEX: "LD I, {nnn:#05x}",
    Operation.JUMP_WITH_OFFSET: "JP V0, {nnn:#05x}",
    Operation.RANDOM: "RND V{x:X}, {nn:#04x}",
    Operation.DRAW: "DRW V{x:X}, V{y:X}, {n}",
    Operation.SKIP_IF_KEY: "SKP V{x:X}",
    Operation.SKIP_IF_NOT_KEY: "SKNP V{x:X}",
    Operation.GET_DELAY_TIMER: "LD V{x:X}, DT",
    Operation.WAIT_FOR_KEY: "LD V{x:X}, K",
    Operation.SET_DELAY_TIMER: "LD DT, V{x:X}",
    Operation.SET_SOUND_TIMER: "LD ST, V{x:X}",
    Operation.ADD_TO_INDEX: "ADD I, V{x:X}",
    Operation.FONT_CHARACTER: "LD F, V{x:X}",
    Operation.BCD: "LD B, V{x:X}",
    Operation.STORE_REGISTERS: "LD [I], V{x:X}",
    Operation.LOAD_REGISTERS: "LD V{x:X}, [I]",
}


def disassemble(instruction: int) -> str:
    """Render a 16-bit instruction as an assembly mnemonic."""
    decoded = decode(int(instruction))
    fields = {
        name: int(getattr(decoded, name))
        for name in ("raw", "x", "y", "n", "nn", "nnn")
    }
    return MNEMONICS[Operation(int(decoded.operation))].format(**fields)
