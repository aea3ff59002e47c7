# Instruction set definitions: opcodes, instruction word layouts, and the
# software-side encoders used by the assembler and tests.

from amaranth import *
from amaranth.lib.data import Struct, Union
from amaranth.lib.enum import Enum

# Several opcode values carry two meanings depending on which path of the
# control unit reaches them. The second name of each pair is an alias of the
# first; the control unit decides which one applies.
class Opcode(Enum, shape = 4):
    ADD = 0b0000
    SUB = 0b0001
    ADC = 0b0010
    INC = 0b0011
    DEC = 0b0100
    MUL = 0b0101
    CMP = 0b0110
    MOV = 0b0111
    AND = 0b1000
    OR = 0b1001
    XOR = 0b1010
    NOT = 0b1011
    SHL = 0b1100
    SHR = 0b1101
    ROL = 0b1110
    ROR = 0b1111

    # Control-path meanings.
    LDI = 0b0011
    JMP = 0b0100
    JZ = 0b0110
    NOP = 0b1111

# The three field layouts share one 16-bit word. Fields are listed LSB first.
class RType(Struct):
    pad: unsigned(6)
    src2: unsigned(2)
    src1: unsigned(2)
    dest: unsigned(2)
    opcode: Opcode

class IType(Struct):
    imm: unsigned(8)
    src1: unsigned(2)
    dest: unsigned(2)
    opcode: Opcode

class JType(Struct):
    target: unsigned(8)
    pad: unsigned(4)
    opcode: Opcode

class Instruction(Union):
    r: RType
    i: IType
    j: JType

INST_WIDTH = 16
NREGS = 4

def _check_reg(reg):
    assert 0 <= reg < NREGS, f"register number out of range: {reg}"
    return reg

def _check_byte(value):
    assert -128 <= value <= 255, f"value does not fit in 8 bits: {value}"
    return value & 0xFF

def encode_r(opcode, dest = 0, src1 = 0, src2 = 0):
    return (Opcode(opcode).value << 12) \
        | (_check_reg(dest) << 10) \
        | (_check_reg(src1) << 8) \
        | (_check_reg(src2) << 6)

def encode_i(opcode, dest, imm, src1 = 0):
    return (Opcode(opcode).value << 12) \
        | (_check_reg(dest) << 10) \
        | (_check_reg(src1) << 8) \
        | _check_byte(imm)

def encode_j(opcode, target, unused = 0):
    assert 0 <= unused < 16, f"unused field out of range: {unused}"
    return (Opcode(opcode).value << 12) \
        | (unused << 8) \
        | _check_byte(target)

def fields(word):
    """Splits a raw instruction word into every field of every layout.

    Returns a dict; which entries are meaningful depends on the opcode.
    """
    return {
        'opcode': Opcode((word >> 12) & 0xF),
        'dest': (word >> 10) & 0b11,
        'src1': (word >> 8) & 0b11,
        'src2': (word >> 6) & 0b11,
        'imm': word & 0xFF,
        'target': word & 0xFF,
    }

NOP_WORD = encode_r(Opcode.NOP)
