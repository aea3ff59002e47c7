# The 8-bit arithmetic logic unit.

from amaranth import *
from amaranth.lib.data import Struct
from amaranth.lib.enum import Enum
from amaranth.lib.wiring import *

# Numbering matches the instruction opcodes one-for-one, but the two tables
# are distinct: the control unit owns the mapping between them.
class AluOp(Enum, shape = 4):
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

class Flags(Struct):
    zero: unsigned(1)
    carry: unsigned(1)
    sign: unsigned(1)
    overflow: unsigned(1)

class Alu(Component):
    """Purely combinational 8-bit ALU.

    Every operation is computed into a 9-bit intermediate, whose top bit
    becomes the carry flag. Overflow is only computed for ADD, ADC and CMP,
    and uses the addition rule in all three cases (operands of the same sign
    producing a result of the other sign). Everything else reports no
    overflow.

    Attributes
    ----------
    a (input): first operand. Unary operations (INC, DEC, NOT, shifts and
        rotates) operate on this one.
    b (input): second operand. MOV passes this through.
    cin (input): carry input, only consumed by ADC.
    op (input): operation select.
    result (output): low 8 bits of the intermediate.
    flags (output): zero, carry, sign and overflow for the current result.
    """
    a: In(8)
    b: In(8)
    cin: In(1)
    op: In(AluOp)

    result: Out(8)
    flags: Out(Flags)

    def elaborate(self, platform):
        m = Module()

        a = self.a
        b = self.b

        # Both of these default to zero, so an op that isn't listed below
        # yields a zero result with no carry and no overflow.
        wide = Signal(9)
        overflow = Signal(1)

        # The signed-add overflow rule, applied to whatever is in wide.
        add_overflow = (a[7] == b[7]) & (wide[7] != a[7])

        with m.Switch(self.op):
            with m.Case(AluOp.ADD):
                m.d.comb += [
                    wide.eq(a + b),
                    overflow.eq(add_overflow),
                ]
            with m.Case(AluOp.SUB):
                m.d.comb += wide.eq(a - b)
            with m.Case(AluOp.ADC):
                m.d.comb += [
                    wide.eq(a + b + self.cin),
                    overflow.eq(add_overflow),
                ]
            with m.Case(AluOp.INC):
                m.d.comb += wide.eq(a + 1)
            with m.Case(AluOp.DEC):
                m.d.comb += wide.eq(a - 1)
            with m.Case(AluOp.MUL):
                # Only the low 9 bits of the product survive.
                m.d.comb += wide.eq(a * b)
            with m.Case(AluOp.CMP):
                # The difference is produced so the flags reflect it, but the
                # control unit never writes it back.
                m.d.comb += [
                    wide.eq(a - b),
                    overflow.eq(add_overflow),
                ]
            with m.Case(AluOp.MOV):
                m.d.comb += wide.eq(b)
            with m.Case(AluOp.AND):
                m.d.comb += wide.eq(a & b)
            with m.Case(AluOp.OR):
                m.d.comb += wide.eq(a | b)
            with m.Case(AluOp.XOR):
                m.d.comb += wide.eq(a ^ b)
            with m.Case(AluOp.NOT):
                m.d.comb += wide.eq(~a)
            with m.Case(AluOp.SHL):
                # The bit shifted out lands in the carry position.
                m.d.comb += wide.eq(Cat(Const(0, 1), a))
            with m.Case(AluOp.SHR):
                m.d.comb += wide.eq(a[1:])
            with m.Case(AluOp.ROL):
                m.d.comb += wide.eq(Cat(a[7], a[:7]))
            with m.Case(AluOp.ROR):
                m.d.comb += wide.eq(Cat(a[1:], a[0]))

        m.d.comb += [
            self.result.eq(wide[:8]),
            self.flags.carry.eq(wide[8]),
            self.flags.overflow.eq(overflow),
            # Derived from the final result, after dispatch.
            self.flags.zero.eq(self.result == 0),
            self.flags.sign.eq(self.result[7]),
        ]

        return m
