from amaranth import *
from amaranth.lib.wiring import *

from farthing.isa import Instruction

class InstructionRegister(Component):
    """Holds the instruction word for the duration of a multi-cycle
    instruction.

    Everything downstream decodes from word, never from the memory output,
    so the fields stay put through DECODE, EXEC/JUMP/IMM and WRITEBACK even
    though the PC (and so the memory output) has already moved on.

    Attributes
    ----------
    rst (input): clears the register to zero.
    load (input): capture fetched at the next edge.
    fetched (input): word coming out of instruction memory.
    word (output): latched word, viewable through any of the R, I and J
        layouts.
    """
    rst: In(1)
    load: In(1)
    fetched: In(16)

    word: Out(Instruction)

    def elaborate(self, platform):
        m = Module()

        inst = self.word.as_value()

        with m.If(self.rst):
            m.d.sync += inst.eq(0)
        with m.Elif(self.load):
            m.d.sync += inst.eq(self.fetched)

        return m
