from amaranth import *
from amaranth.lib.wiring import *

from farthing import mux

class ProgramCounter(Component):
    """8-bit program counter.

    Attributes
    ----------
    rst (input): forces the PC to zero, regardless of the other inputs.
    enable (input): allows the PC to change at the next edge.
    load (input): when enabled, take target instead of incrementing.
    target (input): jump destination.
    pc (output): current contents.
    """
    rst: In(1)
    enable: In(1)
    load: In(1)
    target: In(8)

    pc: Out(8)

    def elaborate(self, platform):
        m = Module()

        with m.If(self.rst):
            m.d.sync += self.pc.eq(0)
        with m.Elif(self.enable):
            # The incrementer is 9 bits wide; the top bit falls off on
            # assignment, which gives us the wrap from 255 to 0.
            m.d.sync += self.pc.eq(mux(
                self.load,
                self.target,
                self.pc + 1,
            ))

        return m
