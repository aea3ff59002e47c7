# 8-bit x 4 register file with two asynchronous read ports.

from amaranth import *
from amaranth.lib.wiring import *

from farthing import AlwaysReady
from farthing.isa import NREGS

# Contents of the register file coming out of reset, R0 first.
DEFAULT_SEED = (10, 5, 3, 0)

def RegWrite(addrbits = 2):
    return Signature({
        'reg': Out(addrbits),
        'value': Out(8),
    })

def RegRead(addrbits = 2):
    return Signature({
        'reg': Out(addrbits),
        'value': In(8),
    })

class RegFile(Component):
    """Four 8-bit general registers.

    Both read ports are combinational, so a read of a register that is being
    written in the same cycle sees the old contents; the write lands on the
    next edge. Reset takes priority over a simultaneous write and reloads the
    seed.

    Parameters
    ----------
    seed (sequence of int): register contents after reset, one per register.

    Attributes
    ----------
    rst (input): synchronous reset, reloads the seed.
    read_a (port): first read port, feeds the ALU A operand.
    read_b (port): second read port, feeds the ALU B operand.
    write_cmd (port): write strobe, register number and value.
    regs (array of signal): the registers themselves, for observation.
    """
    rst: In(1)
    read_a: In(RegRead())
    read_b: In(RegRead())
    write_cmd: In(AlwaysReady(RegWrite()))

    def __init__(self, *, seed = DEFAULT_SEED):
        super().__init__()

        seed = tuple(seed)
        assert len(seed) == NREGS, \
                f"register seed must have {NREGS} entries, got {len(seed)}"
        for v in seed:
            assert 0 <= v <= 0xFF, f"register seed value out of range: {v}"

        self.seed = seed
        self.regs = Array(
            Signal(8, init = v, name = f"r{n}") for n, v in enumerate(seed)
        )

    def elaborate(self, platform):
        m = Module()

        m.d.comb += [
            self.read_a.value.eq(self.regs[self.read_a.reg]),
            self.read_b.value.eq(self.regs[self.read_b.reg]),
        ]

        with m.If(self.rst):
            m.d.sync += [r.eq(v) for r, v in zip(self.regs, self.seed)]
        with m.Elif(self.write_cmd.valid):
            m.d.sync += self.regs[self.write_cmd.payload.reg].eq(
                self.write_cmd.payload.value,
            )

        return m
