# Instruction and data storage for the core.

from amaranth import *
from amaranth.lib.wiring import *
from amaranth.lib.memory import Memory

from farthing import mux
from farthing.isa import NOP_WORD

PROGRAM_WORDS = 256
DATA_BYTES = 256

class ProgramRom(Component):
    """Read-only instruction store, 256 x 16 bits.

    This uses an Amaranth generic memory with a combinational read port, so
    the word at addr appears on data in the same cycle with no clock
    involved. There is no write port; the contents are fixed at construction.

    Parameters
    ----------
    contents (list of integer): program image. If shorter than 256 words, the
        remainder is filled with NOP.

    Attributes
    ----------
    addr (input): word address, from the PC.
    data (output): instruction word at addr.
    """
    addr: In(8)
    data: Out(16)

    def __init__(self, contents):
        super().__init__()

        contents = list(contents)
        assert len(contents) <= PROGRAM_WORDS, \
                f"program image has {len(contents)} words, at most {PROGRAM_WORDS} fit"
        for word in contents:
            assert 0 <= word <= 0xFFFF, f"program word out of range: {word:#x}"
        contents += [NOP_WORD] * (PROGRAM_WORDS - len(contents))

        self.contents = contents
        self.m = Memory(
            shape = unsigned(16),
            depth = PROGRAM_WORDS,
            init = contents,
        )

    def elaborate(self, platform):
        m = Module()

        m.submodules.m = self.m

        rp = self.m.read_port(domain = "comb")

        m.d.comb += [
            rp.addr.eq(self.addr),
            self.data.eq(rp.data),
        ]

        return m

class DataMemory(Component):
    """Byte-wide data store, 256 x 8 bits.

    Reads are combinational but gated: with read_en low, read_data is zero
    rather than the stored byte. Writes land on the next edge when write_en
    is high. The cells are built from individual registers rather than an
    Amaranth Memory so that rst can put the whole store back to its initial
    image in one cycle.

    Parameters
    ----------
    contents (list of integer): initial image, also restored by rst. If
        shorter than 256 bytes, the remainder is zero. Defaults to all zero.

    Attributes
    ----------
    rst (input): restores the initial image.
    addr (input): byte address.
    read_en (input): gates read_data.
    read_data (output): byte at addr, or zero.
    write_en (input): commits write_data to addr at the next edge.
    write_data (input): byte to store.
    cells (array of signal): the storage, for observation.
    """
    rst: In(1)
    addr: In(8)
    read_en: In(1)
    read_data: Out(8)
    write_en: In(1)
    write_data: In(8)

    def __init__(self, contents = ()):
        super().__init__()

        contents = list(contents)
        assert len(contents) <= DATA_BYTES, \
                f"data image has {len(contents)} bytes, at most {DATA_BYTES} fit"
        for byte in contents:
            assert 0 <= byte <= 0xFF, f"data byte out of range: {byte:#x}"
        contents += [0] * (DATA_BYTES - len(contents))

        self.contents = contents
        self.cells = Array(
            Signal(8, init = v, name = f"dmem{n}")
            for n, v in enumerate(contents)
        )

    def elaborate(self, platform):
        m = Module()

        m.d.comb += self.read_data.eq(mux(
            self.read_en,
            self.cells[self.addr],
            0,
        ))

        with m.If(self.rst):
            m.d.sync += [c.eq(v) for c, v in zip(self.cells, self.contents)]
        with m.Elif(self.write_en):
            m.d.sync += self.cells[self.addr].eq(self.write_data)

        return m
