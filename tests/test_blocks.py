# amaranth: UnusedElaboratable=no
"""
Tests for the storage blocks: program counter, register file, instruction
register, instruction ROM and data memory.
"""
import pytest

from farthing.ir import InstructionRegister
from farthing.isa import Opcode, NOP_WORD, encode_r, encode_i, encode_j
from farthing.mem import ProgramRom, DataMemory, PROGRAM_WORDS
from farthing.pc import ProgramCounter
from farthing.regfile import RegFile, DEFAULT_SEED


class TestProgramCounter:

    def test_increments_through_every_value_and_wraps(self, simulate):
        dut = ProgramCounter()
        seen = []

        async def bench(ctx):
            ctx.set(dut.enable, 1)
            for _ in range(257):
                seen.append(ctx.get(dut.pc))
                await ctx.tick()

        simulate(dut, bench)
        assert seen == list(range(256)) + [0]

    def test_holds_when_disabled(self, simulate):
        dut = ProgramCounter()

        async def bench(ctx):
            ctx.set(dut.target, 0x42)
            ctx.set(dut.load, 1)
            for _ in range(3):
                await ctx.tick()
            assert ctx.get(dut.pc) == 0

        simulate(dut, bench)

    def test_load_takes_target(self, simulate):
        dut = ProgramCounter()

        async def bench(ctx):
            ctx.set(dut.enable, 1)
            for _ in range(5):
                await ctx.tick()
            ctx.set(dut.load, 1)
            ctx.set(dut.target, 0xC8)
            await ctx.tick()
            assert ctx.get(dut.pc) == 0xC8
            ctx.set(dut.load, 0)
            await ctx.tick()
            assert ctx.get(dut.pc) == 0xC9

        simulate(dut, bench)

    def test_reset_wins_over_load(self, simulate):
        dut = ProgramCounter()

        async def bench(ctx):
            ctx.set(dut.enable, 1)
            for _ in range(7):
                await ctx.tick()
            ctx.set(dut.load, 1)
            ctx.set(dut.target, 0x80)
            ctx.set(dut.rst, 1)
            await ctx.tick()
            assert ctx.get(dut.pc) == 0

        simulate(dut, bench)


class TestRegFile:

    def test_seed_is_visible_on_both_ports(self, simulate):
        dut = RegFile()

        async def bench(ctx):
            for n, v in enumerate(DEFAULT_SEED):
                ctx.set(dut.read_a.reg, n)
                ctx.set(dut.read_b.reg, 3 - n)
                assert ctx.get(dut.read_a.value) == v
                assert ctx.get(dut.read_b.value) == DEFAULT_SEED[3 - n]

        simulate(dut, bench)

    def test_write_lands_on_next_edge(self, simulate):
        dut = RegFile()

        async def bench(ctx):
            ctx.set(dut.read_a.reg, 2)
            ctx.set(dut.write_cmd.valid, 1)
            ctx.set(dut.write_cmd.payload.reg, 2)
            ctx.set(dut.write_cmd.payload.value, 0x99)
            # Read during write sees the old contents.
            assert ctx.get(dut.read_a.value) == 3
            await ctx.tick()
            ctx.set(dut.write_cmd.valid, 0)
            assert ctx.get(dut.read_a.value) == 0x99
            # Nothing else moved.
            assert [ctx.get(r) for r in dut.regs] == [10, 5, 0x99, 0]

        simulate(dut, bench)

    def test_no_write_without_valid(self, simulate):
        dut = RegFile()

        async def bench(ctx):
            ctx.set(dut.write_cmd.payload.reg, 0)
            ctx.set(dut.write_cmd.payload.value, 0xEE)
            for _ in range(2):
                await ctx.tick()
            assert [ctx.get(r) for r in dut.regs] == list(DEFAULT_SEED)

        simulate(dut, bench)

    def test_reset_wins_over_write(self, simulate):
        dut = RegFile()

        async def bench(ctx):
            ctx.set(dut.write_cmd.valid, 1)
            ctx.set(dut.write_cmd.payload.reg, 1)
            ctx.set(dut.write_cmd.payload.value, 0x55)
            await ctx.tick()
            ctx.set(dut.write_cmd.payload.reg, 0)
            ctx.set(dut.rst, 1)
            await ctx.tick()
            assert [ctx.get(r) for r in dut.regs] == list(DEFAULT_SEED)

        simulate(dut, bench)

    def test_repeated_reads_agree(self, simulate):
        dut = RegFile(seed=(1, 2, 3, 4))

        async def bench(ctx):
            ctx.set(dut.read_a.reg, 3)
            ctx.set(dut.read_b.reg, 3)
            values = []
            for _ in range(4):
                values.append((ctx.get(dut.read_a.value), ctx.get(dut.read_b.value)))
                await ctx.tick()
            assert values == [(4, 4)] * 4

        simulate(dut, bench)

    @pytest.mark.parametrize("seed", [(1, 2, 3), (1, 2, 3, 256)])
    def test_bad_seed_is_rejected(self, seed):
        with pytest.raises(AssertionError):
            RegFile(seed=seed)


class TestInstructionRegister:

    def test_load_hold_and_reset(self, simulate):
        dut = InstructionRegister()
        word = encode_r(Opcode.ADD, 3, 0, 1)

        async def bench(ctx):
            ctx.set(dut.fetched, word)
            ctx.set(dut.load, 1)
            await ctx.tick()
            assert ctx.get(dut.word.as_value()) == word
            ctx.set(dut.load, 0)
            ctx.set(dut.fetched, 0x1234)
            for _ in range(3):
                await ctx.tick()
            assert ctx.get(dut.word.as_value()) == word
            ctx.set(dut.rst, 1)
            ctx.set(dut.load, 1)
            await ctx.tick()
            assert ctx.get(dut.word.as_value()) == 0

        simulate(dut, bench)

    def test_field_views(self, simulate):
        dut = InstructionRegister()

        async def bench(ctx):
            ctx.set(dut.load, 1)

            ctx.set(dut.fetched, encode_r(Opcode.XOR, 2, 1, 3))
            await ctx.tick()
            assert ctx.get(dut.word.r.opcode.as_value()) == Opcode.XOR.value
            assert ctx.get(dut.word.r.dest) == 2
            assert ctx.get(dut.word.r.src1) == 1
            assert ctx.get(dut.word.r.src2) == 3

            ctx.set(dut.fetched, encode_i(Opcode.LDI, 1, 0xA7))
            await ctx.tick()
            assert ctx.get(dut.word.i.dest) == 1
            assert ctx.get(dut.word.i.imm) == 0xA7

            ctx.set(dut.fetched, encode_j(Opcode.JMP, 0x3E))
            await ctx.tick()
            assert ctx.get(dut.word.j.target) == 0x3E

        simulate(dut, bench)


class TestProgramRom:

    def test_combinational_read_and_padding(self, simulate):
        program = [0x3A0A, 0x0000, 0x1234]
        dut = ProgramRom(program)

        async def bench(ctx):
            for addr, word in enumerate(program):
                ctx.set(dut.addr, addr)
                assert ctx.get(dut.data) == word
            for addr in (3, 100, 255):
                ctx.set(dut.addr, addr)
                assert ctx.get(dut.data) == NOP_WORD

        simulate(dut, bench, clocked=False)

    def test_oversized_image_is_rejected(self):
        with pytest.raises(AssertionError):
            ProgramRom([0] * (PROGRAM_WORDS + 1))


class TestDataMemory:

    def test_read_is_gated(self, simulate):
        dut = DataMemory([0x11, 0x22, 0x33])

        async def bench(ctx):
            ctx.set(dut.addr, 1)
            assert ctx.get(dut.read_data) == 0
            ctx.set(dut.read_en, 1)
            assert ctx.get(dut.read_data) == 0x22
            ctx.set(dut.addr, 200)
            assert ctx.get(dut.read_data) == 0

        simulate(dut, bench)

    def test_write_then_reset_restores_image(self, simulate):
        dut = DataMemory([0x11, 0x22])

        async def bench(ctx):
            ctx.set(dut.read_en, 1)
            ctx.set(dut.addr, 0)
            ctx.set(dut.write_en, 1)
            ctx.set(dut.write_data, 0xAB)
            assert ctx.get(dut.read_data) == 0x11
            await ctx.tick()
            ctx.set(dut.write_en, 0)
            assert ctx.get(dut.read_data) == 0xAB

            ctx.set(dut.addr, 77)
            ctx.set(dut.write_en, 1)
            ctx.set(dut.write_data, 0xCD)
            await ctx.tick()
            ctx.set(dut.write_en, 0)
            assert ctx.get(dut.read_data) == 0xCD

            ctx.set(dut.rst, 1)
            await ctx.tick()
            ctx.set(dut.rst, 0)
            assert [ctx.get(c) for c in dut.cells] == [0x11, 0x22] + [0] * 254

        simulate(dut, bench)

    def test_repeated_reads_agree(self, simulate):
        dut = DataMemory(list(range(256)))

        async def bench(ctx):
            ctx.set(dut.read_en, 1)
            ctx.set(dut.addr, 0x5A)
            values = []
            for _ in range(3):
                values.append(ctx.get(dut.read_data))
                await ctx.tick()
            assert values == [0x5A] * 3

        simulate(dut, bench)
