# The complete core: all blocks plus the glue between them.

from amaranth import *
from amaranth.lib.wiring import *

from farthing import mux
from farthing.alu import Alu, Flags
from farthing.control import ControlUnit, ControlState
from farthing.ir import InstructionRegister
from farthing.mem import ProgramRom, DataMemory
from farthing.pc import ProgramCounter
from farthing.regfile import RegFile, DEFAULT_SEED
from farthing.isa import NREGS

# Read-only view of the core, refreshed every cycle. Directions are from the
# perspective of the core.
ObservePort = Signature({
    'pc': Out(8),
    # Latched instruction word, not the memory output.
    'inst': Out(16),
    'alu_result': Out(8),
    'regs': Out(8).array(NREGS),
    'state': Out(ControlState),
    # Live ALU flags for the current cycle.
    'flags': Out(Flags),
})

class Cpu(Component):
    """An 8-bit multi-cycle core with a 16-bit instruction word.

    Each instruction takes FETCH and DECODE, then either EXEC or IMM followed
    by WRITEBACK (four cycles), or JUMP (three cycles). The PC advances in
    FETCH and again in WRITEBACK or JUMP, so consecutive instructions sit two
    words apart in the program image.

    Parameters
    ----------
    program (list of integer): instruction image, up to 256 words. Required;
        see farthing.image for loaders and the reference program.
    data (list of integer): initial data memory image, up to 256 bytes.
        Defaults to all zero.
    seed (sequence of int): register file contents after reset. Defaults to
        R0=10, R1=5, R2=3, R3=0.

    Attributes
    ----------
    rst (input): resets every stateful block. Takes effect at the next edge.
    observe (output): PC, instruction, ALU result, registers, state and
        flags.
    """
    rst: In(1)
    observe: Out(ObservePort)

    def __init__(self, *,
                 program,
                 data = (),
                 seed = DEFAULT_SEED):
        super().__init__()

        self.pc = ProgramCounter()
        self.rom = ProgramRom(program)
        self.ir = InstructionRegister()
        self.rf = RegFile(seed = seed)
        self.alu = Alu()
        self.cu = ControlUnit()
        self.dmem = DataMemory(data)

    def elaborate(self, platform):
        m = Module()

        m.submodules.pc = pc = self.pc
        m.submodules.rom = rom = self.rom
        m.submodules.ir = ir = self.ir
        m.submodules.regfile = rf = self.rf
        m.submodules.alu = alu = self.alu
        m.submodules.cu = cu = self.cu
        m.submodules.dmem = dmem = self.dmem

        inst = ir.word

        # Reset fans out to everything that holds state.
        m.d.comb += [
            pc.rst.eq(self.rst),
            ir.rst.eq(self.rst),
            rf.rst.eq(self.rst),
            cu.rst.eq(self.rst),
            dmem.rst.eq(self.rst),
        ]

        # Fetch path: PC addresses the ROM, the IR latches its output.
        m.d.comb += [
            rom.addr.eq(pc.pc),
            ir.fetched.eq(rom.data),
            ir.load.eq(cu.ir_load),

            pc.enable.eq(cu.pc_enable),
            pc.load.eq(cu.pc_load),
            pc.target.eq(inst.j.target),
        ]

        # Datapath. The register read ports always follow the R-type source
        # fields; the immediate replaces the second operand when the control
        # unit says so.
        m.d.comb += [
            rf.read_a.reg.eq(inst.r.src1),
            rf.read_b.reg.eq(inst.r.src2),

            alu.a.eq(rf.read_a.value),
            alu.b.eq(mux(
                cu.imm_select,
                inst.i.imm,
                rf.read_b.value,
            )),
            alu.op.eq(cu.alu_op),
            alu.cin.eq(cu.alu_cin),

            rf.write_cmd.valid.eq(cu.rf_write),
            rf.write_cmd.payload.reg.eq(inst.r.dest),
            rf.write_cmd.payload.value.eq(alu.result),

            dmem.addr.eq(alu.result),
            dmem.write_data.eq(rf.read_b.value),
            dmem.read_en.eq(cu.mem_read),
            dmem.write_en.eq(cu.mem_write),
        ]

        # Control inputs.
        m.d.comb += [
            cu.opcode.eq(inst.r.opcode),
            cu.zero.eq(alu.flags.zero),
        ]

        m.d.comb += [
            self.observe.pc.eq(pc.pc),
            self.observe.inst.eq(inst.as_value()),
            self.observe.alu_result.eq(alu.result),
            self.observe.state.eq(cu.state),
            self.observe.flags.eq(alu.flags),
        ]
        for n in range(NREGS):
            m.d.comb += self.observe.regs[n].eq(rf.regs[n])

        return m
