# The control unit: a state machine that sequences every other block.

from amaranth import *
from amaranth.lib.enum import Enum
from amaranth.lib.wiring import *

from farthing.alu import AluOp
from farthing.isa import Opcode

class ControlState(Enum, shape = 3):
    FETCH = 0
    DECODE = 1
    EXEC = 2
    WRITEBACK = 3
    JUMP = 4
    IMM = 5

# Coarse instruction class, chosen once in DECODE. It tells the later states
# which of an opcode's meanings applies.
class InstClass(Enum, shape = 2):
    ALU = 0
    JUMP = 1
    IMM = 2

# Fine meaning of each opcode on the ALU path. This is consulted in EXEC and
# WRITEBACK for ALU-class instructions, and in JUMP, where the JZ encoding
# lands on CMP and produces the zero flag the branch tests.
ALU_TABLE = {
    Opcode.ADD: AluOp.ADD,
    Opcode.SUB: AluOp.SUB,
    Opcode.ADC: AluOp.ADC,
    Opcode.INC: AluOp.INC,
    Opcode.DEC: AluOp.DEC,
    Opcode.MUL: AluOp.MUL,
    Opcode.CMP: AluOp.CMP,
    Opcode.MOV: AluOp.MOV,
    Opcode.AND: AluOp.AND,
    Opcode.OR: AluOp.OR,
    Opcode.XOR: AluOp.XOR,
    Opcode.NOT: AluOp.NOT,
    Opcode.SHL: AluOp.SHL,
    Opcode.SHR: AluOp.SHR,
    Opcode.ROL: AluOp.ROL,
    Opcode.ROR: AluOp.ROR,
}

# Opcodes that must never change the register file, whatever state they
# reach.
NO_WRITEBACK = (Opcode.JMP, Opcode.JZ, Opcode.CMP, Opcode.NOP)

class ControlUnit(Component):
    """The control unit walks each instruction through its states and derives
    every control line in the core from the state, the opcode of the latched
    instruction, and the ALU flags.

    States:

    FETCH: latch the instruction word into the IR and advance the PC. Both
        happen on the same edge, so by DECODE the PC already points past the
        instruction being decoded.
    DECODE: classify the opcode as ALU, JUMP or IMM and remember the class.
        No other side effects.
    EXEC: drive the ALU from the opcode table. ADC also raises the carry
        input.
    IMM: drive the ALU as pass-through with the B operand taken from the
        immediate field (LDI).
    WRITEBACK: keep the ALU configured for the remembered class, write the
        result to the destination register unless the opcode is one that
        never writes, and advance the PC again.
    JUMP: advance the PC, or load it with the target for JMP, and for JZ if
        the zero flag is currently set.

    Any state encoding outside this list goes back to FETCH.

    Attributes
    ----------
    rst (input): forces FETCH.
    opcode (input): opcode field of the latched instruction.
    zero (input): live zero flag from the ALU.
    state (output): current state.
    ir_load (output): IR load enable.
    pc_enable (output): PC update enable.
    pc_load (output): PC takes the jump target rather than incrementing.
    rf_write (output): register file write strobe.
    alu_op (output): ALU operation select.
    alu_cin (output): ALU carry input.
    imm_select (output): ALU B operand comes from the immediate field.
    mem_read (output): data memory read enable. Nothing in the instruction
        set raises this.
    mem_write (output): data memory write enable. Nothing in the instruction
        set raises this.
    """
    rst: In(1)
    opcode: In(Opcode)
    zero: In(1)

    state: Out(ControlState, init = ControlState.FETCH)

    ir_load: Out(1)
    pc_enable: Out(1)
    pc_load: Out(1)
    rf_write: Out(1)
    alu_op: Out(AluOp)
    alu_cin: Out(1)
    imm_select: Out(1)
    mem_read: Out(1)
    mem_write: Out(1)

    def __init__(self):
        super().__init__()

        self.inst_class = Signal(InstClass, init = InstClass.ALU)

    def _alu_path(self, m):
        with m.Switch(self.opcode):
            for opcode, op in ALU_TABLE.items():
                with m.Case(opcode):
                    m.d.comb += self.alu_op.eq(op)
            with m.Default():
                m.d.comb += self.alu_op.eq(AluOp.ADD)
        m.d.comb += self.alu_cin.eq(self.opcode == Opcode.ADC)

    def _imm_path(self, m):
        m.d.comb += [
            self.alu_op.eq(AluOp.MOV),
            self.imm_select.eq(1),
        ]

    def elaborate(self, platform):
        m = Module()

        # Coarse classification. This is evaluated every cycle but only
        # latched, and only acted on, in DECODE.
        classified = Signal(InstClass)
        with m.If((self.opcode == Opcode.JMP) | (self.opcode == Opcode.JZ)):
            m.d.comb += classified.eq(InstClass.JUMP)
        with m.Elif(self.opcode == Opcode.LDI):
            m.d.comb += classified.eq(InstClass.IMM)
        with m.Else():
            m.d.comb += classified.eq(InstClass.ALU)

        writes_back = Signal(1)
        m.d.comb += writes_back.eq(
            ~((self.opcode == Opcode.JMP)
              | (self.opcode == Opcode.JZ)
              | (self.opcode == Opcode.CMP)
              | (self.opcode == Opcode.NOP))
        )

        # Outside of the states that set it, the ALU adds.
        m.d.comb += self.alu_op.eq(AluOp.ADD)

        next_state = Signal(ControlState)

        with m.Switch(self.state):
            with m.Case(ControlState.FETCH):
                m.d.comb += [
                    self.ir_load.eq(1),
                    self.pc_enable.eq(1),
                    next_state.eq(ControlState.DECODE),
                ]

            with m.Case(ControlState.DECODE):
                m.d.sync += self.inst_class.eq(classified)
                with m.Switch(classified):
                    with m.Case(InstClass.JUMP):
                        m.d.comb += next_state.eq(ControlState.JUMP)
                    with m.Case(InstClass.IMM):
                        m.d.comb += next_state.eq(ControlState.IMM)
                    with m.Default():
                        m.d.comb += next_state.eq(ControlState.EXEC)

            with m.Case(ControlState.EXEC):
                self._alu_path(m)
                m.d.comb += next_state.eq(ControlState.WRITEBACK)

            with m.Case(ControlState.IMM):
                self._imm_path(m)
                m.d.comb += next_state.eq(ControlState.WRITEBACK)

            with m.Case(ControlState.WRITEBACK):
                # Hold the ALU in the configuration the previous state used,
                # so the value written is the one that was computed.
                with m.Switch(self.inst_class):
                    with m.Case(InstClass.IMM):
                        self._imm_path(m)
                    with m.Default():
                        self._alu_path(m)
                m.d.comb += [
                    self.rf_write.eq(writes_back),
                    self.pc_enable.eq(1),
                    next_state.eq(ControlState.FETCH),
                ]

            with m.Case(ControlState.JUMP):
                self._alu_path(m)
                m.d.comb += [
                    self.pc_enable.eq(1),
                    self.pc_load.eq(
                        (self.opcode == Opcode.JMP)
                        | ((self.opcode == Opcode.JZ) & self.zero)
                    ),
                    next_state.eq(ControlState.FETCH),
                ]

            with m.Default():
                m.d.comb += next_state.eq(ControlState.FETCH)

        # Data memory is wired up but no instruction reaches it.
        m.d.comb += [
            self.mem_read.eq(0),
            self.mem_write.eq(0),
        ]

        with m.If(self.rst):
            m.d.sync += [
                self.state.eq(ControlState.FETCH),
                self.inst_class.eq(InstClass.ALU),
            ]
        with m.Else():
            m.d.sync += self.state.eq(next_state)

        return m
