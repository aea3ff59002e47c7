"""
Two-pass assembler and disassembler for the farthing instruction set.

Source syntax, one statement per line:

    label:                  ; labels name the address of the next statement
        LDI   R0, 10        ; I-type: dest, immediate
        ADD   R3, R0, R1    ; R-type: dest, src1, src2
        NOT   R2, R1        ; unary R-type: dest, src1
        JMP   label         ; J-type: target
        JZ    R1, label     ; J-type with the compared register in src1
        NOP
        .org  0x40          ; move the location counter
        .word 0xF000        ; emit a raw word

Comments start with ';' or '#'. Numbers are decimal, 0x hex or 0b binary.

The core advances the PC once when it fetches an instruction and once more
when the instruction finishes, so instructions live two words apart. By
default every instruction is followed by a NOP filler word to keep the
layout in step; `stride` changes that. Labels, .org and .word all work in
plain word addresses. A .word operand may name a label defined further down;
a .org operand must be a number or a label that is already defined, because
it decides the addresses of everything after it.

How JZ compares: JZ shares its opcode with CMP, and while the control unit
sits in its JUMP state the ALU is driven as CMP of the registers named by
bits 9:8 and 7:6 of the word. Bits 7:6 are also the top of the jump target,
so the second compared register is fixed by where the target lies:
R0 for 0x00-0x3F, R1 for 0x40-0x7F, R2 for 0x80-0xBF, R3 for 0xC0-0xFF.

CMP assembles to the same opcode as JZ, so it executes as JZ too: it compares
src1 with src2 and jumps to (src2 << 6) when they are equal. The assembler
accepts it for completeness and logs a warning.
"""

import logging
import re

from farthing.isa import (
    Opcode, NREGS, NOP_WORD, encode_r, encode_i, encode_j, fields,
)

__all__ = ['Assembler', 'AssemblerError', 'assemble', 'disassemble']

log = logging.getLogger(__name__)

class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message, line_num = 0, line_text = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)

# Operand shapes.
RRR = 'RRR'   # dest, src1, src2
RR = 'RR'     # dest, src1
RI = 'RI'     # dest, imm
T = 'T'       # target
RT = 'RT'     # src1, target
NONE = 'NONE'

MNEMONICS = {
    'ADD': (Opcode.ADD, RRR),
    'SUB': (Opcode.SUB, RRR),
    'ADC': (Opcode.ADC, RRR),
    'MUL': (Opcode.MUL, RRR),
    'MOV': (Opcode.MOV, RRR),
    'AND': (Opcode.AND, RRR),
    'OR': (Opcode.OR, RRR),
    'XOR': (Opcode.XOR, RRR),
    'CMP': (Opcode.CMP, RRR),
    'INC': (Opcode.INC, RR),
    'DEC': (Opcode.DEC, RR),
    'NOT': (Opcode.NOT, RR),
    'SHL': (Opcode.SHL, RR),
    'SHR': (Opcode.SHR, RR),
    'ROL': (Opcode.ROL, RR),
    'ROR': (Opcode.ROR, RR),
    'LDI': (Opcode.LDI, RI),
    'JMP': (Opcode.JMP, T),
    'JZ': (Opcode.JZ, RT),
    'NOP': (Opcode.NOP, NONE),
}

ADDRESS_SPACE = 256

_LABEL_RE = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*):')
_REG_RE = re.compile(r'^[Rr]([0-9]+)$')

class Assembler:
    """Two-pass assembler.

    Pass 1 assigns addresses to labels; pass 2 encodes. After assemble(),
    `words` holds the image from address 0 up to the last word emitted, with
    any gaps filled by NOP, and `symbols` maps label names to addresses.
    """

    def __init__(self, stride = 2):
        assert stride >= 1, "stride must be at least one word"
        self.stride = stride
        self.symbols = {}
        self.words = []

    def assemble(self, source):
        statements = list(self._parse(source))

        self.symbols = {}
        self._pass(statements, emit = False)
        image = self._pass(statements, emit = True)

        self.words = [image.get(a, NOP_WORD) for a in range(max(image, default = -1) + 1)]
        log.debug("assembled %d words, %d symbols", len(self.words), len(self.symbols))
        return self.words

    def _parse(self, source):
        for line_num, raw in enumerate(source.splitlines(), start = 1):
            text = re.split(r'[;#]', raw, maxsplit = 1)[0].strip()
            while True:
                match = _LABEL_RE.match(text)
                if match is None:
                    break
                yield (line_num, raw, 'label', match.group(1), [])
                text = text[match.end():].strip()
            if not text:
                continue
            parts = text.split(None, 1)
            op = parts[0].upper()
            operands = []
            if len(parts) > 1:
                operands = [o.strip() for o in parts[1].split(',')]
                if any(o == '' for o in operands):
                    raise AssemblerError("empty operand", line_num, raw)
            yield (line_num, raw, 'stmt', op, operands)

    def _pass(self, statements, *, emit):
        pc = 0
        image = {}

        def put(word, line_num, raw):
            if pc >= ADDRESS_SPACE:
                raise AssemblerError(
                    f"program runs past the end of memory ({ADDRESS_SPACE} words)",
                    line_num, raw,
                )
            if emit:
                image[pc] = word

        for (line_num, raw, kind, name, operands) in statements:
            if kind == 'label':
                if not emit:
                    if name in self.symbols:
                        raise AssemblerError(f"duplicate label: {name}", line_num, raw)
                    self.symbols[name] = pc
                continue

            if name == '.ORG':
                self._expect(operands, 1, line_num, raw)
                pc = self._value(operands[0], line_num, raw, bits = 8)
            elif name == '.WORD':
                self._expect(operands, 1, line_num, raw)
                value = 0
                if emit:
                    value = self._value(operands[0], line_num, raw, bits = 16)
                put(value, line_num, raw)
                pc += 1
            elif name in MNEMONICS:
                word = 0
                if emit:
                    word = self._encode(name, operands, line_num, raw)
                put(word, line_num, raw)
                for k in range(1, self.stride):
                    pc += 1
                    # Filler that would fall off the end is simply dropped.
                    if pc < ADDRESS_SPACE:
                        put(NOP_WORD, line_num, raw)
                pc += 1
            else:
                raise AssemblerError(f"unknown mnemonic: {name}", line_num, raw)

        return image

    def _encode(self, name, operands, line_num, raw):
        opcode, shape = MNEMONICS[name]
        if name == 'CMP':
            log.warning("line %d: CMP executes as JZ and may branch to (src2 << 6)", line_num)
        if shape == RRR:
            self._expect(operands, 3, line_num, raw)
            dest, src1, src2 = (self._reg(o, line_num, raw) for o in operands)
            return encode_r(opcode, dest, src1, src2)
        if shape == RR:
            self._expect(operands, 2, line_num, raw)
            dest, src1 = (self._reg(o, line_num, raw) for o in operands)
            return encode_r(opcode, dest, src1)
        if shape == RI:
            self._expect(operands, 2, line_num, raw)
            dest = self._reg(operands[0], line_num, raw)
            imm = self._value(operands[1], line_num, raw, bits = 8, signed = True)
            return encode_i(opcode, dest, imm)
        if shape == T:
            self._expect(operands, 1, line_num, raw)
            target = self._value(operands[0], line_num, raw, bits = 8)
            return encode_j(opcode, target)
        if shape == RT:
            if len(operands) == 1:
                src1 = 0
                target = self._value(operands[0], line_num, raw, bits = 8)
            else:
                self._expect(operands, 2, line_num, raw)
                src1 = self._reg(operands[0], line_num, raw)
                target = self._value(operands[1], line_num, raw, bits = 8)
            # src1 occupies the low half of the J-type unused field.
            return encode_j(opcode, target, unused = src1)
        self._expect(operands, 0, line_num, raw)
        return encode_r(opcode)

    def _expect(self, operands, count, line_num, raw):
        if len(operands) != count:
            raise AssemblerError(
                f"expected {count} operand(s), got {len(operands)}",
                line_num, raw,
            )

    def _reg(self, text, line_num, raw):
        match = _REG_RE.match(text)
        if match is None or int(match.group(1)) >= NREGS:
            raise AssemblerError(f"bad register: {text}", line_num, raw)
        return int(match.group(1))

    def _value(self, text, line_num, raw, *, bits, signed = False):
        if text in self.symbols:
            value = self.symbols[text]
        else:
            try:
                value = int(text, 0)
            except ValueError:
                raise AssemblerError(f"bad number or unknown label: {text}",
                                     line_num, raw) from None
        low = -(1 << (bits - 1)) if signed else 0
        if not low <= value < (1 << bits):
            raise AssemblerError(f"value out of range for {bits} bits: {text}",
                                 line_num, raw)
        return value & ((1 << bits) - 1)

def assemble(source, stride = 2):
    """Assemble source text and return the list of words."""
    return Assembler(stride = stride).assemble(source)

def disassemble(word):
    """Renders a word the way the control unit will execute it.

    JMP, JZ and LDI take precedence over the ALU meanings of their opcode
    values, and 0b1111 shows as NOP because it never writes back.
    """
    f = fields(word)
    opcode = f['opcode']
    if opcode == Opcode.JMP:
        return f"JMP 0x{f['target']:02x}"
    if opcode == Opcode.JZ:
        return f"JZ R{f['src1']}, 0x{f['target']:02x}"
    if opcode == Opcode.LDI:
        return f"LDI R{f['dest']}, {f['imm']}"
    if opcode == Opcode.NOP:
        return "NOP"
    name, shape = next((n, s) for n, (o, s) in MNEMONICS.items() if o == opcode)
    if shape == RR:
        return f"{name} R{f['dest']}, R{f['src1']}"
    return f"{name} R{f['dest']}, R{f['src1']}, R{f['src2']}"
