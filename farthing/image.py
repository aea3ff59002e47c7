# Loading program and data images from disk.

import logging
import struct
from pathlib import Path

from farthing.asm import assemble
from farthing.isa import NOP_WORD, NREGS
from farthing.mem import PROGRAM_WORDS, DATA_BYTES

log = logging.getLogger(__name__)

REFERENCE_PROGRAM = Path(__file__).parent / "programs" / "bootstrap.s"

class ImageError(Exception):
    """Raised when an image file can't be read or doesn't fit."""

def _pad(values, depth, fill, what):
    if len(values) > depth:
        raise ImageError(f"{what} has {len(values)} entries, at most {depth} fit")
    return list(values) + [fill] * (depth - len(values))

def parse_hex(text, *, width):
    """Parses a hex image: one or more hex values per line, optionally
    prefixed with 0x, with '//' and '#' comments and '@addr' lines that move
    the load address. Gaps are returned as None.
    """
    limit = 1 << width
    image = {}
    addr = 0
    for line_num, line in enumerate(text.splitlines(), start = 1):
        line = line.split('//', 1)[0].split('#', 1)[0]
        for token in line.split():
            try:
                if token.startswith('@'):
                    addr = int(token[1:], 16)
                    if addr < 0:
                        raise ImageError(f"line {line_num}: negative load address: {token}")
                    continue
                value = int(token, 16)
            except ValueError:
                raise ImageError(f"line {line_num}: not a hex value: {token}") from None
            if value < 0:
                raise ImageError(f"line {line_num}: negative value: {token}")
            if value >= limit:
                raise ImageError(f"line {line_num}: value too wide for {width} bits: {token}")
            image[addr] = value
            addr += 1
    return [image.get(a) for a in range(max(image, default = -1) + 1)]

def load_program(path):
    """Loads an instruction image, padded with NOP to the full 256 words.

    .bin files are little-endian 16-bit words, .hex files are parsed by
    parse_hex, and .s/.asm files are assembled.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix == '.bin':
            raw = path.read_bytes()
            if len(raw) % 2 != 0:
                raise ImageError(f"{path}: odd number of bytes in a 16-bit image")
            words = list(struct.unpack("<" + "H" * (len(raw) // 2), raw))
        elif suffix == '.hex':
            words = [NOP_WORD if w is None else w
                     for w in parse_hex(path.read_text(), width = 16)]
        elif suffix in ('.s', '.asm'):
            words = assemble(path.read_text())
        else:
            raise ImageError(f"{path}: don't know how to load '{suffix}' files")
    except OSError as e:
        raise ImageError(f"{path}: {e.strerror}") from e

    log.info("loaded %d program words from %s", len(words), path)
    return _pad(words, PROGRAM_WORDS, NOP_WORD, f"{path}")

def load_data(path):
    """Loads a data memory image, padded with zero to 256 bytes.

    .bin files are raw bytes; .hex files are parsed by parse_hex.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix == '.bin':
            data = list(path.read_bytes())
        elif suffix == '.hex':
            data = [0 if b is None else b
                    for b in parse_hex(path.read_text(), width = 8)]
        else:
            raise ImageError(f"{path}: don't know how to load '{suffix}' files")
    except OSError as e:
        raise ImageError(f"{path}: {e.strerror}") from e

    log.info("loaded %d data bytes from %s", len(data), path)
    return _pad(data, DATA_BYTES, 0, f"{path}")

def reference_program():
    """The bootstrap program shipped with the package."""
    return load_program(REFERENCE_PROGRAM)

def parse_seed(text):
    """Parses a register seed written as comma separated values, e.g.
    '10,5,3,0'. Values may be decimal, 0x hex or 0b binary.
    """
    try:
        seed = tuple(int(v.strip(), 0) for v in text.split(','))
    except ValueError:
        raise ImageError(f"bad register seed: {text!r}") from None
    if len(seed) != NREGS:
        raise ImageError(f"register seed needs {NREGS} values, got {len(seed)}")
    if any(not 0 <= v <= 0xFF for v in seed):
        raise ImageError(f"register seed values must fit in 8 bits: {text!r}")
    return seed

def write_program(path, words):
    """Writes an instruction image as .bin or .hex, chosen by suffix."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == '.bin':
        path.write_bytes(struct.pack("<" + "H" * len(words), *words))
    elif suffix == '.hex':
        path.write_text("".join(f"{w:04x}\n" for w in words))
    else:
        raise ImageError(f"{path}: don't know how to write '{suffix}' files")
    log.info("wrote %d program words to %s", len(words), path)
