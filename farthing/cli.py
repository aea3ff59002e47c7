import argparse
import logging
import sys
from pathlib import Path

from amaranth import *
from amaranth.back import verilog

from farthing.asm import AssemblerError, assemble
from farthing.config import CoreConfig
from farthing.image import ImageError, write_program
from farthing import sim

def cmd_run(args):
    config = CoreConfig.from_files(
        program = args.program,
        data = args.data,
        seed = args.seed,
    )
    cpu = config.build()

    trace = sim.run(cpu, args.cycles)

    if args.trace:
        for snap in trace:
            print(snap.format())

    final = trace[-1]
    print(f"after {final.cycle} cycles: state {final.state.name}, pc 0x{final.pc:02x}")
    for n, value in enumerate(final.regs):
        print(f"  R{n} = 0x{value:02x} ({value})")

def cmd_asm(args):
    try:
        source = Path(args.source).read_text()
    except OSError as e:
        raise ImageError(f"{args.source}: {e.strerror}") from e
    words = assemble(source, stride = args.stride)
    write_program(args.output, words)
    print(f"{args.source}: {len(words)} words -> {args.output}")

def cmd_verilog(args):
    config = CoreConfig.from_files(program = args.program, seed = args.seed)

    m = Module()
    # The core resets through its own rst input, so the clock domain needs
    # no reset of its own.
    cd_sync = ClockDomain("sync", reset_less = True)
    m.domains += cd_sync
    m.submodules.cpu = cpu = config.build()

    ports = [
        cd_sync.clk,
        cpu.rst,
        cpu.observe.pc,
        cpu.observe.inst,
        cpu.observe.alu_result,
        *cpu.observe.regs,
        cpu.observe.state.as_value(),
        cpu.observe.flags.as_value(),
    ]

    verilog_src = verilog.convert(m, name = "farthing", ports = ports)
    with open(args.output, "w") as v:
        v.write(verilog_src)
    print(f"wrote {args.output}")

def main(argv = None):
    parser = argparse.ArgumentParser(
        prog = "farthing",
        description = "Simulator and tools for the farthing 8-bit core",
    )
    parser.add_argument('-v', '--verbose', help = 'Log progress messages', action = 'count', default = 0)
    commands = parser.add_subparsers(dest = 'command', required = True)

    run = commands.add_parser('run', help = 'Simulate a program')
    run.add_argument('program', help = 'Program image (.bin, .hex, .s); defaults to the reference program', nargs = '?')
    run.add_argument('-d', '--data', help = 'Data memory image (.bin, .hex)', required = False)
    run.add_argument('-s', '--seed', help = 'Register seed, e.g. 10,5,3,0', required = False)
    run.add_argument('-n', '--cycles', help = 'Number of clock cycles to run', type = int, default = 64)
    run.add_argument('-t', '--trace', help = 'Print a per-cycle trace', action = 'store_true')
    run.set_defaults(func = cmd_run)

    asm = commands.add_parser('asm', help = 'Assemble a source file')
    asm.add_argument('source', help = 'Assembly source')
    asm.add_argument('-o', '--output', help = 'Output image (.bin or .hex)', required = True)
    asm.add_argument('--stride', help = 'Words per instruction slot', type = int, default = 2)
    asm.set_defaults(func = cmd_asm)

    gen = commands.add_parser('verilog', help = 'Emit Verilog for the core')
    gen.add_argument('program', help = 'Program image baked into the ROM', nargs = '?')
    gen.add_argument('-s', '--seed', help = 'Register seed, e.g. 10,5,3,0', required = False)
    gen.add_argument('-o', '--output', help = 'Output file', default = 'farthing.v')
    gen.set_defaults(func = cmd_verilog)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level = logging.DEBUG if args.verbose > 1 else
                logging.INFO if args.verbose else logging.WARNING,
        format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        args.func(args)
    except (ImageError, AssemblerError) as e:
        print(f"farthing: {e}", file = sys.stderr)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
