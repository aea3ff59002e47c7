# Simulation harness: runs a Cpu under the Amaranth simulator and collects a
# per-cycle trace of its observation port.

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from amaranth.sim import Simulator

from farthing.asm import disassemble
from farthing.control import ControlState

log = logging.getLogger(__name__)

CLOCK_PERIOD = 1e-6

@dataclass(frozen = True)
class Snapshot:
    """Everything the core exposes, for one cycle."""
    cycle: int
    state: ControlState
    pc: int
    inst: int
    alu_result: int
    regs: Tuple[int, ...]
    zero: int
    carry: int
    sign: int
    overflow: int

    def format(self) -> str:
        msg = f"{self.cycle:6} {self.state.name:<9}"
        msg += f" pc={self.pc:02x} ir={self.inst:04x} {disassemble(self.inst):<16}"
        msg += f" alu={self.alu_result:02x}"
        msg += " " + " ".join(f"r{n}={v:02x}" for n, v in enumerate(self.regs))
        msg += " " + "".join(
            letter if bit else "-"
            for letter, bit in zip("ZCSV", (self.zero, self.carry,
                                            self.sign, self.overflow))
        )
        return msg

def snapshot(ctx, cpu, cycle) -> Snapshot:
    obs = cpu.observe
    return Snapshot(
        cycle = cycle,
        state = ControlState(ctx.get(obs.state.as_value())),
        pc = ctx.get(obs.pc),
        inst = ctx.get(obs.inst),
        alu_result = ctx.get(obs.alu_result),
        regs = tuple(ctx.get(r) for r in obs.regs),
        zero = ctx.get(obs.flags.zero),
        carry = ctx.get(obs.flags.carry),
        sign = ctx.get(obs.flags.sign),
        overflow = ctx.get(obs.flags.overflow),
    )

async def reset(ctx, cpu):
    """Holds the core in reset for one edge, then releases it."""
    ctx.set(cpu.rst, 1)
    await ctx.tick()
    ctx.set(cpu.rst, 0)

def run(cpu,
        cycles: int,
        *,
        until: Optional[Callable[[Snapshot], bool]] = None,
        reset_first: bool = False) -> List[Snapshot]:
    """Clocks the core for up to `cycles` edges.

    The returned trace starts with the state before the first edge, followed
    by one snapshot after every edge, so a full run yields cycles + 1
    entries. If `until` is given it is called with each snapshot and the run
    stops as soon as it returns true.
    """
    trace = []

    sim = Simulator(cpu)
    sim.add_clock(CLOCK_PERIOD)

    async def bench(ctx):
        if reset_first:
            await reset(ctx, cpu)
        for cycle in range(cycles + 1):
            snap = snapshot(ctx, cpu, cycle)
            trace.append(snap)
            if until is not None and until(snap):
                break
            if cycle < cycles:
                await ctx.tick()

    sim.add_testbench(bench)
    sim.run()

    log.info("simulated %d cycles", len(trace) - 1)
    return trace
