"""
Shared helpers for the farthing test suite.

Hardware tests build a fresh Amaranth simulator per test and drive it from an
async testbench. `simulate` wraps the boilerplate.
"""
import pytest

from amaranth.sim import Simulator


def _simulate(dut, bench, *, clocked=True):
    sim = Simulator(dut)
    if clocked:
        sim.add_clock(1e-6)
    sim.add_testbench(bench)
    sim.run()


@pytest.fixture
def simulate():
    """Runs `bench(ctx)` against `dut`; pass clocked=False for purely
    combinational designs."""
    return _simulate
