# Bundles everything that configures a core, so that callers can describe a
# core once and build it later.

from dataclasses import dataclass, field
from typing import Optional, Sequence

from farthing.cpu import Cpu
from farthing.image import load_program, load_data, reference_program, parse_seed
from farthing.regfile import DEFAULT_SEED

@dataclass
class CoreConfig:
    program: Sequence[int] = field(default_factory = reference_program)
    data: Sequence[int] = ()
    seed: Sequence[int] = DEFAULT_SEED

    @classmethod
    def from_files(cls,
                   program: Optional[str] = None,
                   data: Optional[str] = None,
                   seed: Optional[str] = None) -> "CoreConfig":
        """Builds a config from file paths and a seed string, any of which may
        be omitted to get the defaults."""
        settings = {}
        if program is not None:
            settings['program'] = load_program(program)
        if data is not None:
            settings['data'] = load_data(data)
        if seed is not None:
            settings['seed'] = parse_seed(seed)
        return cls(**settings)

    def build(self) -> Cpu:
        return Cpu(
            program = self.program,
            data = self.data,
            seed = self.seed,
        )
