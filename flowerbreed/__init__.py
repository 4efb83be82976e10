"""
flowerbreed - minimum-expected-cost flower breeding plans

Searches a graph of exact genotype distributions, each produced by crossing
two earlier distributions and optionally selecting offspring by phenotype, for
the cheapest way to reach a target.
"""

__version__ = "0.1.0"

# Expose common submodules for convenience
from .core import *  # noqa: F401,F403
from .generation import *  # noqa: F401,F403
from .render import *  # noqa: F401,F403
from .species import *  # noqa: F401,F403
from .utils import *  # noqa: F401,F403

# Configuration presets as top-level names
from .config import PRESET_EXHAUSTIVE, PRESET_MINIMAL, PRESET_STANDARD  # noqa: F401
