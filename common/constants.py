"""Common cell-state constants and generation defaults."""

# Cave lattice states (bool grid)
FILLED: bool = True
EMPTY: bool = False

# Forest lattice states (uint8 grid)
FOREST_EMPTY: int = 0
FOREST: int = 1
SEEDED: int = 2

# Generation defaults
DEFAULT_SEED: int = 7
DEFAULT_FILL_PROBABILITY: float = 0.4
DEFAULT_RNG_KIND: str = "pcg64"

DEFAULT_INITIAL_TREES: int = 10
DEFAULT_SEED_RADIUS: int = 5
DEFAULT_SEED_DECAY: float = 0.2
DEFAULT_SEED_STRENGTH: float = 0.05
DEFAULT_DESIRED_COVERAGE: float = 0.25

MIN_CAVE_SIZE: int = 3
MIN_FOREST_SIZE: int = 1
