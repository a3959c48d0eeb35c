"""
Gravity Constants and Solver Parameters
Fixed physical conventions and user-tunable settings for the Barnes-Hut solver
"""


class GravityConstants:
    """Fixed constants shared by all solvers"""

    # Gravitational constant in code units. Negative: potential and radial
    # acceleration of an attracting mass are both negative.
    G = -1.0

    # Default opening angle θ. Nodes with width/r < θ use the multipole expansion.
    DEFAULT_ACCURACY = 0.3

    # Tree construction aborts past this depth (distinct points closer than
    # ~2^-MAX_TREE_DEPTH of the root box cannot be separated).
    MAX_TREE_DEPTH = 256

    # Query-batch size above which 'auto' switches to the numba backend
    AUTO_NUMBA_MIN_BODIES = 1000
    AUTO_NUMBA_MIN_QUERIES = 10000


class SolverParameters:
    """Parameters for evaluating a field with a GravitySystem"""

    BACKENDS = ('python', 'numba', 'direct', 'auto')

    def __init__(self, accuracy: float = GravityConstants.DEFAULT_ACCURACY,
                 use_quadrupole: bool = True, backend: str = 'python',
                 G: float = GravityConstants.G, verbose: bool = False):
        """
        Initialize solver parameters.

        Args:
            accuracy: Opening angle θ (0 = exact recursion everywhere,
                      0.3 = default, 1.0 = aggressive)
            use_quadrupole: Add the quadrupole correction to far-field nodes
            backend: 'python' (recursive tree), 'numba' (flat JIT tree),
                     'direct' (brute-force O(N·M)) or 'auto'
            G: Gravitational constant (negative = attractive)
            verbose: Print build/evaluation status messages
        """
        if backend not in self.BACKENDS:
            raise ValueError(
                f"Unknown backend '{backend}', expected one of {self.BACKENDS}")
        self.accuracy = accuracy
        self.use_quadrupole = use_quadrupole
        self.backend = backend
        self.G = G
        self.verbose = verbose

    def __str__(self):
        return (f"Solver Parameters:\n"
                f"  θ = {self.accuracy}\n"
                f"  Quadrupole = {'on' if self.use_quadrupole else 'off'}\n"
                f"  Backend = {self.backend}\n"
                f"  G = {self.G}")
