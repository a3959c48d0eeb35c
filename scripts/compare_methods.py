"""Timing and accuracy comparison of all field evaluation methods"""
import sys
import os
import time
import numpy as np

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastgravity.analysis import random_bodies, query_grid, relative_errors, error_statistics
from fastgravity.cli import padded_extent
from fastgravity.constants import GravityConstants
from fastgravity.direct import direct_gravity, direct_gravity_numba
from fastgravity.system import GravitySystem

G = GravityConstants.G
THETA = GravityConstants.DEFAULT_ACCURACY


def time_call(fn, n_iterations=1):
    t0 = time.perf_counter()
    for _ in range(n_iterations):
        result = fn()
    return result, (time.perf_counter() - t0) / n_iterations


def run_body_count(N, resolution=40):
    """Run all methods with N bodies on a resolution x resolution query grid"""
    print(f"\n{'='*70}")
    print(f"Testing N = {N} bodies, M = {resolution**2} query points")
    print(f"{'='*70}")

    positions, masses = random_bodies(N, seed=42)
    extent_x, extent_y = padded_extent(positions)
    query, _, _ = query_grid(extent_x, extent_y, resolution)

    # 1. NumPy Direct
    print("\n1. NumPy Direct (O(N·M) vectorized):")
    a_numpy, t_numpy = time_call(lambda: direct_gravity(positions, masses, query, G))
    print(f"   Time: {t_numpy*1000:.2f} ms")

    # 2. Numba Direct (warm up first)
    print("\n2. Numba Direct (O(N·M) JIT compiled):")
    direct_gravity_numba(positions, masses, query, G)
    _, t_numba_direct = time_call(lambda: direct_gravity_numba(positions, masses, query, G))
    print(f"   Time: {t_numba_direct*1000:.2f} ms")
    print(f"   Speedup: {t_numpy / t_numba_direct:.1f}x vs NumPy")

    # 3. Python Barnes-Hut
    print(f"\n3. Python Barnes-Hut (θ={THETA}):")
    system, t_build = time_call(lambda: GravitySystem(positions, masses, backend='python'))
    a_python, t_python = time_call(lambda: system.evaluate_gravity(query, accuracy=THETA))
    stats = error_statistics(relative_errors(a_python, a_numpy))
    print(f"   Build: {t_build*1000:.2f} ms, evaluate: {t_python*1000:.2f} ms")
    print(f"   RMS error: {stats['rms_error']:.3e}, max error: {stats['max_error']:.3e}")

    # 4. Numba Barnes-Hut (warm up first)
    print(f"\n4. Numba Barnes-Hut (θ={THETA}, parallel):")
    numba_system = GravitySystem(positions, masses, backend='numba')
    numba_system.evaluate_gravity(query, accuracy=THETA)
    a_numba_bh, t_numba_bh = time_call(lambda: numba_system.evaluate_gravity(query, accuracy=THETA), 5)
    stats = error_statistics(relative_errors(a_numba_bh, a_numpy))
    print(f"   Time: {t_numba_bh*1000:.2f} ms")
    print(f"   Speedup: {t_numpy / t_numba_bh:.1f}x vs NumPy, {t_numba_direct / t_numba_bh:.1f}x vs Numba direct")
    print(f"   RMS error: {stats['rms_error']:.3e}, max error: {stats['max_error']:.3e}")
    print(f"   Agreement with Python tree: {np.max(np.abs(a_numba_bh - a_python)):.2e}")


if __name__ == "__main__":
    for N in [100, 1000, 5000]:
        run_body_count(N)
