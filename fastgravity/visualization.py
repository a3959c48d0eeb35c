"""
Visualization Tools
Plots of potential maps, acceleration fields and accuracy sweeps
"""

import os

import numpy as np
import matplotlib.pyplot as plt

from fastgravity.constants import SolverParameters


def plot_potential_map(X, Y, potential, positions=None, masses=None, save_path=None):
    """
    Filled contour map of the potential on a regular grid

    Parameters:
    -----------
    X, Y : ndarray
        Meshgrid coordinates, shape (ny, nx)
    potential : ndarray
        Potential values, shape (ny * nx,) or (ny, nx)
    positions : ndarray, optional
        (N, 2) body positions to overlay
    masses : ndarray, optional
        (N,) masses, used to scale the body markers
    save_path : str, optional
        Path to save figure (closed after saving)
    """
    phi = np.asarray(potential).reshape(X.shape)

    fig, ax = plt.subplots(figsize=(9, 8))
    cs = ax.contourf(X, Y, phi, levels=40, cmap='viridis')
    fig.colorbar(cs, ax=ax, label='Potential')

    if positions is not None:
        sizes = 10.0
        if masses is not None:
            sizes = 10.0 + 40.0 * np.asarray(masses) / np.max(np.abs(masses))
        ax.scatter(positions[:, 0], positions[:, 1], s=sizes, c='white',
                   edgecolors='black', linewidths=0.5, label='Bodies')
        ax.legend(fontsize=11)

    ax.set_xlabel('x', fontsize=12)
    ax.set_ylabel('y', fontsize=12)
    ax.set_title('Gravitational Potential', fontsize=14, fontweight='bold')
    ax.set_aspect('equal')

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved potential map to {save_path}")
        plt.close(fig)

    return fig


def plot_gravity_field(X, Y, gravity, positions=None, save_path=None):
    """
    Quiver plot of acceleration directions, coloured by log magnitude

    Parameters:
    -----------
    X, Y : ndarray
        Meshgrid coordinates, shape (ny, nx)
    gravity : ndarray
        Accelerations, shape (ny * nx, 2)
    positions : ndarray, optional
        (N, 2) body positions to overlay
    save_path : str, optional
        Path to save figure (closed after saving)
    """
    g = np.asarray(gravity).reshape(X.shape + (2,))
    mag = np.linalg.norm(g, axis=2)
    with np.errstate(divide='ignore', invalid='ignore'):
        ux = np.where(mag > 0, g[..., 0] / mag, 0.0)
        uy = np.where(mag > 0, g[..., 1] / mag, 0.0)
        log_mag = np.log10(np.where(mag > 0, mag, np.nan))

    fig, ax = plt.subplots(figsize=(9, 8))
    q = ax.quiver(X, Y, ux, uy, log_mag, cmap='plasma', pivot='mid')
    fig.colorbar(q, ax=ax, label='log10 |a|')

    if positions is not None:
        ax.scatter(positions[:, 0], positions[:, 1], s=8, c='black', label='Bodies')
        ax.legend(fontsize=11)

    ax.set_xlabel('x', fontsize=12)
    ax.set_ylabel('y', fontsize=12)
    ax.set_title('Gravitational Acceleration', fontsize=14, fontweight='bold')
    ax.set_aspect('equal')

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved gravity field to {save_path}")
        plt.close(fig)

    return fig


def plot_accuracy_sweep(sweep, save_path=None):
    """
    RMS and max relative error versus theta, monopole-only vs quadrupole

    Parameters:
    -----------
    sweep : dict
        Output of analysis.accuracy_sweep()
    save_path : str, optional
        Path to save figure (closed after saving)
    """
    fig, ax = plt.subplots(figsize=(9, 6))
    theta = sweep['theta']

    ax.semilogy(theta, sweep['rms_mono'], 'o-', color='steelblue', label='RMS (monopole)')
    ax.semilogy(theta, sweep['max_mono'], 's--', color='steelblue', alpha=0.6, label='Max (monopole)')
    ax.semilogy(theta, sweep['rms_quad'], 'o-', color='darkorange', label='RMS (quadrupole)')
    ax.semilogy(theta, sweep['max_quad'], 's--', color='darkorange', alpha=0.6, label='Max (quadrupole)')

    ax.set_xlabel('Opening angle θ', fontsize=12)
    ax.set_ylabel('Relative error', fontsize=12)
    ax.set_title('Barnes-Hut Accuracy vs Direct Summation', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3, which='both')
    ax.legend(fontsize=11)

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved accuracy sweep to {save_path}")
        plt.close(fig)

    return fig


def generate_output_filename(base_name: str, params: SolverParameters, n_bodies: int,
                             ext: str = 'png', output_dir: str = '.') -> str:
    """Build a descriptive output path, e.g. ./potential_500b_theta0.3_quad_python.png"""
    quad = 'quad' if params.use_quadrupole else 'mono'
    filename = f"{base_name}_{n_bodies}b_theta{params.accuracy}_{quad}_{params.backend}.{ext}"
    return os.path.join(output_dir, filename)
