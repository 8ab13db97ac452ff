"""
Network Visualization

matplotlib plots of a concentration history:
- Line plots of TF, input and P protein concentrations over time
- Heatmap of every protein over time

Usage:
    from grn.visualization import plot_concentrations

    history = grn.run(1000)
    plot_concentrations(history, grn.labels(), save_path="run.png")
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, List, Optional, Sequence

log = logging.getLogger("grn.visualization")

GROUP_TITLES = {
    "TF": "Regulatory Proteins",
    "I": "Input Proteins",
    "P": "Output Proteins",
}


def group_columns(labels: Sequence[str]) -> Dict[str, List[int]]:
    """Column indices per label prefix (TF, I, P), in label order."""
    groups: Dict[str, List[int]] = {"TF": [], "I": [], "P": []}
    for col, label in enumerate(labels):
        prefix = label.rstrip("0123456789")
        groups.setdefault(prefix, []).append(col)
    return groups


def plot_concentrations(history: np.ndarray, labels: Sequence[str],
                        figsize: tuple = (12, 8), save_path: Optional[str] = None):
    """
    Plot protein concentrations over time, one panel per protein group.

    Args:
        history: (timesteps, proteins) concentration matrix
        labels: Column labels, as from GeneRegulatoryNetwork.labels()
        figsize: Figure size (width, height)
        save_path: Optional path to save figure

    Returns:
        The matplotlib Figure
    """
    groups = {k: v for k, v in group_columns(labels).items() if v}
    n_panels = max(len(groups), 1)

    fig, axes = plt.subplots(n_panels, 1, figsize=figsize, sharex=True, squeeze=False)
    fig.suptitle('Protein Concentrations', fontsize=14, fontweight='bold')

    steps = np.arange(len(history))
    for ax, (prefix, cols) in zip(axes[:, 0], groups.items()):
        for col in cols:
            ax.plot(steps, history[:, col], label=labels[col], linewidth=1.2)
        ax.set_ylabel('Concentration')
        ax.set_title(GROUP_TITLES.get(prefix, prefix))
        if len(cols) <= 12:
            ax.legend(loc='upper right', fontsize=8)
        ax.grid(True, alpha=0.3)

    axes[-1, 0].set_xlabel('Timestep')
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        log.info("Saved plot to %s", save_path)

    return fig


def plot_heatmap(history: np.ndarray, labels: Sequence[str],
                 figsize: tuple = (14, 6), save_path: Optional[str] = None):
    """Plot every protein's concentration over time as a heatmap."""
    fig, ax = plt.subplots(figsize=figsize)

    matrix = history.T if len(history) else np.zeros((len(labels), 1))
    im = ax.imshow(matrix, aspect='auto', cmap='RdYlBu_r', vmin=0, vmax=1,
                   interpolation='nearest')
    ax.set_yticks(range(len(labels)))
    ax.set_yticklabels(labels, fontsize=7)
    ax.set_xlabel('Timestep')
    ax.set_title('Protein Concentrations Over Time')

    cbar = plt.colorbar(im, ax=ax)
    cbar.set_label('Concentration')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig
