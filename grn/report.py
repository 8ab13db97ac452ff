"""
Network Reports - Tables and graphs of a gene regulatory network

- Tabular dump: space-delimited concentrations per timestep, with a header
  row labelling each column TF{i}, I{i}, P{i}
- State printout: header plus the current concentrations
- Dot graph: one edge per (protein, gene) pair, blue when the protein
  excites the gene and red when it inhibits it, line width scaled by the
  strength of the effect

USAGE:
    from grn.report import write_results, write_dot_graph

    history = grn.run(2000)
    write_results("42.grn", grn, history)
    write_dot_graph(grn, "graph")        # -> graph.dot
"""

import logging
import numpy as np
from pathlib import Path
from typing import List, Optional, Union

from .loader import SourceUnreadableError

log = logging.getLogger("grn.report")

# Multiplier from regulatory signal to dot penwidth
EDGE_SCALE = 10.0


def format_value(value: float) -> str:
    """Up to 9 decimal places, trailing zeros dropped."""
    text = f"{value:.9f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def format_header(grn) -> str:
    return " ".join(grn.labels()) + " "


def format_results(results: np.ndarray) -> List[str]:
    return [" ".join(format_value(v) for v in row) + " " for row in results]


def format_state(grn) -> str:
    """
    Two lines: column labels, then current concentrations.

    Expressed TF values are tagged with their index (value:i).
    """
    values = [f"{c!r}:{i}" for i, c in enumerate(grn.regulatory_concentrations.tolist())]
    values += [repr(c) for c in grn.input_concentrations.tolist()]
    values += [repr(c) for c in grn.p_concentrations.tolist()]
    return format_header(grn) + "\n" + " ".join(values) + " "


def print_state(grn):
    print(format_state(grn))


def write_results(filename: Union[str, Path], grn,
                  results: Optional[np.ndarray] = None) -> Path:
    """
    Append a concentration history to a table file.

    The header row is written only when the file is created.

    Args:
        filename: Target table file
        grn: Network whose labels head the columns
        results: History to write (defaults to the network's last run)
    """
    path = Path(filename)
    if results is None:
        results = grn.results if grn.results is not None else grn.state()[None, :]

    created = not path.exists()
    lines = []
    if created:
        lines.append(format_header(grn))
    lines.extend(format_results(results))

    try:
        with open(path, "a") as f:
            f.write("\n".join(lines) + "\n")
    except OSError as e:
        raise SourceUnreadableError(f"Cannot write results to {path}: {e}") from e

    log.debug("Wrote %d timesteps to %s", len(results), path)
    return path


# =============================================================================
# DOT GRAPH
# =============================================================================

def _edge(source: str, target: str, signal: float) -> str:
    color = "red" if signal < 0 else "blue"
    return (f"  {source} -> {target} "
            f"[color=\"{color}\" penwidth=\"{abs(signal * EDGE_SCALE)!r}\"];")


def to_dot(grn, name: str = "grn") -> str:
    """Describe the network's regulatory edges as a Graphviz digraph."""
    table = grn.table
    n_tf = grn.num_tf_genes
    n_in = grn.num_inputs

    lines = [f"digraph graph_{name} {{"]

    lines.append("  // TF GENES")
    for i in range(n_tf):
        for j in range(n_tf):
            lines.append(_edge(f"TF_{j}", f"TF_{i}", table.edge_weight(i, j)))
        for j in range(n_in):
            lines.append(_edge(f"I_{j}", f"TF_{i}", table.edge_weight(i, n_tf + j)))

    lines.append("  // P GENES")
    for i in range(grn.num_p_genes):
        row = n_tf + i
        for j in range(n_tf):
            lines.append(_edge(f"TF_{j}", f"P_{i}", table.edge_weight(row, j)))
        for j in range(n_in):
            lines.append(_edge(f"I_{j}", f"P_{i}", table.edge_weight(row, n_tf + j)))

    lines.append("  { rank=source; " + "".join(f"I_{i} " for i in range(n_in)) + "}")
    lines.append("  { rank=tfs; " + "".join(f"TF_{i} " for i in range(n_tf)) + "}")
    lines.append("  { rank=sink; " + "".join(f"P_{i} " for i in range(grn.num_p_genes)) + "}")
    lines.append("}")
    return "\n".join(lines) + "\n"


def write_dot_graph(grn, name: str = "graph", directory: Union[str, Path] = ".") -> Path:
    """Write <directory>/<name>.dot, replacing any previous graph."""
    path = Path(directory) / f"{name}.dot"
    try:
        path.write_text(to_dot(grn, name))
    except OSError as e:
        raise SourceUnreadableError(f"Cannot write graph to {path}: {e}") from e
    log.debug("Wrote graph to %s", path)
    return path
