"""
Matching Table - Precomputed protein/regulatory-site affinities

Every regulatory protein (including inputs) is compared against the enhancer
and inhibitor site of every gene (TF genes first, then P genes). The match
score is the number of complementary bits between signature and site, 0..32.

    cbits[site][gene][protein]  site 0 = enhancer, 1 = inhibitor
    umax                        highest score anywhere in the table
    exp[s] = e^(beta * (s - umax))   transfer table, s = 0..umax

The table only changes when the protein set changes. Per-step production
rates read from it and never recompute matches:

    dc_i = delta * sum_j c_j * (exp[cbits[0][i][j]] - exp[cbits[1][i][j]])
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence

from .genome import Gene, WORD_MASK

ENHANCER = 0
INHIBITOR = 1


def complement_count(a: int, b: int) -> int:
    """Number of bit positions where a's bit is the complement of b's bit."""
    return bin((int(a) ^ int(b)) & WORD_MASK).count("1")


def calculate_umax(gene: Gene, signatures: Sequence[int]) -> int:
    """
    Best match between any protein and either regulatory site of one gene.

    Returns 0 when there are no proteins.
    """
    best = 0
    for sig in signatures:
        best = max(best,
                   complement_count(sig, gene.enhancer),
                   complement_count(sig, gene.inhibitor))
    return best


def _popcount32(values: np.ndarray) -> np.ndarray:
    """Per-element popcount of a uint32 array."""
    values = np.ascontiguousarray(values, dtype=np.uint32)
    as_bytes = values.reshape(-1).view(np.uint8)
    counts = np.unpackbits(as_bytes).reshape(-1, 32).sum(axis=1)
    return counts.reshape(values.shape).astype(np.int64)


def transfer_table(umax: int, beta: float = 1.0) -> np.ndarray:
    """Monotone transfer values exp[0..umax], with exp[umax] == 1."""
    scores = np.arange(umax + 1, dtype=np.float64)
    return np.exp(beta * (scores - umax))


@dataclass(frozen=True)
class MatchingTable:
    """
    Read-only matching data for one network topology.

    signal[i][j] is the net regulatory effect of protein j on gene i,
    exp[enhancer score] - exp[inhibitor score].
    """
    cbits: np.ndarray       # (2, n_genes, n_proteins) int
    umax: int
    exp: np.ndarray         # (umax + 1,) float
    signal: np.ndarray      # (n_genes, n_proteins) float

    @property
    def n_genes(self) -> int:
        return self.cbits.shape[1]

    @property
    def n_proteins(self) -> int:
        return self.cbits.shape[2]

    def edge_weight(self, gene_index: int, protein_index: int) -> float:
        return float(self.signal[gene_index, protein_index])


def build_matching_table(genes: Sequence[Gene],
                         signatures: Sequence[int],
                         beta: float = 1.0) -> MatchingTable:
    """
    Fill the full matching table.

    Assigns each gene its row index in list order, so callers pass TF genes
    followed by P genes.

    Args:
        genes: All genes, TF first then P
        signatures: Regulatory protein signatures, inputs appended last
        beta: Steepness of the transfer table
    """
    for i, gene in enumerate(genes):
        gene.index = i

    n_genes = len(genes)
    n_proteins = len(signatures)

    if n_genes == 0 or n_proteins == 0:
        cbits = np.zeros((2, n_genes, n_proteins), dtype=np.int64)
    else:
        sites = np.array(
            [[g.enhancer for g in genes], [g.inhibitor for g in genes]],
            dtype=np.uint32
        )
        sigs = np.array([int(s) & WORD_MASK for s in signatures], dtype=np.uint32)
        cbits = _popcount32(sites[:, :, None] ^ sigs[None, None, :])

    umax = int(cbits.max()) if cbits.size else 0
    exp = transfer_table(umax, beta)
    signal = exp[cbits[ENHANCER]] - exp[cbits[INHIBITOR]]

    for arr in (cbits, exp, signal):
        arr.setflags(write=False)

    return MatchingTable(cbits=cbits, umax=umax, exp=exp, signal=signal)


def produce(table: MatchingTable, gene: Gene, concentrations: np.ndarray,
            delta: float = 1.0) -> float:
    """
    Production delta for one gene's protein.

    Works the same for TF and P genes; the gene's index picks the table row.
    The result is added to the protein's concentration by the caller.
    """
    if len(concentrations) == 0:
        return 0.0
    return delta * float(np.dot(table.signal[gene.index], concentrations))


def production_rates(table: MatchingTable, concentrations: np.ndarray,
                     delta: float = 1.0, rows: Optional[slice] = None) -> np.ndarray:
    """Production deltas for every gene (or a slice of rows) at once."""
    signal = table.signal if rows is None else table.signal[rows]
    if signal.shape[1] == 0:
        return np.zeros(signal.shape[0])
    return delta * (signal @ concentrations)
