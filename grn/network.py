"""
Gene Regulatory Network - Discrete-time protein concentration dynamics

The network is grown from a genome in three fixed stages:
1. Scan    - locate TF and P genes in the bit string
2. Express - turn each gene into a protein signature
3. Match   - precompute how strongly every regulatory protein binds every
             gene's enhancer and inhibitor sites

It is then iterated. Each step every gene's production delta is computed
from the concentrations at the start of the step (synchronous update),
applied, floored at ZERO, and renormalized:

    regulatory proteins sum to 1 - (total input concentration)
    output proteins sum to 1
    input proteins are never touched

LIFECYCLE:
    UNINITIALIZED -> STABILIZING -> READY -> RUNNING -> READY ... -> TERMINATED

USAGE:
    from grn import GeneRegulatoryNetwork, Protein, random_genome

    grn = GeneRegulatoryNetwork(random_genome(seed=7))
    grn.init()                        # run to rest (or INIT_PERIOD steps)
    history = grn.run(500)            # (501, n_tf + n_inputs + n_p)

    grn.inject_inputs([Protein.input(0.1, 0x0000FFFF)])
    history = grn.run(500)
"""

import logging
import numpy as np
from dataclasses import dataclass, asdict, fields
from typing import Dict, Iterable, List, Optional, Sequence, Union
from enum import Enum

from .genome import Gene, Genome, encode_genes
from .scanner import scan_genome
from .expression import Protein, ProteinRole, ZERO, express_genes
from .matching import MatchingTable, build_matching_table, produce, production_rates

log = logging.getLogger("grn.network")


# =============================================================================
# CONFIGURATION
# =============================================================================

# Length of the initial stabilization run
INIT_PERIOD = 10000

# Window, in timesteps, over which rest is checked
REST_STEP = 100

# Largest change over the window still counted as rest
REST_EPSILON = ZERO


@dataclass
class GRNConfig:
    """Tunable parameters of the network dynamics."""
    zero: float = ZERO                  # Concentration floor
    init_period: int = INIT_PERIOD      # Stabilization step cap
    rest_step: int = REST_STEP          # Rest detector window
    rest_epsilon: float = REST_EPSILON  # Rest detector tolerance
    beta: float = 1.0                   # Transfer table steepness
    delta: float = 1.0                  # Production rate constant

    def __post_init__(self):
        if self.zero <= 0.0:
            raise ValueError(f"zero must be positive, got {self.zero}")
        if self.init_period < 0:
            raise ValueError(f"init_period must be non-negative, got {self.init_period}")
        if self.rest_step < 1:
            raise ValueError(f"rest_step must be at least 1, got {self.rest_step}")
        if self.rest_epsilon < 0.0:
            raise ValueError(f"rest_epsilon must be non-negative, got {self.rest_epsilon}")

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict) -> 'GRNConfig':
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


class NetworkPhase(Enum):
    """Lifecycle phases of a network."""
    UNINITIALIZED = "uninitialized"
    STABILIZING = "stabilizing"
    READY = "ready"
    RUNNING = "running"
    TERMINATED = "terminated"


# =============================================================================
# NETWORK
# =============================================================================

class GeneRegulatoryNetwork:
    """
    A gene regulatory network and its concentration state.

    Regulatory concentrations are held in one vector, the TF proteins
    followed by the input proteins. History rows use the same column order
    followed by the output proteins.
    """

    def __init__(self,
                 genome: Union[Genome, Iterable[int]],
                 inputs: Optional[Sequence[Protein]] = None,
                 config: Optional[GRNConfig] = None):
        """
        Grow a network from a genome.

        Args:
            genome: Genome or iterable of 32-bit words
            inputs: External input proteins (may be empty)
            config: Dynamics parameters, defaults if None
        """
        self.config = config or GRNConfig()
        self.genome = genome if isinstance(genome, Genome) else Genome(genome)

        # Locate genes
        scan = scan_genome(self.genome)
        self.tf_genes: List[Gene] = scan.tf_genes
        self.p_genes: List[Gene] = scan.p_genes
        self.malformed_offsets: List[int] = scan.malformed

        # Express proteins
        tf_proteins = express_genes(self.tf_genes, ProteinRole.REGULATORY)
        p_proteins = express_genes(self.p_genes, ProteinRole.OUTPUT)

        inputs = list(inputs or [])
        input_values = self._input_vector(inputs)
        self.num_inputs = len(inputs)
        self.input_concentration = float(input_values.sum())

        self.tf_signatures = np.array(
            [p.signature for p in tf_proteins] + [p.signature for p in inputs],
            dtype=np.uint32
        )
        self.p_signatures = np.array([p.signature for p in p_proteins], dtype=np.uint32)

        # Initial concentrations: (1 - inputs) / N_tf and 1 / N_p
        n_tf = len(self.tf_genes)
        tf_initial = (1.0 - self.input_concentration) / n_tf if n_tf else 0.0
        self.tf_concentrations = np.concatenate([
            np.full(n_tf, max(tf_initial, self.config.zero)),
            input_values,
        ])
        n_p = len(self.p_genes)
        self.p_concentrations = np.full(n_p, 1.0 / n_p if n_p else 0.0)

        self._table: Optional[MatchingTable] = None
        self.generate_tables()

        self.phase = NetworkPhase.UNINITIALIZED
        self.results: Optional[np.ndarray] = None
        self.init_results: Optional[np.ndarray] = None
        self.step_count = 0
        self.reached_rest = False

    @classmethod
    def from_codon_string(cls, codon_string: str,
                          inputs: Optional[Sequence[Protein]] = None,
                          config: Optional[GRNConfig] = None) -> 'GeneRegulatoryNetwork':
        """Grow a network from whitespace-separated signed 32-bit integers."""
        from .loader import parse_codon_string
        return cls(parse_codon_string(codon_string), inputs, config)

    # -------------------------------------------------------------------------
    # Sizes and views
    # -------------------------------------------------------------------------

    @property
    def num_tf_genes(self) -> int:
        return len(self.tf_genes)

    @property
    def num_p_genes(self) -> int:
        return len(self.p_genes)

    @property
    def num_tf_proteins(self) -> int:
        """Regulatory proteins including inputs."""
        return len(self.tf_concentrations)

    @property
    def num_p_proteins(self) -> int:
        return len(self.p_concentrations)

    @property
    def table(self) -> MatchingTable:
        """Matching table for the current protein set (read-only)."""
        return self._table

    @property
    def umax(self) -> int:
        return self._table.umax

    @property
    def regulatory_concentrations(self) -> np.ndarray:
        """Concentrations of expressed TF proteins, inputs excluded."""
        return self.tf_concentrations[:self.num_tf_genes]

    @property
    def input_concentrations(self) -> np.ndarray:
        return self.tf_concentrations[self.num_tf_genes:]

    @property
    def tf_proteins(self) -> List[Protein]:
        """Snapshot of regulatory proteins, inputs last."""
        n = self.num_tf_genes
        return [
            Protein(int(sig), float(c),
                    ProteinRole.REGULATORY if i < n else ProteinRole.INPUT)
            for i, (sig, c) in enumerate(zip(self.tf_signatures, self.tf_concentrations))
        ]

    @property
    def p_proteins(self) -> List[Protein]:
        return [Protein(int(sig), float(c), ProteinRole.OUTPUT)
                for sig, c in zip(self.p_signatures, self.p_concentrations)]

    def labels(self) -> List[str]:
        """Column labels of a history row: TF{i}, I{i}, P{i}."""
        return ([f"TF{i}" for i in range(self.num_tf_genes)] +
                [f"I{i}" for i in range(self.num_inputs)] +
                [f"P{i}" for i in range(self.num_p_proteins)])

    def state(self) -> np.ndarray:
        """Current concentrations in history column order."""
        return np.concatenate([self.tf_concentrations, self.p_concentrations])

    def encoding(self) -> List[int]:
        """All genes flattened to words, TF genes first."""
        return encode_genes(self.tf_genes, self.p_genes)

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def generate_tables(self) -> MatchingTable:
        """Rebuild the matching table for the current gene and protein sets."""
        genes = self.tf_genes + self.p_genes
        self._table = build_matching_table(genes, self.tf_signatures, self.config.beta)
        log.debug(
            "Built matching table: %d genes x %d proteins, umax=%d",
            len(genes), len(self.tf_signatures), self._table.umax
        )
        return self._table

    # -------------------------------------------------------------------------
    # Concentration bookkeeping
    # -------------------------------------------------------------------------

    def _input_vector(self, inputs: Sequence[Protein]) -> np.ndarray:
        values = np.array([p.concentration for p in inputs], dtype=np.float64)
        return np.maximum(values, self.config.zero)

    def _normalise_tf(self):
        """Scale expressed TF concentrations to sum to 1 - input concentration."""
        n = self.num_tf_genes
        total = self.tf_concentrations[:n].sum()
        if total > 0.0:
            self.tf_concentrations[:n] *= (1.0 - self.input_concentration) / total
        np.maximum(self.tf_concentrations[:n], self.config.zero,
                   out=self.tf_concentrations[:n])

    def _normalise_p(self):
        total = self.p_concentrations.sum()
        if total > 0.0:
            self.p_concentrations /= total
        np.maximum(self.p_concentrations, self.config.zero, out=self.p_concentrations)

    def gene_production(self, gene: Gene) -> float:
        """Production delta for a single gene at the current state."""
        return produce(self._table, gene, self.tf_concentrations, self.config.delta)

    def step(self):
        """
        Advance the network one timestep.

        Rates come from the state at the start of the step; inputs are
        left unchanged.
        """
        n_tf = self.num_tf_genes
        rates = production_rates(self._table, self.tf_concentrations, self.config.delta)

        self.tf_concentrations[:n_tf] += rates[:n_tf]
        np.maximum(self.tf_concentrations[:n_tf], self.config.zero,
                   out=self.tf_concentrations[:n_tf])
        self.p_concentrations += rates[n_tf:]
        np.maximum(self.p_concentrations, self.config.zero, out=self.p_concentrations)

        self._normalise_tf()
        self._normalise_p()
        self.step_count += 1

    def is_at_rest(self, results: np.ndarray, t: int) -> bool:
        """
        Whether no concentration moved more than rest_epsilon over the last
        rest_step timesteps of a history. Never true before rest_step steps.
        """
        window = self.config.rest_step
        if t < window:
            return False
        drift = np.abs(results[t] - results[t - window])
        return bool(np.all(drift <= self.config.rest_epsilon))

    # -------------------------------------------------------------------------
    # Running
    # -------------------------------------------------------------------------

    def _check_alive(self):
        if self.phase == NetworkPhase.TERMINATED:
            raise RuntimeError("Network has been terminated")

    def init(self) -> int:
        """
        Stabilize the network: iterate until at rest or init_period steps.

        Returns:
            Number of steps run
        """
        self._check_alive()
        self.phase = NetworkPhase.STABILIZING
        self.init_results = self._iterate(self.config.init_period, check_rest=True)
        self.phase = NetworkPhase.READY

        steps = len(self.init_results) - 1
        log.info("Stabilization finished after %d steps (at rest: %s)",
                 steps, self.reached_rest)
        return steps

    def run(self, time_steps: int, initialising: bool = False) -> np.ndarray:
        """
        Iterate the network.

        Args:
            time_steps: Number of steps (the cap when initialising)
            initialising: Stop early once the network is at rest

        Returns:
            History of shape (steps_run + 1, n_tf + n_inputs + n_p)
        """
        self._check_alive()
        if time_steps < 0:
            raise ValueError(f"time_steps must be non-negative, got {time_steps}")

        self.phase = NetworkPhase.STABILIZING if initialising else NetworkPhase.RUNNING
        self.results = self._iterate(time_steps, check_rest=initialising)
        self.phase = NetworkPhase.READY
        return self.results

    def _iterate(self, time_steps: int, check_rest: bool) -> np.ndarray:
        results = np.zeros((time_steps + 1, self.num_tf_proteins + self.num_p_proteins))
        self.reached_rest = False

        t = 0
        while t < time_steps:
            if check_rest and self.is_at_rest(results, t - 1):
                self.reached_rest = True
                break
            results[t] = self.state()
            self.step()
            t += 1

        # Final state
        results[t] = self.state()
        self.results = results[:t + 1]
        return self.results

    def inject_inputs(self, inputs: Sequence[Protein]):
        """
        Replace the input proteins.

        Expressed TF proteins keep their order and values (renormalized for
        the new input total). The matching table is rebuilt in full.
        """
        self._check_alive()
        inputs = list(inputs)
        n_tf = self.num_tf_genes

        self.tf_signatures = np.concatenate([
            self.tf_signatures[:n_tf],
            np.array([p.signature for p in inputs], dtype=np.uint32),
        ])
        self.tf_concentrations = np.concatenate([
            self.tf_concentrations[:n_tf],
            self._input_vector(inputs),
        ])
        self.num_inputs = len(inputs)
        self.input_concentration = float(self.input_concentrations.sum())

        # Old history no longer matches the column layout
        self.results = None
        self._normalise_tf()

        # TODO: rebuild only the input columns instead of the whole table
        self.generate_tables()
        log.debug("Injected %d inputs (total concentration %.4f)",
                  self.num_inputs, self.input_concentration)

    def terminate(self):
        """Release the network; further runs or injections raise."""
        self.phase = NetworkPhase.TERMINATED

    def __repr__(self) -> str:
        return (f"GeneRegulatoryNetwork(tf={self.num_tf_genes}, inputs={self.num_inputs}, "
                f"p={self.num_p_genes}, umax={self.umax}, phase={self.phase.value})")


# =============================================================================
# FACTORY
# =============================================================================

def create_network(genome: Union[Genome, Iterable[int]],
                   inputs: Optional[Sequence[Protein]] = None,
                   **overrides) -> GeneRegulatoryNetwork:
    """
    Factory function to create a network with config overrides.

    Args:
        genome: Genome or iterable of 32-bit words
        inputs: External input proteins
        **overrides: Any GRNConfig field, e.g. init_period=2000

    Returns:
        Configured GeneRegulatoryNetwork
    """
    known = {f.name for f in fields(GRNConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown config parameters: {sorted(unknown)}")
    return GeneRegulatoryNetwork(genome, inputs, GRNConfig(**overrides))
