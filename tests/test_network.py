"""
Tests for grn.network

Covers construction, the synchronous update rule, normalization, rest
detection, input injection and the network lifecycle.
"""

import numpy as np
import pytest

from grn.expression import Protein, ZERO, protein_signature
from grn.genome import Gene, Genome, encode_genes, random_genome
from grn.network import (
    GRNConfig,
    GeneRegulatoryNetwork,
    NetworkPhase,
    create_network,
    INIT_PERIOD,
    REST_STEP,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

TF_GENES = [
    Gene(0x0000FFFF, 0xFFFF0000, 0x12345600, (1, 2, 3, 4, 5)),
    Gene(0x0F0F0F0F, 0xF0F0F0F0, 0xABCDEF00, (6, 7, 8, 9, 10)),
    Gene(0x33333333, 0xCCCCCCCC, 0x00000000, (11, 12, 13, 14, 15)),
]
P_GENES = [
    Gene(0x00FF00FF, 0xFF00FF00, 0x000000FF, (16, 17, 18, 19, 20)),
    Gene(0x55555555, 0xAAAAAAAA, 0xFFFFFFFF, (21, 22, 23, 24, 25)),
]


@pytest.fixture
def genome() -> Genome:
    """Three TF genes followed by two P genes, packed back to back."""
    return Genome(encode_genes(TF_GENES, P_GENES))


@pytest.fixture
def grn(genome) -> GeneRegulatoryNetwork:
    return GeneRegulatoryNetwork(genome)


def _inputs(*values):
    sigs = [0x0000FFFF, 0xFFFF0000, 0xFFFFFFFF, 0x00000000]
    return [Protein.input(c, sigs[i % len(sigs)]) for i, c in enumerate(values)]


# ---------------------------------------------------------------------------
# TestConstruction
# ---------------------------------------------------------------------------

class TestConstruction:
    """Growing a network from a genome."""

    def test_gene_counts(self, grn) -> None:
        assert grn.num_tf_genes == 3
        assert grn.num_p_genes == 2
        assert grn.num_inputs == 0
        assert grn.malformed_offsets == []

    def test_genes_in_genome_order(self, grn) -> None:
        for found, expected in zip(grn.tf_genes, TF_GENES):
            assert found.same_structure(expected)
        for found, expected in zip(grn.p_genes, P_GENES):
            assert found.same_structure(expected)

    def test_signatures_from_coding_regions(self, grn) -> None:
        assert grn.tf_signatures.tolist() == [protein_signature(g.codons) for g in TF_GENES]
        assert grn.p_signatures.tolist() == [protein_signature(g.codons) for g in P_GENES]

    def test_initial_concentrations_without_inputs(self, grn) -> None:
        assert grn.tf_concentrations == pytest.approx([1 / 3] * 3)
        assert grn.p_concentrations == pytest.approx([0.5, 0.5])

    def test_initial_concentrations_with_inputs(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.1, 0.2))
        assert grn.num_inputs == 2
        assert grn.input_concentration == pytest.approx(0.3)
        assert grn.regulatory_concentrations == pytest.approx([0.7 / 3] * 3)
        assert grn.input_concentrations == pytest.approx([0.1, 0.2])

    def test_inputs_appended_after_tf_proteins(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.1))
        assert grn.tf_signatures.tolist()[-1] == 0x0000FFFF
        assert grn.table.n_proteins == 4
        assert grn.table.n_genes == 5

    def test_accepts_word_list(self) -> None:
        grn = GeneRegulatoryNetwork([0] * 8)
        assert grn.num_tf_genes == 1

    def test_from_codon_string(self) -> None:
        grn = GeneRegulatoryNetwork.from_codon_string("0 0 0 0 0 0 0 0")
        assert grn.num_tf_genes == 1
        assert grn.num_p_genes == 0

    def test_labels(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.1))
        assert grn.labels() == ["TF0", "TF1", "TF2", "I0", "P0", "P1"]

    def test_encoding_round_trip(self, grn) -> None:
        assert grn.encoding() == encode_genes(TF_GENES, P_GENES)

    def test_starts_uninitialized(self, grn) -> None:
        assert grn.phase == NetworkPhase.UNINITIALIZED
        assert grn.results is None


# ---------------------------------------------------------------------------
# TestStep
# ---------------------------------------------------------------------------

class TestStep:
    """One synchronous update."""

    def test_matches_manual_update(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.1))
        tf = grn.tf_concentrations.copy()
        p = grn.p_concentrations.copy()
        signal = grn.table.signal

        # Every rate is computed from the start-of-step state
        rates = signal @ tf
        n_tf = grn.num_tf_genes
        new_tf = np.maximum(tf[:n_tf] + rates[:n_tf], ZERO)
        new_tf = np.maximum(new_tf * (1 - 0.1) / new_tf.sum(), ZERO)
        new_p = np.maximum(p + rates[n_tf:], ZERO)
        new_p = np.maximum(new_p / new_p.sum(), ZERO)

        grn.step()
        assert grn.regulatory_concentrations == pytest.approx(new_tf)
        assert grn.p_concentrations == pytest.approx(new_p)
        assert grn.step_count == 1

    def test_inputs_untouched(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.05, 0.15))
        for _ in range(20):
            grn.step()
        assert grn.input_concentrations.tolist() == [0.05, 0.15]

    def test_gene_production_matches_rates(self, grn) -> None:
        before = grn.tf_concentrations.copy()
        expected = grn.table.signal @ before
        for gene in grn.tf_genes + grn.p_genes:
            assert grn.gene_production(gene) == pytest.approx(expected[gene.index])


# ---------------------------------------------------------------------------
# TestInvariants
# ---------------------------------------------------------------------------

class TestInvariants:
    """Conservation, floor and determinism over many steps."""

    @pytest.mark.parametrize("inputs", [(), (0.1,), (0.1, 0.1, 0.1)])
    def test_conservation(self, genome, inputs) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(*inputs))
        history = grn.run(200)
        n_tf = grn.num_tf_genes
        expected_tf = 1.0 - sum(inputs)
        for row in history:
            assert row[:n_tf].sum() == pytest.approx(expected_tf, abs=1e-6)
            assert row[grn.num_tf_proteins:].sum() == pytest.approx(1.0, abs=1e-6)

    def test_floor(self) -> None:
        grn = GeneRegulatoryNetwork(random_genome(128, seed=42), _inputs(0.1, 0.1))
        history = grn.run(300)
        assert history.min() >= ZERO

    def test_deterministic(self) -> None:
        config = GRNConfig(init_period=50)
        a = GeneRegulatoryNetwork(random_genome(128, seed=42), config=config)
        b = GeneRegulatoryNetwork(random_genome(128, seed=42), config=config)
        a.init()
        b.init()
        np.testing.assert_array_equal(a.run(40), b.run(40))


# ---------------------------------------------------------------------------
# TestRest
# ---------------------------------------------------------------------------

class TestRest:
    """Rest detection and stabilization."""

    def test_never_at_rest_before_window(self, grn) -> None:
        results = np.zeros((REST_STEP + 5, 3))
        assert not grn.is_at_rest(results, REST_STEP - 1)
        assert grn.is_at_rest(results, REST_STEP)

    def test_detects_movement(self) -> None:
        grn = GeneRegulatoryNetwork([0] * 8, config=GRNConfig(rest_step=2))
        results = np.array([[0.5], [0.5], [0.5], [0.6]])
        assert grn.is_at_rest(results, 2)
        assert not grn.is_at_rest(results, 3)

    def test_tolerance(self) -> None:
        grn = GeneRegulatoryNetwork([0] * 8, config=GRNConfig(rest_step=1, rest_epsilon=0.01))
        results = np.array([[0.500], [0.505], [0.520]])
        assert grn.is_at_rest(results, 1)
        assert not grn.is_at_rest(results, 2)

    def test_constant_network_stops_after_one_window(self) -> None:
        # A lone all-zero TF gene binds its own protein equally on both
        # sites, so its concentration never moves
        grn = GeneRegulatoryNetwork([0] * 8, config=GRNConfig(rest_step=10))
        steps = grn.init()
        assert steps == 11
        assert grn.reached_rest
        assert grn.init_results.shape == (12, 1)
        assert grn.phase == NetworkPhase.READY

    def test_init_capped_by_period(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, config=GRNConfig(init_period=5))
        assert grn.init() <= 5
        assert len(grn.init_results) <= 6

    def test_initialising_run_stops_at_rest(self) -> None:
        grn = GeneRegulatoryNetwork([0] * 8, config=GRNConfig(rest_step=4))
        history = grn.run(100, initialising=True)
        assert len(history) == 6
        assert grn.reached_rest

    def test_free_run_ignores_rest(self) -> None:
        grn = GeneRegulatoryNetwork([0] * 8, config=GRNConfig(rest_step=4))
        history = grn.run(25)
        assert history.shape == (26, 1)
        assert not grn.reached_rest


# ---------------------------------------------------------------------------
# TestRun
# ---------------------------------------------------------------------------

class TestRun:

    def test_history_shape(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.1))
        history = grn.run(25)
        assert history.shape == (26, 3 + 1 + 2)
        assert grn.results is history

    def test_first_row_is_starting_state(self, grn) -> None:
        start = grn.state()
        history = grn.run(3)
        np.testing.assert_allclose(history[0], start)
        np.testing.assert_allclose(history[-1], grn.state())

    def test_zero_steps(self, grn) -> None:
        history = grn.run(0)
        assert history.shape == (1, 5)
        assert grn.step_count == 0

    def test_negative_steps(self, grn) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            grn.run(-1)

    def test_run_without_init(self, grn) -> None:
        grn.run(5)
        assert grn.phase == NetworkPhase.READY


# ---------------------------------------------------------------------------
# TestInjectInputs
# ---------------------------------------------------------------------------

class TestInjectInputs:

    def test_renormalizes_for_new_total(self, grn) -> None:
        grn.run(10)
        grn.inject_inputs(_inputs(0.1, 0.1, 0.1))
        assert grn.input_concentration == pytest.approx(0.3)
        assert grn.regulatory_concentrations.sum() == pytest.approx(0.7)
        assert grn.num_inputs == 3

    def test_replaces_previous_inputs(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.2, 0.2))
        grn.inject_inputs(_inputs(0.05))
        assert grn.input_concentrations.tolist() == [0.05]
        assert grn.regulatory_concentrations.sum() == pytest.approx(0.95)

    def test_keeps_tf_proportions(self, grn) -> None:
        grn.run(10)
        before = grn.regulatory_concentrations.copy()
        grn.inject_inputs(_inputs(0.2))
        np.testing.assert_allclose(
            grn.regulatory_concentrations / grn.regulatory_concentrations.sum(),
            before / before.sum(),
            atol=1e-9
        )

    def test_rebuilds_table(self, grn) -> None:
        grn.inject_inputs(_inputs(0.1, 0.1))
        assert grn.table.n_proteins == 5
        assert grn.table.signal.shape == (5, 5)
        assert grn.labels()[3:5] == ["I0", "I1"]

    def test_remove_inputs(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, _inputs(0.1))
        grn.inject_inputs([])
        assert grn.num_inputs == 0
        assert grn.regulatory_concentrations.sum() == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# TestEmptyTopologies
# ---------------------------------------------------------------------------

class TestEmptyTopologies:
    """Genomes without genes still run."""

    def test_no_genes(self) -> None:
        grn = GeneRegulatoryNetwork(Genome([0] * 3))
        assert grn.num_tf_genes == 0
        assert grn.num_p_genes == 0
        assert grn.umax == 0
        assert grn.run(5).shape == (6, 0)

    def test_only_inputs(self) -> None:
        grn = GeneRegulatoryNetwork(Genome([]), _inputs(0.1, 0.2))
        history = grn.run(4)
        assert history.shape == (5, 2)
        np.testing.assert_allclose(history[-1], [0.1, 0.2])

    def test_no_p_genes(self) -> None:
        genome = Genome(encode_genes(TF_GENES, []))
        grn = GeneRegulatoryNetwork(genome)
        history = grn.run(10)
        assert history.shape == (11, 3)

    def test_no_tf_genes(self) -> None:
        genome = Genome(encode_genes([], P_GENES))
        grn = GeneRegulatoryNetwork(genome, _inputs(0.1))
        history = grn.run(10)
        assert history.shape == (11, 3)
        np.testing.assert_allclose(history[:, 1:].sum(axis=1), 1.0)


# ---------------------------------------------------------------------------
# TestLifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:

    def test_phase_sequence(self, genome) -> None:
        grn = GeneRegulatoryNetwork(genome, config=GRNConfig(init_period=20))
        assert grn.phase == NetworkPhase.UNINITIALIZED
        grn.init()
        assert grn.phase == NetworkPhase.READY
        grn.run(5)
        assert grn.phase == NetworkPhase.READY
        grn.terminate()
        assert grn.phase == NetworkPhase.TERMINATED

    def test_terminated_network_refuses_work(self, grn) -> None:
        grn.terminate()
        with pytest.raises(RuntimeError):
            grn.run(1)
        with pytest.raises(RuntimeError):
            grn.init()
        with pytest.raises(RuntimeError):
            grn.inject_inputs(_inputs(0.1))

    def test_repr(self, grn) -> None:
        assert "tf=3" in repr(grn)
        assert "uninitialized" in repr(grn)


# ---------------------------------------------------------------------------
# TestConfig
# ---------------------------------------------------------------------------

class TestConfig:

    def test_defaults(self) -> None:
        config = GRNConfig()
        assert config.init_period == INIT_PERIOD
        assert config.rest_step == REST_STEP
        assert config.zero == ZERO

    def test_dict_round_trip(self) -> None:
        config = GRNConfig(init_period=500, beta=0.5)
        assert GRNConfig.from_dict(config.to_dict()) == config

    def test_from_dict_ignores_unknown(self) -> None:
        config = GRNConfig.from_dict({"rest_step": 7, "colour": "blue"})
        assert config.rest_step == 7

    @pytest.mark.parametrize("overrides", [
        {"init_period": -1},
        {"rest_step": 0},
        {"rest_step": -5},
        {"zero": 0.0},
        {"rest_epsilon": -1e-3},
    ])
    def test_rejects_invalid_fields(self, overrides) -> None:
        with pytest.raises(ValueError):
            GRNConfig(**overrides)

    def test_zero_init_period_allowed(self) -> None:
        grn = GeneRegulatoryNetwork([0] * 8, config=GRNConfig(init_period=0))
        assert grn.init() == 0

    def test_create_network_overrides(self, genome) -> None:
        grn = create_network(genome, init_period=5, delta=0.5)
        assert grn.config.init_period == 5
        assert grn.config.delta == 0.5

    def test_create_network_rejects_unknown(self, genome) -> None:
        with pytest.raises(ValueError, match="Unknown config"):
            create_network(genome, steps=5)
