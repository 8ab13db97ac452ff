# Artificial Gene Regulatory Network
#
# A bit-string genome is scanned for genes, genes are expressed into
# proteins, and the proteins regulate each other's production until the
# concentrations settle.
#
# PIPELINE:
# ├── genome.py        - 32-bit word genome, cross-word bit windows, genes
# ├── scanner.py       - Promoter search, non-overlapping gene extraction
# ├── expression.py    - Coding region -> protein signature
# ├── matching.py      - Complementary-bit matching table, production rates
# ├── network.py       - Discrete-time simulator, rest detection, inputs
# ├── loader.py        - Genes files and binary text genomes
# ├── report.py        - Tables and dot graphs
# └── visualization.py - matplotlib plots (imported on demand)

__version__ = "1.0.0"

# =============================================================================
# GENOME
# =============================================================================

from .genome import (
    Genome,
    Gene,
    GeneClass,
    MalformedGenomeError,
    encode_genes,
    random_genome,
    GENE_SIZE,
    TF_PROMOTER,
    P_PROMOTER,
)

from .scanner import (
    GeneScanner,
    ScanResult,
    scan_genome,
)

# =============================================================================
# EXPRESSION AND MATCHING
# =============================================================================

from .expression import (
    Protein,
    ProteinRole,
    ZERO,
    express_gene,
    express_genes,
    protein_signature,
)

from .matching import (
    MatchingTable,
    build_matching_table,
    calculate_umax,
    complement_count,
    produce,
    production_rates,
)

# =============================================================================
# NETWORK
# =============================================================================

from .network import (
    GeneRegulatoryNetwork,
    GRNConfig,
    NetworkPhase,
    create_network,
    INIT_PERIOD,
    REST_STEP,
    REST_EPSILON,
)

# =============================================================================
# I/O
# =============================================================================

from .loader import (
    SourceUnreadableError,
    parse_codon_string,
    parse_binary_text,
    read_genes_file,
    read_binary_text_file,
    write_genes_file,
)

from .report import (
    format_state,
    print_state,
    to_dot,
    write_dot_graph,
    write_results,
)

# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    # Genome
    'Genome',
    'Gene',
    'GeneClass',
    'MalformedGenomeError',
    'encode_genes',
    'random_genome',
    'GENE_SIZE',
    'TF_PROMOTER',
    'P_PROMOTER',
    'GeneScanner',
    'ScanResult',
    'scan_genome',

    # Expression and matching
    'Protein',
    'ProteinRole',
    'ZERO',
    'express_gene',
    'express_genes',
    'protein_signature',
    'MatchingTable',
    'build_matching_table',
    'calculate_umax',
    'complement_count',
    'produce',
    'production_rates',

    # Network
    'GeneRegulatoryNetwork',
    'GRNConfig',
    'NetworkPhase',
    'create_network',
    'INIT_PERIOD',
    'REST_STEP',
    'REST_EPSILON',

    # I/O
    'SourceUnreadableError',
    'parse_codon_string',
    'parse_binary_text',
    'read_genes_file',
    'read_binary_text_file',
    'write_genes_file',
    'format_state',
    'print_state',
    'to_dot',
    'write_dot_graph',
    'write_results',
]
