"""
Gene Scanner - Locates gene structures along a bit-string genome

The genome is searched one bit at a time for a promoter: a 32-bit window
whose low byte is 0x00 (TF gene) or 0xFF (P gene). When a promoter is found,
the whole 8-word gene around it is extracted and the search jumps one full
gene width ahead, so genes found in one scan never overlap.

The first candidate promoter sits at bit 64, leaving room for the enhancer
and inhibitor sites in front of it. Searching stops once fewer than 192 bits
(promoter plus coding region) remain after the candidate.

USAGE:
    from grn.scanner import scan_genome

    result = scan_genome(genome)
    result.tf_genes, result.p_genes
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .genome import (
    Gene,
    Genome,
    MalformedGenomeError,
    CODING_WORDS,
    GENE_BITS,
    GENE_SIZE,
    P_PROMOTER,
    PROMOTER_MASK,
    TF_PROMOTER,
    WORD_BITS,
)

log = logging.getLogger("grn.scanner")

# Virtual bit index the search starts from; one gene jump lands on bit 64
STARTING_INDEX = -(GENE_SIZE - 2) * WORD_BITS

# Bits needed from a promoter to the end of the coding region
PROMOTER_TAIL_BITS = (1 + CODING_WORDS) * WORD_BITS


@dataclass
class ScanResult:
    """Genes found in one scan, in genome order."""
    tf_genes: List[Gene] = field(default_factory=list)
    p_genes: List[Gene] = field(default_factory=list)
    # Candidate offsets whose window reads ran past the genome
    malformed: List[int] = field(default_factory=list)

    @property
    def n_genes(self) -> int:
        return len(self.tf_genes) + len(self.p_genes)


class GeneScanner:
    """
    Scans a genome for TF and P genes.

    The scanner holds no state beyond the genome; every call to scan()
    starts over from the beginning and returns fresh Gene objects.
    """

    def __init__(self, genome: Genome):
        self.genome = genome

    @property
    def last_candidate(self) -> int:
        """Highest bit offset at which a promoter may still start."""
        return self.genome.bit_length - PROMOTER_TAIL_BITS

    def scan(self) -> ScanResult:
        result = ScanResult()

        index = self.next_promoter(STARTING_INDEX, result)
        while index is not None:
            gene = self.extract_gene(index, result)
            if gene is not None:
                # TF tag is tested first, so a position is never both
                if (gene.promoter & PROMOTER_MASK) == TF_PROMOTER:
                    result.tf_genes.append(gene)
                else:
                    result.p_genes.append(gene)
                index = self.next_promoter(index, result)
            else:
                index = self.next_promoter(index - GENE_BITS + 1, result)

        log.debug(
            "Scanned %d bits: %d genes (%d TF, %d P)",
            self.genome.bit_length, result.n_genes, len(result.tf_genes), len(result.p_genes)
        )
        return result

    def next_promoter(self, prev_index: int, result: ScanResult) -> Optional[int]:
        """
        Find the next promoter at least one gene width past prev_index.

        Returns:
            Bit offset of the promoter, or None when the genome is exhausted
        """
        index = prev_index + GENE_BITS
        limit = self.last_candidate

        while index <= limit:
            if self.promoter_tag(index, result) is not None:
                return index
            index += 1
        return None

    def promoter_tag(self, index: int, result: Optional[ScanResult] = None) -> Optional[int]:
        """The promoter tag at a bit offset, or None if it is not a promoter."""
        try:
            window = self.genome.read_window(index)
        except MalformedGenomeError as e:
            self._flag(e, result)
            return None

        tag = window & PROMOTER_MASK
        if tag == TF_PROMOTER or tag == P_PROMOTER:
            return tag
        return None

    def extract_gene(self, index: int, result: Optional[ScanResult] = None) -> Optional[Gene]:
        """
        Build the gene around a promoter at a bit offset.

        Returns:
            The gene, or None if any of its windows fall outside the genome
        """
        read = self.genome.read_window
        try:
            enhancer = read(index - 2 * WORD_BITS)
            inhibitor = read(index - WORD_BITS)
            promoter = read(index)
            codons = tuple(read(index + WORD_BITS * (i + 1)) for i in range(CODING_WORDS))
        except MalformedGenomeError as e:
            self._flag(e, result)
            return None

        return Gene(
            enhancer=enhancer,
            inhibitor=inhibitor,
            promoter=promoter,
            codons=codons,
            offset=index - 2 * WORD_BITS,
        )

    def _flag(self, error: MalformedGenomeError, result: Optional[ScanResult]):
        log.warning("Malformed genome read: %s", error)
        if result is not None:
            result.malformed.append(error.offset)


def scan_genome(genome: Genome) -> ScanResult:
    """Scan a genome for TF and P genes."""
    return GeneScanner(genome).scan()
