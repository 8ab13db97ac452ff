"""
Genome - Bit-String Genetics for Artificial Regulatory Networks

A genome is an immutable sequence of 32-bit words read as one long bit
string. Genes are not aligned to words: the scanner walks the bit string one
bit at a time, so every field of a gene is read through a 32-bit window that
may straddle two neighbouring words.

LAYOUT OF ONE GENE (8 words, 256 bits):
    [enhancer][inhibitor][promoter][codon 0][codon 1][codon 2][codon 3][codon 4]

The low 8 bits of the promoter are the class tag:
    0x00 -> TF gene (transcription factor, regulatory)
    0xFF -> P gene (product, output)

USAGE:
    from grn.genome import Genome, random_genome

    genome = Genome([0x12345678, 0x9ABCDEF0, ...])
    window = genome.read_window(17)     # bits 17..48, across two words

    genome = random_genome(n_words=128, seed=42)
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
from enum import Enum


# =============================================================================
# CONSTANTS
# =============================================================================

WORD_BITS = 32
WORD_MASK = 0xFFFFFFFF

# Gene size in 32-bit words
GENE_SIZE = 8
GENE_BITS = GENE_SIZE * WORD_BITS

# Number of words in a gene's protein coding region
CODING_WORDS = 5

# Low byte of the promoter carries the gene class
PROMOTER_MASK = 0x000000FF
TF_PROMOTER = 0x00000000
P_PROMOTER = 0x000000FF


class MalformedGenomeError(ValueError):
    """A 32-bit window read would need a word outside the genome."""

    def __init__(self, offset: int, n_words: int):
        self.offset = offset
        self.n_words = n_words
        super().__init__(
            f"Window at bit {offset} (word {offset // WORD_BITS}, "
            f"bit {offset % WORD_BITS}) runs past the genome of {n_words} words"
        )


class GeneClass(Enum):
    """Gene classes distinguished by the promoter tag."""
    TF = "tf"    # Transcription factor, senses and is sensed
    P = "p"      # Product/output, sensed by nothing


# =============================================================================
# GENOME
# =============================================================================

class Genome:
    """
    Immutable ordered sequence of unsigned 32-bit words.

    Words are stored masked to 32 bits, so signed input values (as written
    by genes files) are accepted and read back as their unsigned form.
    """

    def __init__(self, words: Iterable[int]):
        self._words: Tuple[int, ...] = tuple(int(w) & WORD_MASK for w in words)

    @property
    def words(self) -> Tuple[int, ...]:
        return self._words

    @property
    def bit_length(self) -> int:
        """Length of the logical bit string."""
        return len(self._words) * WORD_BITS

    def __len__(self) -> int:
        return len(self._words)

    def __getitem__(self, index: int) -> int:
        return self._words[index]

    def __iter__(self):
        return iter(self._words)

    def __eq__(self, other) -> bool:
        if isinstance(other, Genome):
            return self._words == other._words
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._words)

    def read_window(self, offset: int) -> int:
        """
        Read the 32 bits starting at a bit offset.

        A word-aligned offset returns that word. Otherwise the window is the
        tail of word i shifted left, joined with the head of word i+1.

        Args:
            offset: Bit index into the genome (bit 0 is the MSB of word 0)

        Returns:
            Unsigned 32-bit value of bits offset..offset+31

        Raises:
            MalformedGenomeError: if any of those bits lie outside the genome
        """
        if offset < 0:
            raise MalformedGenomeError(offset, len(self._words))

        word, bit = divmod(offset, WORD_BITS)

        if bit == 0:
            if word >= len(self._words):
                raise MalformedGenomeError(offset, len(self._words))
            return self._words[word]

        if word + 1 >= len(self._words):
            raise MalformedGenomeError(offset, len(self._words))

        high = (self._words[word] << bit) & WORD_MASK
        low = self._words[word + 1] >> (WORD_BITS - bit)
        return high | low

    def bit(self, offset: int) -> int:
        """Return the single bit (0 or 1) at a bit offset."""
        if offset < 0 or offset >= self.bit_length:
            raise MalformedGenomeError(offset, len(self._words))
        word, bit = divmod(offset, WORD_BITS)
        return (self._words[word] >> (WORD_BITS - 1 - bit)) & 1

    def __repr__(self) -> str:
        return f"Genome(words={len(self._words)}, bits={self.bit_length})"


# =============================================================================
# GENE DESCRIPTOR
# =============================================================================

@dataclass
class Gene:
    """
    A gene structure extracted from the genome.

    - enhancer/inhibitor: regulatory sites 64 and 32 bits before the promoter
    - promoter: 32-bit field whose low byte tags the gene class
    - codons: the 5-word protein coding region after the promoter
    - index: row of this gene in the matching table (set when tables are built)
    - offset: bit offset of the enhancer in the source genome (None if unknown)
    """
    enhancer: int
    inhibitor: int
    promoter: int
    codons: Tuple[int, ...]
    index: int = -1
    offset: Optional[int] = None

    def __post_init__(self):
        self.enhancer = int(self.enhancer) & WORD_MASK
        self.inhibitor = int(self.inhibitor) & WORD_MASK
        self.promoter = int(self.promoter) & WORD_MASK
        self.codons = tuple(int(c) & WORD_MASK for c in self.codons)
        if len(self.codons) != CODING_WORDS:
            raise ValueError(
                f"Coding region must be {CODING_WORDS} words, got {len(self.codons)}"
            )

    @property
    def gene_class(self) -> Optional[GeneClass]:
        """Class from the promoter tag, or None if the tag matches neither."""
        tag = self.promoter & PROMOTER_MASK
        if tag == TF_PROMOTER:
            return GeneClass.TF
        if tag == P_PROMOTER:
            return GeneClass.P
        return None

    @property
    def promoter_offset(self) -> Optional[int]:
        if self.offset is None:
            return None
        return self.offset + 2 * WORD_BITS

    def encode(self) -> List[int]:
        """The gene as 8 words: enhancer, inhibitor, promoter, codons."""
        return [self.enhancer, self.inhibitor, self.promoter, *self.codons]

    def same_structure(self, other: 'Gene') -> bool:
        """Compare gene fields, ignoring index and offset."""
        return self.encode() == other.encode()


def encode_genes(tf_genes: Sequence[Gene], p_genes: Sequence[Gene]) -> List[int]:
    """
    Flatten genes to the canonical word sequence.

    All TF genes then all P genes, 8 words each. Scanning the result finds
    the same genes again, since each promoter lands exactly one gene width
    after the previous one.
    """
    words: List[int] = []
    for gene in tf_genes:
        words.extend(gene.encode())
    for gene in p_genes:
        words.extend(gene.encode())
    return words


def to_signed(word: int) -> int:
    """Two's complement view of an unsigned 32-bit word."""
    word &= WORD_MASK
    return word - (1 << WORD_BITS) if word & 0x80000000 else word


def random_genome(n_words: int = 128, seed: Optional[int] = 42) -> Genome:
    """
    Create a genome of uniformly random words.

    Args:
        n_words: Genome length in 32-bit words
        seed: Seed for a private RandomState (None for fresh entropy)
    """
    if n_words < 0:
        raise ValueError(f"n_words must be non-negative, got {n_words}")
    rng = np.random.RandomState(seed)
    words = rng.randint(0, 1 << WORD_BITS, size=n_words, dtype=np.int64)
    return Genome(int(w) for w in words)
