"""
Genome Loading - Read and write genomes on disk

Two source formats are supported:

1. Genes file - whitespace-separated signed 32-bit integers, normally one
   gene (8 integers: enhancer, inhibitor, promoter, 5 codons) per line.
2. Binary text file - characters '0' and '1' packed 32 per word, most
   significant bit first. Every other byte is ignored. A short final word
   is padded with zero bits on the right.

I/O failures surface as SourceUnreadableError; the network itself never
touches the filesystem.
"""

import logging
from pathlib import Path
from typing import List, Union

from .genome import Genome, GENE_SIZE, WORD_BITS, WORD_MASK, to_signed

log = logging.getLogger("grn.loader")

PathLike = Union[str, Path]

# Signed and unsigned 32-bit forms are both accepted
WORD_MIN = -(1 << (WORD_BITS - 1))


class SourceUnreadableError(OSError):
    """A genome source or report target could not be read or written."""


# =============================================================================
# FORMAT 1: GENES FILE
# =============================================================================

def parse_codon_string(codon_string: str) -> Genome:
    """Decode whitespace-separated signed 32-bit integers into a genome."""
    words = []
    for token in codon_string.split():
        try:
            word = int(token)
        except ValueError as e:
            raise SourceUnreadableError(f"Not a 32-bit integer: {token!r}") from e
        if not WORD_MIN <= word <= WORD_MASK:
            raise SourceUnreadableError(f"Not a 32-bit integer: {token!r}")
        words.append(word)
    return Genome(words)


def read_genes_file(filename: PathLike) -> Genome:
    """Read a genome from a genes file."""
    path = Path(filename)
    try:
        text = path.read_text()
    except OSError as e:
        raise SourceUnreadableError(f"Cannot read genes file {path}: {e}") from e

    genome = parse_codon_string(text)
    log.debug("Read %d words from %s", len(genome), path)
    return genome


def format_genes(words: List[int]) -> str:
    """One gene per line, 8 signed integers separated by single spaces."""
    lines = []
    for start in range(0, len(words), GENE_SIZE):
        chunk = words[start:start + GENE_SIZE]
        lines.append(" ".join(str(to_signed(w)) for w in chunk))
    return "\n".join(lines) + ("\n" if lines else "")


def write_genes_file(filename: PathLike, words: List[int]) -> Path:
    """
    Write a flattened gene encoding to a genes file.

    Args:
        filename: Target path (overwritten)
        words: Encoding as produced by GeneRegulatoryNetwork.encoding()
    """
    path = Path(filename)
    try:
        path.write_text(format_genes(words))
    except OSError as e:
        raise SourceUnreadableError(f"Cannot write genes file {path}: {e}") from e
    log.debug("Wrote %d genes to %s", len(words) // GENE_SIZE, path)
    return path


# =============================================================================
# FORMAT 2: BINARY TEXT
# =============================================================================

def parse_binary_text(data: Union[bytes, str]) -> Genome:
    """Pack '0'/'1' characters into 32-bit words, MSB first."""
    if isinstance(data, str):
        data = data.encode("latin-1", errors="ignore")

    bits = [b - ord("0") for b in data if b in (ord("0"), ord("1"))]

    words = []
    for start in range(0, len(bits), WORD_BITS):
        word = 0
        for i, bit in enumerate(bits[start:start + WORD_BITS]):
            word |= bit << (WORD_BITS - 1 - i)
        words.append(word)
    return Genome(words)


def read_binary_text_file(filename: PathLike) -> Genome:
    """Read a genome from a file of '0'/'1' characters."""
    path = Path(filename)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceUnreadableError(f"Cannot read binary genome {path}: {e}") from e

    genome = parse_binary_text(data)
    log.debug("Read %d words from %s", len(genome), path)
    return genome
