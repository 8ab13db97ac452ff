"""
Gene Expression - Genes become proteins

Each gene's 160-bit coding region is folded into a single 32-bit protein
signature. The fold rotates the running value before mixing in each coding
word, so it depends on word order as well as word content: the same coding
region always gives the same signature, and reordering its words changes it.

Proteins carry a concentration that is never allowed to reach exactly zero;
anything lower is clamped up to ZERO.

ROLES:
- REGULATORY: expressed from TF genes, sense and are sensed
- INPUT: supplied from outside, never expressed, only sensed
- OUTPUT: expressed from P genes, sensed by nothing
"""

from dataclasses import dataclass
from typing import List, Sequence
from enum import Enum

from .genome import Gene, WORD_BITS, WORD_MASK

# Lowest concentration any protein may hold
ZERO = 1e-10

# Rotation applied to the running signature before each coding word
FOLD_ROTATION = 7


class ProteinRole(Enum):
    """Roles a protein can play in the network."""
    REGULATORY = "regulatory"
    INPUT = "input"
    OUTPUT = "output"


@dataclass
class Protein:
    """A protein: 32-bit signature plus a mutable concentration."""
    signature: int
    concentration: float = ZERO
    role: ProteinRole = ProteinRole.INPUT

    def __post_init__(self):
        self.signature = int(self.signature) & WORD_MASK
        self.concentration = max(float(self.concentration), ZERO)

    @classmethod
    def input(cls, concentration: float, signature: int) -> 'Protein':
        """An external input protein (argument order follows the genes file tooling)."""
        return cls(signature=signature, concentration=concentration, role=ProteinRole.INPUT)


def rotl32(value: int, shift: int) -> int:
    """Rotate a 32-bit value left."""
    shift %= WORD_BITS
    value &= WORD_MASK
    return ((value << shift) | (value >> (WORD_BITS - shift))) & WORD_MASK


def protein_signature(codons: Sequence[int]) -> int:
    """Fold a coding region into a 32-bit signature."""
    signature = 0
    for codon in codons:
        signature = rotl32(signature, FOLD_ROTATION) ^ (int(codon) & WORD_MASK)
    return signature


def express_gene(gene: Gene, role: ProteinRole = ProteinRole.REGULATORY) -> Protein:
    return Protein(signature=protein_signature(gene.codons), role=role)


def express_genes(genes: Sequence[Gene],
                  role: ProteinRole = ProteinRole.REGULATORY) -> List[Protein]:
    """
    Express each gene into one protein, preserving order.

    Concentrations start at ZERO; the network assigns initial values.
    """
    return [express_gene(g, role) for g in genes]
