"""
Allele Model for VCF Records

A VCF site carries one reference allele (REF) and one or more alternate
alleles (ALT, comma-separated). This module validates both fields and
provides strand operations on them.

Accepted alleles:
    - IUPAC DNA nucleotide codes, either case (ACGTRYSWKMBDHVN), not RNA U
    - '*'  allele missing due to an overlapping deletion
    - '.'  no alternate allele (monomorphic site)

Rejected alleles (UnsupportedAlleleKindError):
    - Breakends, e.g. G]17:198982]
    - Symbolic alleles, e.g. <DEL>, <INS:ME:ALU>

Length change:
    An insertion or deletion shifts every downstream coordinate by
    len(ALT) - len(REF). Placeholder alleles ('*', '.') never shift anything.
"""

from dataclasses import dataclass
from typing import Tuple

from Bio.Seq import reverse_complement as _bio_reverse_complement

from .exceptions import AmbiguousOffsetError, UnsupportedAlleleKindError

IUPAC_NUCLEOTIDES = frozenset("ACGTRYSWKMBDHVNacgtryswkmbdhvn")
PLACEHOLDER_ALLELES = frozenset({"*", "."})
BREAKEND_CHARS = frozenset("[]")
SYMBOLIC_CHARS = frozenset("<>")


def validate_sequence(seq: str, field: str = "allele") -> str:
    """
    Check that an allele is a nucleotide sequence or a VCF placeholder.

    Args:
        seq: Allele text from the VCF line
        field: Field name used in error messages

    Returns:
        The unchanged allele text

    Raises:
        UnsupportedAlleleKindError: Breakend or symbolic notation
        ValueError: Empty allele or non-IUPAC characters
    """
    if BREAKEND_CHARS.intersection(seq):
        raise UnsupportedAlleleKindError(f"Breakend {field} not supported: '{seq}'")
    if SYMBOLIC_CHARS.intersection(seq):
        raise UnsupportedAlleleKindError(f"Symbolic {field} not supported: '{seq}'")
    if seq in PLACEHOLDER_ALLELES:
        return seq
    if not seq:
        raise ValueError(f"Empty {field}")
    bad = sorted(set(seq) - IUPAC_NUCLEOTIDES)
    if bad:
        raise ValueError(f"Invalid characters {bad} in {field} '{seq}'")
    return seq


def reverse_complement_sequence(seq: str) -> str:
    """
    Reverse complement one allele, preserving case.

    Examples:
        >>> reverse_complement_sequence("CAT")
        'ATG'
        >>> reverse_complement_sequence("acgN")
        'Ncgt'
        >>> reverse_complement_sequence("*")
        '*'
    """
    if seq in PLACEHOLDER_ALLELES:
        return seq
    return _bio_reverse_complement(seq)


@dataclass(frozen=True, order=True)
class Allele:
    """REF allele plus the ordered ALT alleles of one VCF site."""
    reference: str
    alternates: Tuple[str, ...]

    def __post_init__(self):
        if not self.alternates:
            raise ValueError("At least one alternate allele is required")
        if self.reference in PLACEHOLDER_ALLELES:
            raise ValueError(f"REF cannot be '{self.reference}'")
        validate_sequence(self.reference, "REF")
        for alt in self.alternates:
            validate_sequence(alt, "ALT")

    @classmethod
    def from_fields(cls, ref: str, alt_field: str) -> "Allele":
        """
        Build an Allele from raw REF and ALT column text.

        Examples:
            >>> Allele.from_fields("C", "CAT,G").alternates
            ('CAT', 'G')
        """
        return cls(reference=ref, alternates=tuple(alt_field.split(",")))

    @property
    def alt_field(self) -> str:
        """ALT column text (comma-joined, original order)."""
        return ",".join(self.alternates)

    @property
    def is_multiallelic(self) -> bool:
        return len(self.alternates) > 1

    @property
    def alternate_length(self) -> int:
        """
        Length shared by every alternate allele.

        Raises:
            AmbiguousOffsetError: If the alternates differ in length
        """
        lengths = {
            len(alt) for alt in self.alternates if alt not in PLACEHOLDER_ALLELES
        }
        if not lengths:
            # Placeholder-only ALT leaves the sequence untouched
            return len(self.reference)
        if len(lengths) != 1:
            raise AmbiguousOffsetError(
                f"Alternate alleles have different lengths: {self.alt_field}"
            )
        return lengths.pop()

    @property
    def length_change(self) -> int:
        """Net change in sequence length when the site is applied."""
        return self.alternate_length - len(self.reference)

    @property
    def is_snp(self) -> bool:
        return len(self.reference) == 1 and all(
            len(alt) == 1 and alt not in PLACEHOLDER_ALLELES
            for alt in self.alternates
        )

    @property
    def is_insertion(self) -> bool:
        return self.length_change > 0

    @property
    def is_deletion(self) -> bool:
        return self.length_change < 0

    def reverse_complement(self) -> "Allele":
        """
        Reverse complement REF and each ALT independently.

        ALT order is kept as-is; the alleles are not re-sorted.
        """
        return Allele(
            reference=reverse_complement_sequence(self.reference),
            alternates=tuple(reverse_complement_sequence(a) for a in self.alternates),
        )

    def __str__(self) -> str:
        return f"{self.reference}>{self.alt_field}"
