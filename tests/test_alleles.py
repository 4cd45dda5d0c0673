"""
Tests for the allele model.
"""

import pytest

from vcfremap.alleles import Allele, reverse_complement_sequence, validate_sequence
from vcfremap.exceptions import AmbiguousOffsetError, UnsupportedAlleleKindError


# ============================================================================
# Tests: Parsing
# ============================================================================

class TestAlleleParsing:
    """Tests for building alleles from VCF fields."""

    def test_single_alternate(self):
        allele = Allele.from_fields("A", "G")
        assert allele.reference == "A"
        assert allele.alternates == ("G",)

    def test_multiallelic_keeps_order(self):
        allele = Allele.from_fields("C", "T,CAT,G")
        assert allele.alternates == ("T", "CAT", "G")
        assert allele.alt_field == "T,CAT,G"
        assert allele.is_multiallelic

    def test_roundtrip_fields(self):
        allele = Allele.from_fields("ACGT", "A,ACGTT,*")
        assert Allele.from_fields(allele.reference, allele.alt_field) == allele

    def test_iupac_and_lowercase_accepted(self):
        allele = Allele.from_fields("acgN", "RYK")
        assert allele.reference == "acgN"

    def test_placeholders_accepted(self):
        assert Allele.from_fields("A", ".").alternates == (".",)
        assert Allele.from_fields("A", "*,G").alternates == ("*", "G")

    @pytest.mark.parametrize("alt", [
        "G]17:198982]",
        "]13:123456]T",
        "C[2:321682[",
    ])
    def test_breakend_rejected(self, alt):
        with pytest.raises(UnsupportedAlleleKindError):
            Allele.from_fields("G", alt)

    @pytest.mark.parametrize("alt", ["<DEL>", "<INS:ME:ALU>", "G,<NON_REF>"])
    def test_symbolic_rejected(self, alt):
        with pytest.raises(UnsupportedAlleleKindError):
            Allele.from_fields("G", alt)

    def test_invalid_characters_rejected(self):
        with pytest.raises(ValueError) as exc_info:
            Allele.from_fields("A", "GXZ")
        assert not isinstance(exc_info.value, UnsupportedAlleleKindError)

    @pytest.mark.parametrize("ref,alt", [("U", "A"), ("A", "u"), ("ACU", "A")])
    def test_rna_uracil_rejected(self, ref, alt):
        with pytest.raises(ValueError) as exc_info:
            Allele.from_fields(ref, alt)
        assert not isinstance(exc_info.value, UnsupportedAlleleKindError)

    def test_empty_alternate_rejected(self):
        with pytest.raises(ValueError):
            Allele.from_fields("A", "G,")

    def test_placeholder_reference_rejected(self):
        with pytest.raises(ValueError):
            Allele.from_fields("*", "A")

    def test_validate_sequence_returns_input(self):
        assert validate_sequence("ACGT") == "ACGT"


# ============================================================================
# Tests: Reverse Complement
# ============================================================================

class TestReverseComplement:
    """Tests for allele reverse complementation."""

    def test_sequence(self):
        assert reverse_complement_sequence("CAT") == "ATG"
        assert reverse_complement_sequence("AACG") == "CGTT"

    def test_case_preserved(self):
        assert reverse_complement_sequence("acgT") == "Acgt"

    def test_placeholders_unchanged(self):
        assert reverse_complement_sequence("*") == "*"
        assert reverse_complement_sequence(".") == "."

    def test_each_alternate_independently(self):
        allele = Allele.from_fields("AC", "A,ACG,T")
        rc = allele.reverse_complement()
        assert rc.reference == "GT"
        assert rc.alternates == ("T", "CGT", "A")

    def test_returns_new_value(self):
        allele = Allele.from_fields("A", "G")
        rc = allele.reverse_complement()
        assert rc is not allele
        assert allele.reference == "A"

    @pytest.mark.parametrize("ref,alt", [
        ("A", "G"),
        ("ACGT", "A,TTGCA"),
        ("acGt", "cA"),
        ("GATTACA", "G,*"),
    ])
    def test_involution(self, ref, alt):
        allele = Allele.from_fields(ref, alt)
        assert allele.reverse_complement().reverse_complement() == allele


# ============================================================================
# Tests: Length Change and Classification
# ============================================================================

class TestLengthChange:
    """Tests for offsets and variant classes."""

    def test_snp(self):
        allele = Allele.from_fields("A", "G")
        assert allele.length_change == 0
        assert allele.is_snp
        assert not allele.is_insertion
        assert not allele.is_deletion

    def test_insertion(self):
        allele = Allele.from_fields("C", "CAT")
        assert allele.length_change == 2
        assert allele.is_insertion

    def test_deletion(self):
        allele = Allele.from_fields("ATT", "A")
        assert allele.length_change == -2
        assert allele.is_deletion

    def test_mnp_has_no_offset(self):
        allele = Allele.from_fields("AC", "GT")
        assert allele.length_change == 0
        assert not allele.is_snp

    def test_multiallelic_same_length(self):
        assert Allele.from_fields("A", "G,T").length_change == 0
        assert Allele.from_fields("A", "AG,AT").length_change == 1

    def test_multiallelic_different_lengths(self):
        with pytest.raises(AmbiguousOffsetError):
            Allele.from_fields("A", "G,AT").length_change

    def test_placeholders_ignored(self):
        assert Allele.from_fields("A", ".").length_change == 0
        assert Allele.from_fields("A", "*").length_change == 0
        assert Allele.from_fields("A", "AT,*").length_change == 1
