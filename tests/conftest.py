"""
Pytest configuration and fixtures for vcfremap tests.
"""

import sys
import tempfile
from pathlib import Path

import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# VCF Fixtures
# ============================================================================

@pytest.fixture
def vcf_header_line():
    """Column header line with two samples."""
    return "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tS1\tS2"


@pytest.fixture
def sample_vcf_content(vcf_header_line):
    """Two contigs; chr1 has an insertion, a SNP and a deletion."""
    return (
        "##fileformat=VCFv4.2\n"
        "##contig=<ID=chr1,length=1000>\n"
        "##contig=<ID=chr2,length=500>\n"
        f"{vcf_header_line}\n"
        "chr1\t50\tins1\tC\tCAT\t60\tPASS\tDP=20\tGT\t0/1\t1/1\n"
        "chr1\t100\tsnp1\tA\tG\t50.5\tPASS\tDP=30\tGT\t0/1\t0/0\n"
        "chr1\t200\tdel1\tATT\tA\t.\tPASS\t.\tGT\t1/1\t0/1\n"
        "chr2\t10\tsnp2\tG\tT\t40\tq10\tDP=5\tGT\t./.\t0/1\n"
    )


@pytest.fixture
def sample_vcf_file(temp_dir, sample_vcf_content):
    """Create a temporary VCF file."""
    vcf_path = temp_dir / "sample.vcf"
    vcf_path.write_text(sample_vcf_content)
    return vcf_path


@pytest.fixture
def unsorted_vcf_file(temp_dir, vcf_header_line):
    """VCF whose chr1 records are split by a chr2 record."""
    vcf_path = temp_dir / "unsorted.vcf"
    vcf_path.write_text(
        f"{vcf_header_line}\n"
        "chr1\t100\tsnp1\tA\tG\t50\tPASS\t.\tGT\t0/1\t0/0\n"
        "chr2\t10\tsnp2\tG\tT\t40\tPASS\t.\tGT\t0/1\t0/1\n"
        "chr1\t50\tins1\tC\tCAT\t60\tPASS\t.\tGT\t0/1\t1/1\n"
    )
    return vcf_path


@pytest.fixture
def sites_only_line():
    """Data line without FORMAT or sample columns."""
    return "chr1\t100\trs123\tA\tG,T\t29.5\tPASS\tAF=0.5,0.1"


# ============================================================================
# Transcript Fixtures
# ============================================================================

@pytest.fixture
def sample_bed_content():
    """
    Gene models on chr1:
        txUnknown  .  [0, 300)                       strand unknown
        txMinus    -  [40, 120)                      single exon
        txPlus     +  [90, 110) + [190, 210)          two exons
    """
    return (
        "track name=genes\n"
        "chr1\t0\t300\ttxUnknown\t0\t.\n"
        "chr1\t40\t120\ttxMinus\t0\t-\n"
        "chr1\t90\t210\ttxPlus\t0\t+\t90\t210\t0\t2\t20,20,\t0,100,\n"
    )


@pytest.fixture
def sample_bed_file(temp_dir, sample_bed_content):
    """Create a temporary BED file."""
    bed_path = temp_dir / "genes.bed"
    bed_path.write_text(sample_bed_content)
    return bed_path


@pytest.fixture
def negative_strand_genome():
    """Ten bases of genomic sequence covered by one '-' strand exon."""
    return "ACGTACGTAC"


@pytest.fixture
def negative_strand_transcript_seq():
    """Reverse complement of negative_strand_genome."""
    return "GTACGTACGT"


@pytest.fixture
def transcript_fasta_file(temp_dir, negative_strand_transcript_seq):
    """Create a temporary FASTA with the '-' strand transcript."""
    fasta_path = temp_dir / "transcripts.fa"
    fasta_path.write_text(f">txN description\n{negative_strand_transcript_seq}\n")
    return fasta_path


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Provide a sample configuration dictionary."""
    return {
        "logging": {
            "level": "INFO"
        },
        "modified_sequence": {
            "contig_suffix": "_mod",
            "rename": None,
            "jobs": 2,
            "assume_sorted": True
        },
        "transcripts": {
            "bed": None,
            "fasta": None,
            "require_ref_within_exon": False
        }
    }
