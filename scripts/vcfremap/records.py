"""
VCF Variant Records

One VCF data line is parsed into an immutable VariantRecord. Every transform
(new position, new contig, reverse-complemented alleles) returns a new record
and leaves the original untouched.

VCF Data Line Format:
    Col 1:  CHROM
    Col 2:  POS (1-based)
    Col 3:  ID
    Col 4:  REF
    Col 5:  ALT (comma-separated)
    Col 6:  QUAL ('.' when missing)
    Col 7:  FILTER
    Col 8:  INFO
    Col 9:  FORMAT (only when the file has sample columns)
    Col 10+: one column per sample, in header order

Serialization is exact: to_line(parse_vcf_line(line)) == line for any
well-formed line. QUAL is therefore kept as its original text; the numeric
value is available through VariantRecord.quality.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .alleles import Allele
from .exceptions import MalformedRecordError, UnsupportedAlleleKindError

MIN_DATA_COLUMNS = 8
FIXED_COLUMNS = ("CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO")


@dataclass(frozen=True, order=True)
class VariantRecord:
    """A single VCF record. Ordered by contig, then position, then the rest."""
    contig: str
    position: int  # 1-based
    id: str
    allele: Allele
    qual: str = "."
    filter: str = "."
    info: str = "."
    format: str = ""
    genotypes: Tuple[str, ...] = ()
    has_format_column: bool = False  # FORMAT column present, possibly empty

    def __post_init__(self):
        if self.position < 1:
            raise ValueError(f"Position must be >= 1, got {self.position}")

    @property
    def ref(self) -> str:
        return self.allele.reference

    @property
    def alt(self) -> str:
        """ALT column text."""
        return self.allele.alt_field

    @property
    def quality(self) -> Optional[float]:
        """QUAL as a float, or None when missing."""
        return None if self.qual == "." else float(self.qual)

    @property
    def zero_based_position(self) -> int:
        return self.position - 1

    @property
    def reference_interval(self) -> Tuple[int, int]:
        """Zero-based half-open genomic span of the REF allele."""
        start = self.zero_based_position
        return start, start + len(self.ref)

    @property
    def is_snp(self) -> bool:
        return self.allele.is_snp

    @property
    def is_insertion(self) -> bool:
        return self.allele.is_insertion

    @property
    def is_deletion(self) -> bool:
        return self.allele.is_deletion

    def with_position(self, new_position: int) -> "VariantRecord":
        """Copy with a new 1-based position."""
        return replace(self, position=new_position)

    def with_contig(self, new_contig: str) -> "VariantRecord":
        """Copy with a new contig name."""
        return replace(self, contig=new_contig)

    def with_allele(self, new_allele: Allele) -> "VariantRecord":
        return replace(self, allele=new_allele)

    def reverse_complement_alleles(self) -> "VariantRecord":
        """Copy with REF and ALT reverse-complemented; position unchanged."""
        return replace(self, allele=self.allele.reverse_complement())

    def to_line(self) -> str:
        """Serialize back to a tab-separated VCF data line (no newline)."""
        fields = [
            self.contig,
            str(self.position),
            self.id,
            self.ref,
            self.alt,
            self.qual,
            self.filter,
            self.info,
        ]
        if self.has_format_column or self.format or self.genotypes:
            fields.append(self.format)
            fields.extend(self.genotypes)
        return "\t".join(fields)

    def __str__(self) -> str:
        return self.to_line()


def parse_sample_ids(header_line: str) -> List[str]:
    """
    Get sample IDs from the '#CHROM' header line.

    Examples:
        >>> parse_sample_ids("#CHROM\\tPOS\\tID\\tREF\\tALT\\tQUAL\\tFILTER\\tINFO\\tFORMAT\\tS1\\tS2")
        ['S1', 'S2']
    """
    columns = header_line.rstrip("\r\n").split("\t")
    if len(columns) < MIN_DATA_COLUMNS or columns[0] != "#CHROM":
        raise MalformedRecordError("Not a VCF '#CHROM' header line",
                                   line=header_line.rstrip("\r\n"))
    return columns[MIN_DATA_COLUMNS + 1:]


def parse_vcf_line(
    line: str,
    header_line: Optional[str] = None,
    line_number: Optional[int] = None
) -> VariantRecord:
    """
    Parse one VCF data line into a VariantRecord.

    Args:
        line: Tab-separated VCF data line (trailing newline allowed)
        header_line: The '#CHROM' header line; when given, the number of
            sample columns must match it
        line_number: Line number in the source file, used in errors

    Returns:
        VariantRecord

    Raises:
        MalformedRecordError: Too few columns, bad POS/QUAL, bad alleles,
            or a sample-column count that disagrees with the header
        UnsupportedAlleleKindError: Breakend or symbolic ALT

    Examples:
        >>> rec = parse_vcf_line("chr1\\t100\\trs1\\tA\\tG\\t50\\tPASS\\tDP=10")
        >>> rec.contig, rec.position, rec.alt
        ('chr1', 100, 'G')
    """
    text = line.rstrip("\r\n")
    parts = text.split("\t")

    if len(parts) < MIN_DATA_COLUMNS:
        raise MalformedRecordError(
            f"Expected at least {MIN_DATA_COLUMNS} columns, found {len(parts)}",
            line=text, line_number=line_number
        )

    chrom, pos_text, var_id, ref, alt, qual, filt, info = parts[:MIN_DATA_COLUMNS]

    if not chrom:
        raise MalformedRecordError("Empty CHROM", line=text, line_number=line_number)

    try:
        position = int(pos_text)
    except ValueError:
        raise MalformedRecordError(
            f"POS is not an integer: '{pos_text}'", line=text, line_number=line_number
        ) from None
    if position < 1:
        raise MalformedRecordError(
            f"POS must be a positive integer, got {position}",
            line=text, line_number=line_number
        )

    if qual != ".":
        try:
            float(qual)
        except ValueError:
            raise MalformedRecordError(
                f"QUAL is not numeric: '{qual}'", line=text, line_number=line_number
            ) from None

    try:
        allele = Allele.from_fields(ref, alt)
    except UnsupportedAlleleKindError as e:
        raise UnsupportedAlleleKindError(
            str(e), line=text, line_number=line_number
        ) from None
    except ValueError as e:
        raise MalformedRecordError(str(e), line=text, line_number=line_number) from None

    fmt = ""
    genotypes: Tuple[str, ...] = ()
    has_format_column = len(parts) > MIN_DATA_COLUMNS
    if has_format_column:
        fmt = parts[MIN_DATA_COLUMNS]
        genotypes = tuple(parts[MIN_DATA_COLUMNS + 1:])

    if header_line is not None:
        n_samples = len(parse_sample_ids(header_line))
        if len(genotypes) != n_samples:
            raise MalformedRecordError(
                f"Header has {n_samples} sample columns but line has {len(genotypes)}",
                line=text, line_number=line_number
            )

    return VariantRecord(
        contig=chrom,
        position=position,
        id=var_id,
        allele=allele,
        qual=qual,
        filter=filt,
        info=info,
        format=fmt,
        genotypes=genotypes,
        has_format_column=has_format_column,
    )


def format_vcf_record(record: VariantRecord) -> str:
    """Serialize a record to a VCF data line (no trailing newline)."""
    return record.to_line()
