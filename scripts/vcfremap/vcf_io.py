"""
VCF File Reading and Writing

Header lines ('##' meta lines and the '#CHROM' column line) are passed
through verbatim; only the '#CHROM' line is interpreted, for the sample IDs.
Data lines are parsed into VariantRecord objects with their line numbers, so
any parse failure points at the offending line.

Streaming:
    iter_contig_blocks() yields one contig's records at a time from a
    contig-contiguous file (the usual layout of a sorted VCF), which bounds
    memory to the largest contig. A contig that reappears after another one
    raises ContigOrderError.

Compressed files:
    - Input ending in .gz is read with gzip (plain gzip and BGZF both work)
    - Output ending in .gz is bgzip-compressed with pysam, and optionally
      tabix-indexed (requires position-sorted output)
"""

import gzip
import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import IO, Iterable, Iterator, List, Optional, Tuple

import pysam

from .exceptions import ContigOrderError, MalformedRecordError
from .records import VariantRecord, parse_sample_ids, parse_vcf_line

logger = logging.getLogger(__name__)


@dataclass
class VcfHeader:
    """Header section of a VCF file."""
    meta_lines: List[str] = field(default_factory=list)
    column_line: Optional[str] = None

    @property
    def sample_ids(self) -> List[str]:
        if self.column_line is None:
            return []
        return parse_sample_ids(self.column_line)

    @property
    def lines(self) -> List[str]:
        """All header lines in file order."""
        if self.column_line is None:
            return list(self.meta_lines)
        return self.meta_lines + [self.column_line]


def open_vcf(path: str, mode: str = 'rt') -> IO[str]:
    """Open a VCF for text I/O, transparently handling .gz input."""
    opener = gzip.open if str(path).endswith('.gz') else open
    return opener(path, mode)


def read_header(vcf_path: str) -> VcfHeader:
    """
    Read the header section of a VCF file.

    Args:
        vcf_path: Path to VCF (supports .gz)

    Returns:
        VcfHeader with every line before the first data line
    """
    header = VcfHeader()
    with open_vcf(vcf_path) as f:
        for line in f:
            text = line.rstrip("\r\n")
            if text.startswith("##"):
                header.meta_lines.append(text)
            elif text.startswith("#"):
                # Validates the column line
                parse_sample_ids(text)
                header.column_line = text
                break
            elif text:
                break
    return header


def iter_records(vcf_path: str) -> Iterator[VariantRecord]:
    """
    Parse every data line of a VCF file.

    Args:
        vcf_path: Path to VCF (supports .gz)

    Yields:
        VariantRecord in file order

    Raises:
        MalformedRecordError: Unparseable data line, or a header line
            appearing after data lines
        UnsupportedAlleleKindError: Breakend or symbolic ALT
    """
    column_line = None
    seen_data = False
    with open_vcf(vcf_path) as f:
        for line_number, line in enumerate(f, start=1):
            text = line.rstrip("\r\n")
            if not text:
                continue
            if text.startswith("#"):
                if seen_data:
                    raise MalformedRecordError(
                        "Header line after data lines", line=text, line_number=line_number
                    )
                if not text.startswith("##"):
                    column_line = text
                continue
            seen_data = True
            yield parse_vcf_line(text, header_line=column_line, line_number=line_number)


def iter_contig_blocks(
    records: Iterable[VariantRecord]
) -> Iterator[Tuple[str, List[VariantRecord]]]:
    """
    Group a contig-contiguous record stream into per-contig blocks.

    Args:
        records: Records where each contig's records are adjacent

    Yields:
        (contig, records) tuples in stream order

    Raises:
        ContigOrderError: A contig reappears after a different contig
    """
    finished = set()
    current: Optional[str] = None
    block: List[VariantRecord] = []

    for record in records:
        if record.contig != current:
            if current is not None:
                finished.add(current)
                yield current, block
            if record.contig in finished:
                raise ContigOrderError(
                    f"Records for {record.contig} are not contiguous; "
                    "sort the VCF or load the whole file"
                )
            current = record.contig
            block = []
        block.append(record)

    if current is not None:
        yield current, block


def write_vcf(
    vcf_path: str,
    header: VcfHeader,
    records: Iterable[VariantRecord],
    index: bool = False
) -> int:
    """
    Write header lines and records to a VCF file.

    Args:
        vcf_path: Output path; a .gz suffix gives bgzip output
        header: Header lines to copy
        records: Records to write, in output order; may be a generator
            that raises, in which case no output file is created
        index: Build a tabix index (only for .gz output)

    Returns:
        Number of records written
    """
    vcf_path = str(vcf_path)
    compress = vcf_path.endswith('.gz')

    # Uniquely named scratch file beside the output; only the finished file
    # is moved into place, and no other path is ever written or removed
    out_dir = os.path.dirname(os.path.abspath(vcf_path))
    fd, tmp_path = tempfile.mkstemp(prefix=".vcfremap.", suffix=".vcf", dir=out_dir)
    n_written = 0
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as out:
            for line in header.lines:
                out.write(line + "\n")
            for record in records:
                out.write(record.to_line() + "\n")
                n_written += 1

        if compress:
            bgzip_vcf(tmp_path, vcf_path, index=index)
        else:
            # mkstemp creates 0600; give the output the usual umask permissions
            umask = os.umask(0)
            os.umask(umask)
            os.chmod(tmp_path, 0o666 & ~umask)
            os.replace(tmp_path, vcf_path)
    except BaseException:
        for path in (tmp_path, tmp_path + ".gz", tmp_path + ".gz.tbi"):
            if os.path.exists(path):
                os.remove(path)
        raise

    if index and not compress:
        logger.warning(f"Tabix index needs .gz output; not indexing {vcf_path}")

    return n_written


def bgzip_vcf(plain_path: str, gz_path: str, index: bool = False) -> str:
    """
    Compress a plain VCF with bgzip into gz_path and remove the plain file.

    With index=True a tabix index is written to gz_path + ".tbi" (the VCF
    must be position-sorted).

    Returns:
        Path of the compressed file
    """
    staged = plain_path + ".gz"
    pysam.tabix_compress(plain_path, staged, force=True)
    os.remove(plain_path)

    if index:
        pysam.tabix_index(staged, preset="vcf", force=True)
        os.replace(staged + ".tbi", gz_path + ".tbi")
    os.replace(staged, gz_path)

    if index:
        logger.info(f"Wrote bgzip VCF and tabix index: {gz_path}")
    return gz_path
