"""
Whole-File Coordinate Conversion

Two conversions over complete VCF files:

1. Variant-modified sequence
   Every contig's records are relocated onto the sequence that incorporates
   all of that contig's variants (see cascade.py). Contigs are independent,
   so with jobs > 1 each contig is one ProcessPoolExecutor task and results
   are concatenated in input contig order. No more than `jobs` contigs are
   read ahead of the output.

2. Transcript coordinates
   Every record is converted against each overlapping transcript (see
   transcripts.py). One input record may give several output records.

Header lines are copied unchanged. Each conversion returns a pandas summary
table which callers can save with write_summary().
"""

import logging
from collections import deque
from concurrent.futures import Future, ProcessPoolExecutor
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import pandas as pd

from .cascade import cascade_offsets, drop_duplicates, group_by_contig, modified_contig_name
from .exceptions import MixedContigsError
from .records import VariantRecord
from .transcripts import TranscriptIndex, iter_transcript_hits
from .vcf_io import iter_contig_blocks, iter_records, read_header, write_vcf

logger = logging.getLogger(__name__)

MODIFIED_SUMMARY_COLUMNS = [
    "contig", "modified_contig", "records_in", "records_out", "net_length_change"
]
TRANSCRIPT_SUMMARY_COLUMNS = ["transcript", "contig", "strand", "records"]

PROGRESS_INTERVAL = 100000


@dataclass
class ContigResult:
    """Relocated records for one contig."""
    contig: str
    modified_contig: str
    records_in: int
    records: List[VariantRecord]
    net_length_change: int


def relocate_contig(
    contig: str,
    records: List[VariantRecord],
    suffix: str = "",
    rename: Optional[str] = None
) -> ContigResult:
    """Relocate one contig's records (unit of work for the process pool)."""
    unique = drop_duplicates(records)
    relocated = cascade_offsets(unique, suffix=suffix, rename=rename)
    net_change = sum(r.allele.length_change for r in unique)
    return ContigResult(
        contig=contig,
        modified_contig=modified_contig_name(contig, suffix, rename),
        records_in=len(records),
        records=relocated,
        net_length_change=net_change,
    )


def _iter_relocated(
    blocks: Iterable[Tuple[str, List[VariantRecord]]],
    suffix: str,
    rename: Optional[str],
    jobs: int
) -> Iterator[ContigResult]:
    if jobs <= 1:
        for contig, block in blocks:
            yield relocate_contig(contig, block, suffix, rename)
        return

    # At most `jobs` contig blocks held in memory at once
    pending: Deque[Future] = deque()
    with ProcessPoolExecutor(max_workers=jobs) as executor:
        for contig, block in blocks:
            pending.append(executor.submit(relocate_contig, contig, block, suffix, rename))
            if len(pending) >= jobs:
                yield pending.popleft().result()
        while pending:
            yield pending.popleft().result()


def convert_file_to_modified_sequence(
    input_vcf: str,
    output_vcf: str,
    suffix: str = "",
    rename: Optional[str] = None,
    jobs: int = 1,
    assume_sorted: bool = True,
    index: bool = False
) -> pd.DataFrame:
    """
    Relocate all records of a VCF onto variant-modified sequences.

    Args:
        input_vcf: Input VCF (supports .gz)
        output_vcf: Output VCF; .gz gives bgzip output
        suffix: Appended to every contig name
        rename: New contig name; only valid for single-contig files
        jobs: Parallel contig tasks
        assume_sorted: Stream contig blocks (each contig's records adjacent);
            if False the whole file is loaded and grouped first
        index: Tabix-index .gz output

    Returns:
        Per-contig summary (MODIFIED_SUMMARY_COLUMNS)

    Raises:
        MalformedRecordError: Unparseable line (no output is usable)
        ContigOrderError: assume_sorted and a contig is not contiguous
        MixedContigsError: rename given for a multi-contig file
    """
    header = read_header(input_vcf)
    records = iter_records(input_vcf)
    if assume_sorted:
        blocks = iter_contig_blocks(records)
    else:
        blocks = iter(group_by_contig(records).items())

    logger.info(f"Converting {input_vcf} to variant-modified coordinates (jobs={jobs})")

    summary_rows: List[Dict] = []

    def relocated_records() -> Iterator[VariantRecord]:
        for result in _iter_relocated(blocks, suffix, rename, jobs):
            if rename is not None and summary_rows:
                raise MixedContigsError(
                    f"Cannot rename {summary_rows[0]['contig']} and {result.contig} "
                    f"both to {rename}"
                )
            summary_rows.append({
                "contig": result.contig,
                "modified_contig": result.modified_contig,
                "records_in": result.records_in,
                "records_out": len(result.records),
                "net_length_change": result.net_length_change,
            })
            logger.info(f"[OK] {result.contig} -> {result.modified_contig}: "
                        f"{len(result.records)} records, "
                        f"length change {result.net_length_change:+d}")
            yield from result.records

    n_written = write_vcf(output_vcf, header, relocated_records(), index=index)
    logger.info(f"Wrote {n_written} records to {output_vcf}")

    return pd.DataFrame(summary_rows, columns=MODIFIED_SUMMARY_COLUMNS)


def convert_file_to_transcript_coords(
    input_vcf: str,
    output_vcf: str,
    transcript_index: TranscriptIndex,
    transcript_sequences: Optional[Mapping[str, str]] = None,
    require_ref_within_exon: bool = False,
    progress_interval: int = PROGRESS_INTERVAL
) -> pd.DataFrame:
    """
    Convert all records of a VCF to transcript coordinates.

    Args:
        input_vcf: Input VCF in genomic coordinates (supports .gz)
        output_vcf: Output VCF; .gz gives bgzip output (not indexed)
        transcript_index: Index of gene models
        transcript_sequences: Optional transcript name -> spliced sequence,
            used to re-anchor indels on '-' strand transcripts
        require_ref_within_exon: Only convert when REF lies in one exon
        progress_interval: Log progress every this many input records

    Returns:
        Per-transcript summary (TRANSCRIPT_SUMMARY_COLUMNS)
    """
    header = read_header(input_vcf)
    hit_counts: Dict[Tuple[str, str, str], int] = {}
    stats = {"records_in": 0, "unmapped": 0}

    logger.info(f"Converting records from {input_vcf} to transcript coordinates "
                f"and writing to {output_vcf}...")

    def converted_records() -> Iterator[VariantRecord]:
        for record in iter_records(input_vcf):
            stats["records_in"] += 1
            if stats["records_in"] % progress_interval == 0:
                logger.info(f"Finished {stats['records_in']} records.")
            n_hits = 0
            for hit in iter_transcript_hits(
                record, transcript_index,
                transcript_sequences=transcript_sequences,
                require_ref_within_exon=require_ref_within_exon,
            ):
                key = (hit.transcript.name, hit.transcript.contig, hit.transcript.strand)
                hit_counts[key] = hit_counts.get(key, 0) + 1
                n_hits += 1
                yield hit.converted
            if n_hits == 0:
                stats["unmapped"] += 1

    n_written = write_vcf(output_vcf, header, converted_records())
    logger.info(f"Done writing converted file: {stats['records_in']} records in, "
                f"{n_written} records out, {stats['unmapped']} not in any exon")

    summary = pd.DataFrame(
        [(name, contig, strand, count) for (name, contig, strand), count in hit_counts.items()],
        columns=TRANSCRIPT_SUMMARY_COLUMNS,
    )
    return summary.sort_values(["contig", "transcript"]).reset_index(drop=True)


def write_summary(summary: pd.DataFrame, path: str) -> None:
    """Save a conversion summary as TSV."""
    summary.to_csv(path, sep="\t", index=False)
    logger.info(f"Summary saved to: {path}")
