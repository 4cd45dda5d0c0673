"""
Indel Offset Cascade onto a Variant-Modified Sequence

Given every variant of one contig, compute where each variant sits on the
sequence obtained by applying all of them at once.

Mathematical Background:
------------------------
Applying a variant changes the sequence length by

    offset(r) = len(ALT) - len(REF)

and shifts every site downstream of r by that amount, while sites upstream
of r are unaffected. Folding from the highest position down, each record
shifts everything already folded:

    pos'(r_i) = pos(r_i) + sum(offset(r_j) for r_j ordered before r_i)

which is the exclusive cumulative sum of offsets in ascending record order.

Example:
    chr1:50  C -> CAT   (offset +2)
    chr1:100 A -> G     (offset  0)

    chr1:50  stays at 50
    chr1:100 moves to 102

Precondition: the input must hold every variant that will be incorporated
into that contig's synthetic sequence; a partial set gives wrong positions.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

import numpy as np

from .alleles import Allele
from .exceptions import EmptyInputSetError, MixedContigsError
from .records import VariantRecord

logger = logging.getLogger(__name__)


def record_offset(record: VariantRecord) -> int:
    """
    Change in sequence length caused by applying a record.

    Raises:
        AmbiguousOffsetError: Multi-allelic site whose alternates differ
            in length (split it first with split_multiallelic)

    Examples:
        >>> from vcfremap.records import parse_vcf_line
        >>> record_offset(parse_vcf_line("chr1\\t50\\t.\\tC\\tCAT\\t.\\t.\\t."))
        2
    """
    return record.allele.length_change


def modified_contig_name(
    contig: str,
    suffix: str = "",
    rename: Optional[str] = None
) -> str:
    """Name of the variant-modified sequence for a contig."""
    if rename is not None:
        return rename
    return contig + suffix


def cascade_offsets(
    records: Iterable[VariantRecord],
    suffix: str = "",
    rename: Optional[str] = None
) -> List[VariantRecord]:
    """
    Relocate all records of one contig onto the variant-modified sequence.

    Args:
        records: Every record of a single contig, in any order
        suffix: Appended to the contig name of each output record
        rename: Replaces the contig name outright (takes precedence over suffix)

    Returns:
        Relocated records in ascending order, one per input record

    Raises:
        EmptyInputSetError: No records given
        MixedContigsError: Records from more than one contig
        AmbiguousOffsetError: Multi-allelic ALT with differing lengths

    Examples:
        >>> from vcfremap.records import parse_vcf_line
        >>> recs = [
        ...     parse_vcf_line("chr1\\t100\\t.\\tA\\tG\\t.\\t.\\t."),
        ...     parse_vcf_line("chr1\\t50\\t.\\tC\\tCAT\\t.\\t.\\t."),
        ... ]
        >>> [r.position for r in cascade_offsets(recs)]
        [50, 102]
    """
    ordered = sorted(records)
    if not ordered:
        raise EmptyInputSetError("Set of records is empty")

    contigs = sorted({r.contig for r in ordered})
    if len(contigs) > 1:
        raise MixedContigsError(
            f"Records come from {len(contigs)} contigs: {', '.join(contigs)}"
        )

    new_contig = modified_contig_name(contigs[0], suffix, rename)

    offsets = np.fromiter((record_offset(r) for r in ordered), dtype=np.int64,
                          count=len(ordered))
    # Shift from everything upstream of each record, excluding itself
    shifts = np.cumsum(offsets) - offsets

    relocated = []
    for record, shift in zip(ordered, shifts):
        moved = record.with_position(record.position + int(shift))
        if moved.contig != new_contig:
            moved = moved.with_contig(new_contig)
        relocated.append(moved)

    logger.debug(
        f"{contigs[0]}: relocated {len(relocated)} records, "
        f"net length change {int(offsets.sum())}"
    )
    return relocated


def split_multiallelic(record: VariantRecord) -> List[VariantRecord]:
    """
    Split a multi-allelic record into one record per alternate allele.

    All other fields, including genotype columns, are carried unchanged.

    Examples:
        >>> from vcfremap.records import parse_vcf_line
        >>> rec = parse_vcf_line("chr1\\t10\\t.\\tA\\tG,AT\\t.\\t.\\t.")
        >>> [r.alt for r in split_multiallelic(rec)]
        ['G', 'AT']
    """
    if not record.allele.is_multiallelic:
        return [record]
    return [
        record.with_allele(Allele(reference=record.ref, alternates=(alt,)))
        for alt in record.allele.alternates
    ]


def drop_duplicates(records: Iterable[VariantRecord]) -> List[VariantRecord]:
    """Keep the first of any records identical in every field."""
    unique = []
    seen = set()
    for record in records:
        if record in seen:
            logger.warning(f"Dropping duplicate record: {record.contig}:{record.position} "
                           f"{record.ref}>{record.alt}")
            continue
        seen.add(record)
        unique.append(record)
    return unique


def group_by_contig(
    records: Iterable[VariantRecord]
) -> Dict[str, List[VariantRecord]]:
    """
    Group records by contig, keeping first-seen contig order.

    Records identical in every field are kept once.

    Args:
        records: Records from any number of contigs

    Returns:
        Ordered mapping of contig name to its records
    """
    by_contig: Dict[str, List[VariantRecord]] = OrderedDict()
    for record in drop_duplicates(records):
        if record.contig not in by_contig:
            by_contig[record.contig] = []
        by_contig[record.contig].append(record)
    return by_contig
