"""
Transcript Coordinate Conversion

Re-express genomic VCF records in transcript-relative coordinates: the
distance from the 5' end of the spliced transcript.

Coordinate Conventions:
-----------------------
    - Exon blocks are zero-based, half-open, as in BED
    - Transcript coordinates are zero-based internally; converted VCF
      records get the usual 1-based POS (relative + 1)

For a genomic position g inside exon block [s, e):

    + strand:  rel = (exonic bases in blocks before the block) + (g - s)
    - strand:  rel = (exonic bases in blocks after the block) + (e - 1 - g)

Alleles of records mapped onto a '-' strand transcript are reverse
complemented. A record overlapping several transcripts yields one converted
record per transcript; these are not deduplicated.

Gene Model Input (BED6 / BED12):
    Col 1-3: chrom, chromStart, chromEnd
    Col 4:   name (becomes the converted record's contig)
    Col 6:   strand
    Col 10-12: blockCount, blockSizes, blockStarts (BED12 only)
"""

import bisect
import gzip
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Tuple

from Bio import SeqIO

from .alleles import Allele, reverse_complement_sequence
from .exceptions import AmbiguousStrandError
from .records import VariantRecord

logger = logging.getLogger(__name__)

VALID_STRANDS = ("+", "-")


@dataclass(frozen=True)
class Transcript:
    """A spliced transcript on a genomic contig."""
    name: str
    contig: str
    strand: str
    blocks: Tuple[Tuple[int, int], ...]  # zero-based, half-open, ascending

    def __post_init__(self):
        if not self.blocks:
            raise ValueError(f"Transcript {self.name} has no blocks")
        previous_end = None
        for start, end in self.blocks:
            if start < 0 or end <= start:
                raise ValueError(f"Transcript {self.name}: invalid block ({start}, {end})")
            if previous_end is not None and start < previous_end:
                raise ValueError(f"Transcript {self.name}: blocks overlap or are unsorted")
            previous_end = end

    @property
    def start(self) -> int:
        return self.blocks[0][0]

    @property
    def end(self) -> int:
        return self.blocks[-1][1]

    @property
    def exonic_length(self) -> int:
        return sum(end - start for start, end in self.blocks)

    @property
    def has_valid_strand(self) -> bool:
        return self.strand in VALID_STRANDS

    def spans(self, pos: int) -> bool:
        """True if pos lies between the first and last base, introns included."""
        return self.start <= pos < self.end

    def _block_index(self, pos: int) -> Optional[int]:
        starts = [start for start, _ in self.blocks]
        i = bisect.bisect_right(starts, pos) - 1
        if i >= 0 and pos < self.blocks[i][1]:
            return i
        return None

    def relative_position_from_5prime(self, pos: int) -> Optional[int]:
        """
        Distance of a genomic position from the transcript's 5' end.

        Args:
            pos: Zero-based genomic position

        Returns:
            Zero-based transcript coordinate, or None if pos is not exonic

        Raises:
            AmbiguousStrandError: Strand is not '+' or '-'

        Examples:
            >>> t = Transcript("tx", "chr1", "+", ((100, 110), (200, 220)))
            >>> t.relative_position_from_5prime(205)
            15
            >>> t.relative_position_from_5prime(150) is None
            True
        """
        if not self.has_valid_strand:
            raise AmbiguousStrandError(self.name, self.strand)
        i = self._block_index(pos)
        if i is None:
            return None
        start, end = self.blocks[i]
        if self.strand == "+":
            upstream = sum(e - s for s, e in self.blocks[:i])
            return upstream + (pos - start)
        upstream = sum(e - s for s, e in self.blocks[i + 1:])
        return upstream + (end - 1 - pos)

    def contains_interval(self, start: int, end: int) -> bool:
        """True if [start, end) lies entirely within a single exon block."""
        return any(s <= start and end <= e for s, e in self.blocks)


def parse_bed_line(line: str) -> Optional[Transcript]:
    """
    Parse a BED6 or BED12 line into a Transcript.

    Args:
        line: Tab-separated BED line

    Returns:
        Transcript, or None for header/comment/blank lines

    Raises:
        ValueError: Fewer than 6 columns or non-integer coordinates

    Examples:
        >>> t = parse_bed_line("chr1\\t100\\t220\\ttx1\\t0\\t-\\t100\\t220\\t0\\t2\\t10,20,\\t0,100,")
        >>> t.blocks
        ((100, 110), (200, 220))
    """
    text = line.rstrip("\r\n")
    if not text.strip() or text.startswith(("#", "track", "browser")):
        return None

    parts = text.split("\t")
    if len(parts) < 6:
        raise ValueError(f"BED line needs at least 6 columns: {text}")

    chrom, name, strand = parts[0], parts[3], parts[5]
    chrom_start, chrom_end = int(parts[1]), int(parts[2])

    if len(parts) >= 12:
        block_count = int(parts[9])
        sizes = [int(x) for x in parts[10].rstrip(",").split(",")]
        offsets = [int(x) for x in parts[11].rstrip(",").split(",")]
        if len(sizes) != block_count or len(offsets) != block_count:
            raise ValueError(f"BED block count mismatch for {name}")
        blocks = tuple(
            (chrom_start + off, chrom_start + off + size)
            for off, size in sorted(zip(offsets, sizes))
        )
    else:
        blocks = ((chrom_start, chrom_end),)

    return Transcript(name=name, contig=chrom, strand=strand, blocks=blocks)


def read_bed_file(bed_path: str) -> Iterator[Transcript]:
    """Yield transcripts from a BED file (supports .gz)."""
    opener = gzip.open if str(bed_path).endswith('.gz') else open
    with opener(bed_path, 'rt') as f:
        for line in f:
            transcript = parse_bed_line(line)
            if transcript is not None:
                yield transcript


class TranscriptIndex:
    """
    Lookup of transcripts overlapping a genomic position.

    Built once and shared across many mapper calls.
    """

    def __init__(self, transcripts: Iterable[Transcript]):
        self._by_contig: Dict[str, List[Transcript]] = {}
        for transcript in transcripts:
            self._by_contig.setdefault(transcript.contig, []).append(transcript)

        self._starts: Dict[str, List[int]] = {}
        self._max_span: Dict[str, int] = {}
        for contig, items in self._by_contig.items():
            items.sort(key=lambda t: (t.start, t.end, t.name))
            self._starts[contig] = [t.start for t in items]
            self._max_span[contig] = max(t.end - t.start for t in items)

    @classmethod
    def from_bed(cls, bed_path: str) -> "TranscriptIndex":
        index = cls(read_bed_file(bed_path))
        logger.info(f"Loaded {len(index)} transcripts on {len(index.contigs)} contigs "
                    f"from {bed_path}")
        return index

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_contig.values())

    @property
    def contigs(self) -> List[str]:
        return list(self._by_contig)

    def overlapping_transcripts(self, contig: str, pos: int) -> List[Transcript]:
        """
        Transcripts whose genomic span contains a position.

        Args:
            contig: Contig name
            pos: Zero-based genomic position

        Returns:
            Transcripts sorted by (start, end, name); introns count as overlap
        """
        items = self._by_contig.get(contig)
        if not items:
            return []
        starts = self._starts[contig]
        hi = bisect.bisect_right(starts, pos)
        lo = bisect.bisect_left(starts, pos - self._max_span[contig] + 1)
        return [t for t in items[lo:hi] if t.spans(pos)]


def load_transcript_sequences(fasta_path: str) -> Dict[str, str]:
    """
    Load transcript sequences keyed by FASTA record ID.

    Args:
        fasta_path: FASTA file of spliced transcript sequences (supports .gz)

    Returns:
        Dictionary of transcript name to sequence
    """
    opener = gzip.open if str(fasta_path).endswith('.gz') else open
    with opener(fasta_path, 'rt') as handle:
        sequences = {record.id: str(record.seq) for record in SeqIO.parse(handle, "fasta")}
    logger.info(f"Loaded {len(sequences)} transcript sequences from {fasta_path}")
    return sequences


def _is_anchored_deletion(allele: Allele) -> bool:
    return (
        len(allele.alternates) == 1
        and len(allele.reference) > 1
        and len(allele.alternates[0]) == 1
        and allele.reference[0].upper() == allele.alternates[0].upper()
    )


def _is_anchored_insertion(allele: Allele) -> bool:
    return (
        len(allele.alternates) == 1
        and len(allele.reference) == 1
        and len(allele.alternates[0]) > 1
        and allele.reference[0].upper() == allele.alternates[0][0].upper()
    )


def _reanchor_negative_strand_indel(
    record: VariantRecord,
    transcript: Transcript,
    transcript_sequence: str
) -> Optional[VariantRecord]:
    """
    Rebuild a left-anchored indel for a '-' strand transcript.

    In transcript orientation the genomic anchor base ends up 3' of the
    event, so the anchor is replaced by the transcript base 5' of it.
    """
    genomic = record.zero_based_position
    allele = record.allele
    if len(transcript_sequence) != transcript.exonic_length:
        raise ValueError(
            f"Sequence of {transcript.name} has length {len(transcript_sequence)}, "
            f"expected {transcript.exonic_length} from its exon blocks"
        )

    if _is_anchored_deletion(allele):
        deleted = allele.reference[1:]
        first_deleted = transcript.relative_position_from_5prime(genomic + 1)
        if first_deleted is None:
            return None
        anchor_pos = first_deleted - len(deleted)
        if anchor_pos < 0:
            return None
        anchor = transcript_sequence[anchor_pos].upper()
        new_allele = Allele(
            reference=anchor + reverse_complement_sequence(deleted).upper(),
            alternates=(anchor,),
        )
    else:
        inserted = allele.alternates[0][1:]
        anchor_pos = transcript.relative_position_from_5prime(genomic + 1)
        if anchor_pos is None:
            return None
        anchor = transcript_sequence[anchor_pos].upper()
        new_allele = Allele(
            reference=anchor,
            alternates=(anchor + reverse_complement_sequence(inserted).upper(),),
        )

    return (record
            .with_contig(transcript.name)
            .with_position(anchor_pos + 1)
            .with_allele(new_allele))


def convert_to_transcript(
    record: VariantRecord,
    transcript: Transcript,
    transcript_sequence: Optional[str] = None,
    require_ref_within_exon: bool = False
) -> Optional[VariantRecord]:
    """
    Convert one genomic record to one transcript's coordinates.

    Args:
        record: Record in genomic coordinates
        transcript: Transcript overlapping the record
        transcript_sequence: Spliced sequence of the transcript; enables
            re-anchoring of indels on '-' strand transcripts
        require_ref_within_exon: Only convert when the whole REF span lies
            in one exon block

    Returns:
        Converted record, or None if the position is not exonic (or, for an
        indel re-anchored from transcript_sequence, if REF leaves its exon)

    Raises:
        AmbiguousStrandError: Transcript strand is not '+' or '-'

    Examples:
        >>> from vcfremap.records import parse_vcf_line
        >>> rec = parse_vcf_line("chr1\\t101\\t.\\tA\\tG\\t.\\t.\\t.")
        >>> t = Transcript("tx", "chr1", "-", ((100, 110),))
        >>> out = convert_to_transcript(rec, t)
        >>> out.contig, out.position, out.ref, out.alt
        ('tx', 10, 'T', 'C')
    """
    if not transcript.has_valid_strand:
        raise AmbiguousStrandError(transcript.name, transcript.strand)

    if require_ref_within_exon and not transcript.contains_interval(*record.reference_interval):
        return None

    negative = transcript.strand == "-"

    if (negative and transcript_sequence is not None
            and (_is_anchored_deletion(record.allele) or _is_anchored_insertion(record.allele))):
        # Re-anchoring assumes the REF bases are contiguous in the transcript
        if not transcript.contains_interval(*record.reference_interval):
            return None
        return _reanchor_negative_strand_indel(record, transcript, transcript_sequence)

    converted = record.reverse_complement_alleles() if negative else record
    converted = converted.with_contig(transcript.name)

    relative = transcript.relative_position_from_5prime(record.zero_based_position)
    if relative is None:
        return None

    return converted.with_position(relative + 1)


class TranscriptHit(NamedTuple):
    """A converted record together with where it came from."""
    source: VariantRecord
    transcript: Transcript
    converted: VariantRecord


def iter_transcript_hits(
    record: VariantRecord,
    lookup,
    transcript_sequences: Optional[Mapping[str, str]] = None,
    require_ref_within_exon: bool = False
) -> Iterator[TranscriptHit]:
    """
    Convert a record against every transcript overlapping it.

    Args:
        record: Record in genomic coordinates
        lookup: Object with overlapping_transcripts(contig, zero_based_pos)
        transcript_sequences: Optional transcript name -> spliced sequence
        require_ref_within_exon: See convert_to_transcript

    Yields:
        TranscriptHit for each transcript giving a converted record.
        Transcripts with an ambiguous strand are logged and skipped.
    """
    for transcript in lookup.overlapping_transcripts(record.contig, record.zero_based_position):
        sequence = None
        if transcript_sequences is not None:
            sequence = transcript_sequences.get(transcript.name)
            if sequence is None and transcript.strand == "-":
                logger.debug(f"No sequence for {transcript.name}; indels keep genomic anchor")
        try:
            converted = convert_to_transcript(
                record, transcript,
                transcript_sequence=sequence,
                require_ref_within_exon=require_ref_within_exon,
            )
        except AmbiguousStrandError as e:
            logger.warning(f"Skipping {record.contig}:{record.position} on {e.transcript_name}: {e}")
            continue
        if converted is not None:
            yield TranscriptHit(source=record, transcript=transcript, converted=converted)


def map_to_transcripts(
    record: VariantRecord,
    lookup,
    transcript_sequences: Optional[Mapping[str, str]] = None,
    require_ref_within_exon: bool = False
) -> List[VariantRecord]:
    """
    All transcript-space versions of a genomic record.

    Returns:
        Zero or more converted records, one per exon-overlapping transcript
        with a valid strand, in transcript order
    """
    return [
        hit.converted
        for hit in iter_transcript_hits(
            record, lookup,
            transcript_sequences=transcript_sequences,
            require_ref_within_exon=require_ref_within_exon,
        )
    ]
