"""
vcfremap - Variant-Aware Coordinate Remapping

Functions for moving VCF records between coordinate frames:
- Original reference genome
- Variant-modified sequence (all variants of a contig incorporated)
- Transcript-relative coordinates (spliced, strand-corrected)
"""

__version__ = "1.0.0"

from .alleles import (
    Allele,
    reverse_complement_sequence,
)

from .records import (
    VariantRecord,
    parse_vcf_line,
    format_vcf_record,
)

from .cascade import (
    cascade_offsets,
    record_offset,
    split_multiallelic,
    group_by_contig,
)

from .transcripts import (
    Transcript,
    TranscriptIndex,
    TranscriptHit,
    convert_to_transcript,
    map_to_transcripts,
)

from .exceptions import (
    RemapError,
    MalformedRecordError,
    UnsupportedAlleleKindError,
    EmptyInputSetError,
    MixedContigsError,
    AmbiguousOffsetError,
    ContigOrderError,
    AmbiguousStrandError,
)

__all__ = [
    # Alleles
    "Allele",
    "reverse_complement_sequence",
    # Records
    "VariantRecord",
    "parse_vcf_line",
    "format_vcf_record",
    # Cascade
    "cascade_offsets",
    "record_offset",
    "split_multiallelic",
    "group_by_contig",
    # Transcripts
    "Transcript",
    "TranscriptIndex",
    "TranscriptHit",
    "convert_to_transcript",
    "map_to_transcripts",
    # Errors
    "RemapError",
    "MalformedRecordError",
    "UnsupportedAlleleKindError",
    "EmptyInputSetError",
    "MixedContigsError",
    "AmbiguousOffsetError",
    "ContigOrderError",
    "AmbiguousStrandError",
]
