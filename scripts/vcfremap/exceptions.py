"""
Error types for variant coordinate remapping.

Every error is also a ValueError, so callers that only guard against bad
input values keep working.

Scope of each error:
    MalformedRecordError, UnsupportedAlleleKindError, ContigOrderError
        Fatal for the whole file being read.
    EmptyInputSetError, MixedContigsError, AmbiguousOffsetError
        Fatal for the contig being relocated.
    AmbiguousStrandError
        Local to one transcript; the mapper skips that transcript only.
"""

from typing import Optional


class RemapError(ValueError):
    """Base class for all coordinate remapping errors."""


class MalformedRecordError(RemapError):
    """A VCF data line could not be parsed."""

    def __init__(self, message: str, line: Optional[str] = None,
                 line_number: Optional[int] = None):
        self.line = line
        self.line_number = line_number
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        if line is not None:
            message = f"{message}\n  {line}"
        super().__init__(message)


class UnsupportedAlleleKindError(MalformedRecordError):
    """ALT uses breakend or symbolic allele notation."""


class EmptyInputSetError(RemapError):
    """The cascader was given no records."""


class MixedContigsError(RemapError):
    """The cascader was given records from more than one contig."""


class AmbiguousOffsetError(RemapError):
    """Alternate alleles of a multi-allelic site differ in length."""


class ContigOrderError(RemapError):
    """A contig's records are not contiguous in a streamed VCF file."""


class AmbiguousStrandError(RemapError):
    """A transcript's strand is neither positive nor negative."""

    def __init__(self, transcript_name: str, strand: str):
        self.transcript_name = transcript_name
        self.strand = strand
        super().__init__(
            f"Transcript {transcript_name} has strand '{strand}'; "
            "strand must be '+' or '-'"
        )
