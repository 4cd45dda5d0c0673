#!/usr/bin/env python3
"""
vcfremap command line

Subcommands:
    modified-sequence   Move VCF positions onto the sequence that incorporates
                        every variant of each contig
    transcript-coords   Move VCF positions into transcript coordinates,
                        reverse complementing alleles on '-' strand genes

Usage:
    # Append "_mod" to contig names, 4 contigs in parallel
    vcfremap modified-sequence -i calls.vcf -o calls.mod.vcf -a _mod --jobs 4

    # Transcript coordinates from a BED12 gene annotation
    vcfremap transcript-coords -i calls.vcf -o calls.tx.vcf -g genes.bed -t tx.fa

    # Settings from YAML, flags still override
    vcfremap modified-sequence -i calls.vcf -o out.vcf --config config.yaml
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from . import __version__
from .config import LOG_LEVELS, get_nested, load_config, log_level, validate_config
from .exceptions import RemapError
from .pipeline import (
    convert_file_to_modified_sequence,
    convert_file_to_transcript_coords,
    write_summary,
)
from .transcripts import TranscriptIndex, load_transcript_sequences

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vcfremap",
        description="Variant-aware coordinate remapping for VCF files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-i", "--input", required=True, help="Input VCF (.vcf or .vcf.gz)")
    common.add_argument("-o", "--output", required=True, help="Output VCF (.gz for bgzip)")
    common.add_argument("--config", help="YAML configuration file")
    common.add_argument("--summary", help="Write a TSV conversion summary here")
    common.add_argument("--log-level", choices=LOG_LEVELS, help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    mod = subparsers.add_parser(
        "modified-sequence", parents=[common],
        help="Positions on the variant-incorporated sequence"
    )
    mod.add_argument("-a", "--suffix", default=None,
                     help="String to append to contig names")
    mod.add_argument("--rename", default=None,
                     help="New contig name (single-contig files only)")
    mod.add_argument("--jobs", type=int, default=None,
                     help="Contigs to process in parallel")
    mod.add_argument("--unsorted", action="store_true",
                     help="Load the whole file instead of streaming contig blocks")
    mod.add_argument("--index", action="store_true",
                     help="Tabix-index .gz output")

    tx = subparsers.add_parser(
        "transcript-coords", parents=[common],
        help="Positions in transcript coordinates"
    )
    tx.add_argument("-g", "--genes", default=None, help="Gene annotation BED6/BED12 file")
    tx.add_argument("-t", "--transcripts", default=None,
                    help="FASTA of transcript sequences (re-anchors '-' strand indels)")
    tx.add_argument("--require-ref-within-exon", action="store_true",
                    help="Only convert records whose REF lies in one exon")

    return parser


def apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    """Copy command-line flags that were given into the config."""
    if args.log_level:
        config["logging"]["level"] = args.log_level

    if args.command == "modified-sequence":
        section = config["modified_sequence"]
        if args.suffix is not None:
            section["contig_suffix"] = args.suffix
        if args.rename is not None:
            section["rename"] = args.rename
        if args.jobs is not None:
            section["jobs"] = args.jobs
        if args.unsorted:
            section["assume_sorted"] = False
    else:
        section = config["transcripts"]
        if args.genes is not None:
            section["bed"] = args.genes
        if args.transcripts is not None:
            section["fasta"] = args.transcripts
        if args.require_ref_within_exon:
            section["require_ref_within_exon"] = True

    return config


def run_modified_sequence(args: argparse.Namespace, config: dict):
    return convert_file_to_modified_sequence(
        args.input,
        args.output,
        suffix=get_nested(config, "modified_sequence.contig_suffix") or "",
        rename=get_nested(config, "modified_sequence.rename"),
        jobs=int(get_nested(config, "modified_sequence.jobs", 1)),
        assume_sorted=get_nested(config, "modified_sequence.assume_sorted", True),
        index=args.index,
    )


def run_transcript_coords(args: argparse.Namespace, config: dict):
    bed = get_nested(config, "transcripts.bed")
    if not bed:
        raise ValueError("A gene annotation is required (-g/--genes or transcripts.bed)")

    index = TranscriptIndex.from_bed(bed)
    fasta = get_nested(config, "transcripts.fasta")
    sequences = load_transcript_sequences(fasta) if fasta else None

    return convert_file_to_transcript_coords(
        args.input,
        args.output,
        index,
        transcript_sequences=sequences,
        require_ref_within_exon=get_nested(config, "transcripts.require_ref_within_exon", False),
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (yaml.YAMLError, ValueError) as e:
        print(f"Error parsing configuration: {e}", file=sys.stderr)
        return 1

    is_valid, errors = validate_config(config)
    if not is_valid:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=log_level(config),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    logger.info("=" * 60)
    logger.info(f"vcfremap {args.command}")
    logger.info(f"Input: {args.input}")
    logger.info(f"Output: {args.output}")
    logger.info("=" * 60)

    try:
        if args.command == "modified-sequence":
            summary = run_modified_sequence(args, config)
        else:
            summary = run_transcript_coords(args, config)
    except RemapError as e:
        logger.error(f"Conversion failed: {e}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    if args.summary:
        write_summary(summary, args.summary)

    logger.info("All done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
