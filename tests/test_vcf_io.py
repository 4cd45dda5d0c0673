"""
Tests for VCF reading, streaming and writing.
"""

import gzip

import pytest

from vcfremap.exceptions import ContigOrderError, MalformedRecordError
from vcfremap.records import parse_vcf_line
from vcfremap.vcf_io import (
    VcfHeader,
    iter_contig_blocks,
    iter_records,
    open_vcf,
    read_header,
    write_vcf,
)


# ============================================================================
# Tests: Reading
# ============================================================================

class TestReadHeader:
    """Tests for read_header."""

    def test_header_lines(self, sample_vcf_file, vcf_header_line):
        header = read_header(str(sample_vcf_file))
        assert header.meta_lines[0] == "##fileformat=VCFv4.2"
        assert len(header.meta_lines) == 3
        assert header.column_line == vcf_header_line
        assert header.sample_ids == ["S1", "S2"]

    def test_no_header(self, temp_dir):
        path = temp_dir / "bare.vcf"
        path.write_text("chr1\t5\t.\tA\tG\t.\t.\t.\n")
        header = read_header(str(path))
        assert header.lines == []
        assert header.sample_ids == []


class TestIterRecords:
    """Tests for iter_records."""

    def test_all_records(self, sample_vcf_file):
        records = list(iter_records(str(sample_vcf_file)))
        assert [(r.contig, r.position) for r in records] == [
            ("chr1", 50), ("chr1", 100), ("chr1", 200), ("chr2", 10)
        ]
        assert records[0].genotypes == ("0/1", "1/1")

    def test_gzip_input(self, temp_dir, sample_vcf_content):
        path = temp_dir / "sample.vcf.gz"
        with gzip.open(path, "wt") as f:
            f.write(sample_vcf_content)
        assert len(list(iter_records(str(path)))) == 4

    def test_malformed_line_reports_line_number(self, temp_dir, vcf_header_line):
        path = temp_dir / "bad.vcf"
        path.write_text(
            "##fileformat=VCFv4.2\n"
            f"{vcf_header_line}\n"
            "chr1\t5\t.\tA\tG\t.\t.\t.\tGT\t0/1\t0/0\n"
            "chr1\tXX\t.\tA\tG\t.\t.\t.\tGT\t0/1\t0/0\n"
        )
        with pytest.raises(MalformedRecordError) as exc_info:
            list(iter_records(str(path)))
        assert exc_info.value.line_number == 4

    def test_sample_count_checked_against_header(self, temp_dir, vcf_header_line):
        path = temp_dir / "bad.vcf"
        path.write_text(f"{vcf_header_line}\nchr1\t5\t.\tA\tG\t.\t.\t.\tGT\t0/1\n")
        with pytest.raises(MalformedRecordError):
            list(iter_records(str(path)))

    def test_header_after_data(self, temp_dir):
        path = temp_dir / "bad.vcf"
        path.write_text("chr1\t5\t.\tA\tG\t.\t.\t.\n##late=1\n")
        with pytest.raises(MalformedRecordError) as exc_info:
            list(iter_records(str(path)))
        assert exc_info.value.line_number == 2

    def test_blank_lines_skipped(self, temp_dir):
        path = temp_dir / "blank.vcf"
        path.write_text("chr1\t5\t.\tA\tG\t.\t.\t.\n\nchr1\t9\t.\tA\tG\t.\t.\t.\n")
        assert len(list(iter_records(str(path)))) == 2


# ============================================================================
# Tests: Contig Blocks
# ============================================================================

class TestIterContigBlocks:
    """Tests for iter_contig_blocks."""

    def test_blocks(self, sample_vcf_file):
        blocks = list(iter_contig_blocks(iter_records(str(sample_vcf_file))))
        assert [(contig, len(recs)) for contig, recs in blocks] == [("chr1", 3), ("chr2", 1)]

    def test_empty(self):
        assert list(iter_contig_blocks([])) == []

    def test_not_contiguous(self, unsorted_vcf_file):
        with pytest.raises(ContigOrderError):
            list(iter_contig_blocks(iter_records(str(unsorted_vcf_file))))

    def test_streams_lazily(self):
        def records():
            yield parse_vcf_line("chr1\t1\t.\tA\tG\t.\t.\t.")
            yield parse_vcf_line("chr2\t1\t.\tA\tG\t.\t.\t.")
            raise RuntimeError("read past first block")

        blocks = iter_contig_blocks(records())
        contig, recs = next(blocks)
        assert contig == "chr1"
        assert len(recs) == 1


# ============================================================================
# Tests: Writing
# ============================================================================

class TestWriteVcf:
    """Tests for write_vcf."""

    def test_roundtrip_file(self, temp_dir, sample_vcf_file, sample_vcf_content):
        out = temp_dir / "copy.vcf"
        n = write_vcf(str(out), read_header(str(sample_vcf_file)),
                      iter_records(str(sample_vcf_file)))
        assert n == 4
        assert out.read_text() == sample_vcf_content

    def test_failed_generator_leaves_no_file(self, temp_dir):
        out = temp_dir / "partial.vcf"

        def records():
            yield parse_vcf_line("chr1\t1\t.\tA\tG\t.\t.\t.")
            raise MalformedRecordError("boom")

        with pytest.raises(MalformedRecordError):
            write_vcf(str(out), VcfHeader(), records())
        assert not out.exists()
        assert list(temp_dir.iterdir()) == []

    def test_bgzip_output(self, temp_dir, sample_vcf_file, sample_vcf_content):
        out = temp_dir / "copy.vcf.gz"
        write_vcf(str(out), read_header(str(sample_vcf_file)),
                  iter_records(str(sample_vcf_file)))
        assert out.exists()
        assert not (temp_dir / "copy.vcf").exists()
        with open_vcf(str(out)) as f:
            assert f.read() == sample_vcf_content

    def test_tabix_index(self, temp_dir, sample_vcf_file):
        out = temp_dir / "indexed.vcf.gz"
        write_vcf(str(out), read_header(str(sample_vcf_file)),
                  iter_records(str(sample_vcf_file)), index=True)
        assert out.exists()
        assert (temp_dir / "indexed.vcf.gz.tbi").exists()
        assert sorted(p.name for p in temp_dir.iterdir()) == [
            "indexed.vcf.gz", "indexed.vcf.gz.tbi", "sample.vcf"
        ]

    @pytest.mark.parametrize("index", [False, True])
    def test_gz_output_beside_same_named_input(self, temp_dir, sample_vcf_file,
                                               sample_vcf_content, index):
        """Writing <input>.gz leaves <input> untouched."""
        out = str(sample_vcf_file) + ".gz"
        write_vcf(out, read_header(str(sample_vcf_file)),
                  list(iter_records(str(sample_vcf_file))), index=index)
        assert sample_vcf_file.read_text() == sample_vcf_content
        with open_vcf(out) as f:
            assert f.read() == sample_vcf_content

    def test_failed_gz_output_leaves_no_file(self, temp_dir):
        def records():
            yield parse_vcf_line("chr1\t1\t.\tA\tG\t.\t.\t.")
            raise MalformedRecordError("boom")

        with pytest.raises(MalformedRecordError):
            write_vcf(str(temp_dir / "partial.vcf.gz"), VcfHeader(), records())
        assert list(temp_dir.iterdir()) == []
