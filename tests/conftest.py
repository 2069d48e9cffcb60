import asyncio
import io

import pytest

from vcf_consensus.helpers.consensus import buildConsensus
from vcf_consensus.helpers.readers import Record


HEADER = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT"


@pytest.fixture
def make_record():
    def _make(chrom, pos, ref, alts, *genotypes, line_number=0):
        return Record(chrom=chrom, pos=pos, ref=ref, alts=tuple(alts),
                      genotypes=tuple(genotypes), line_number=line_number)
    return _make


@pytest.fixture
def run_consensus():
    """Runs the consensus loop into in-memory handles, returns (texts, stats)."""
    def _run(records, names, settings=None):
        handles = [io.StringIO() for _ in names]
        stats = asyncio.run(buildConsensus(records, names, handles, settings))
        return [h.getvalue() for h in handles], stats
    return _run


@pytest.fixture
def write_table(tmp_path):
    """Writes a variant table with the given sample columns and data rows."""
    def _write(samples, rows, name="input.vcf", meta=("##fileformat=VCFv4.2",)):
        path = tmp_path / name
        lines = list(meta)
        lines.append("\t".join([HEADER] + list(samples)))
        for chrom, pos, ref, alt, *genotypes in rows:
            lines.append("\t".join([chrom, str(pos), ".", ref, alt, ".", "PASS", ".", "GT"] + list(genotypes)))
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write
