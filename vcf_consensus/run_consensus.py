import asyncio
import logging
import os
import sys
import time
from contextlib import ExitStack
from typing import Sequence

from vcf_consensus.helpers.consensus import buildConsensus
from vcf_consensus.helpers.constants import (
    CHANNEL_SIZE, CHROM_POLICY, MISSING_MODE, OUTPUT_DIR, PROGRESS_INTERVAL, TEMP_DIR, ConsensusSettings,
)
from vcf_consensus.helpers.errors import ConsensusError
from vcf_consensus.helpers.merge import mergeSamples
from vcf_consensus.helpers.utils import (
    getSampleFiles, makeDir, openSampleFiles, removeDir, setupLogging, setupVCFReader,
)


logger = logging.getLogger(__name__)


def run(input_path: str, output_name: str, sample_names: Sequence[str] = (), *,
        temp_dir: str = TEMP_DIR, output_dir: str = OUTPUT_DIR,
        settings: ConsensusSettings = None, keep_temp: bool = False) -> str:
    """
    Builds the consensus FASTA for input_path and returns the path written.

    The header is checked against sample_names before anything is created on
    disk. Each sample is first written to TEMP_DIR/OUTPUT_NAME/SAMPLE, then all
    of them are merged into OUTPUT_DIR/OUTPUT_NAME.
    """
    settings = settings or ConsensusSettings()
    str_time = time.perf_counter()

    with ExitStack() as stack:
        rdr = setupVCFReader(input_path, stack, settings.progress_interval)
        sample_names = rdr.validateSamples(sample_names)

        sample_dir = os.path.join(temp_dir, output_name)
        sample_files = getSampleFiles(sample_dir, sample_names)
        makeDir(sample_dir)
        handles = openSampleFiles(sample_files, stack)

        stats = asyncio.run(buildConsensus(rdr, sample_names, handles, settings))

    logger.info("Merging samples")
    makeDir(output_dir)
    output_path = mergeSamples(sample_files, sample_names, os.path.join(output_dir, output_name))

    if not keep_temp:
        logger.info("Deleting temporary files")
        removeDir(sample_dir)

    comp_time = time.perf_counter() - str_time
    logger.info("Wrote %d samples to %s: %d records, %d windows, %d chromosomes in %.4fs",
                len(sample_names), output_path, stats.records, stats.windows, stats.chromosomes, comp_time)
    if stats.slots_discarded:
        logger.warning("%d slots were discarded at chromosome boundaries", stats.slots_discarded)

    return output_path


def main(input_path: str, output_name: str, *sample_names: str,
         temp_dir: str = TEMP_DIR,
         output_dir: str = OUTPUT_DIR,
         missing_mode: MISSING_MODE = MISSING_MODE.LAZY,
         chrom_policy: CHROM_POLICY = CHROM_POLICY.FLUSH,
         channel_size: int = CHANNEL_SIZE,
         progress_interval: int = PROGRESS_INTERVAL,
         keep_temp: bool = False,
         verbose: bool = False):
    """
    Build one consensus sequence per sample from a variant table and write
    them all to a single FASTA file.

    :param input_path: variant table (.vcf or .vcf.gz), sorted by position within each chromosome
    :param output_name: name of the FASTA file created in the output directory
    :param sample_names: names of the sample columns, in order. Defaults to the header's names
    :param temp_dir: directory for the per-sample temp files
    :param output_dir: directory for the merged FASTA file
    :param missing_mode: LAZY sizes missing calls to their slot at flush time, EAGER writes a single filler
    :param chrom_policy: FLUSH writes a pending window when the chromosome changes, DISCARD drops it
    :param channel_size: fragments queued per sample before writing has to wait
    :param progress_interval: log progress every this many input lines
    :param keep_temp: keep the per-sample temp files
    :param verbose: show debug messages
    """
    setupLogging(verbose)

    try:
        settings = ConsensusSettings(
            missing_mode=missing_mode,
            chrom_policy=chrom_policy,
            channel_size=channel_size,
            progress_interval=progress_interval,
        )
    except ValueError as e:
        sys.exit(f"\nERROR\nInvalid settings: {e}")

    try:
        run(input_path, output_name, sample_names,
            temp_dir=temp_dir, output_dir=output_dir, settings=settings, keep_temp=keep_temp)
    except ConsensusError as e:
        sys.exit(f"\nERROR\nExiting program: {e}")


def cli():
    import defopt
    defopt.run(main)


if __name__ == "__main__":
    cli()
