import logging
import shutil
from typing import Sequence

from vcf_consensus.helpers.errors import FileIOError, FileReadError


logger = logging.getLogger(__name__)


def mergeSamples(sample_files: Sequence[str], sample_names: Sequence[str], output_path: str):
    """
    Concatenates the per-sample consensus files into one FASTA file, one
    record per sample in the given order.

    :param sample_files: consensus file of each sample
    :param sample_names: name written on each record's header line
    :param output_path: FASTA file to create
    """
    if len(sample_files) != len(sample_names):
        raise ValueError(f"{len(sample_files)} sample files but {len(sample_names)} sample names")

    try:
        out = open(output_path, "w", encoding="utf-8")
    except OSError as e:
        raise FileIOError(f"File Opening Error: {e}")

    with out:
        for name, path in zip(sample_names, sample_files):
            out.write(f">{name}\n")
            try:
                with open(path, "r", encoding="utf-8") as src:
                    shutil.copyfileobj(src, out)
            except (OSError, UnicodeError) as e:
                raise FileReadError(f"Failed to read from {path}\n{e}")
            out.write("\n")

    logger.debug("Wrote %d samples to %s", len(sample_names), output_path)
    return output_path
