import logging
import os
import shutil
import sys
from contextlib import ExitStack
from typing import List, Sequence

from vcf_consensus.helpers.errors import FileIOError
from vcf_consensus.helpers.readers import VCFReader


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setupLogging(verbose: bool = False):
    """
    Sends log records to stderr, INFO and up unless verbose is set.

    :param verbose: also show DEBUG records
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def makeDir(path: str):
    """Creates path (and parents) unless it exists."""
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise FileIOError(f"Failed to create directory {path}: {e}")
    return path


def removeDir(path: str):
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FileIOError(f"Failed to delete directory {path}: {e}")


def getSampleFiles(sample_dir: str, sample_names: Sequence[str]) -> List[str]:
    """
    Temp file path of every sample. Names are used as file names, so they have
    to be unique.

    :param sample_dir: directory holding the temp files of one run
    :param sample_names: sample names in column order
    """
    if len(set(sample_names)) != len(sample_names):
        raise FileIOError("Sample names must be unique to be used as temp file names")
    return [os.path.join(sample_dir, name) for name in sample_names]


def setupVCFReader(path: str, stk: ExitStack, progress_interval: int) -> VCFReader:
    """
    Creates the reader for path, opens it, adds it to the provided stack and
    reads its header.

    :param path: variant table path
    :param stk: stack that closes the file
    :param progress_interval: lines between progress messages
    """
    rdr = stk.enter_context(VCFReader(path, progress_interval=progress_interval))
    rdr.readHeader()
    return rdr


def openSampleFiles(sample_files: Sequence[str], stk: ExitStack):
    handles = []
    for path in sample_files:
        try:
            handles.append(stk.enter_context(open(path, "w", encoding="utf-8")))
        except OSError as e:
            raise FileIOError(f"File Opening Error: {e}")
    return handles
