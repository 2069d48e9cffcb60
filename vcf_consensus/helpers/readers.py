import gzip
import io
import logging
from dataclasses import dataclass

from vcf_consensus.helpers.constants import (
    ALT_COL, CHROM_COL, FORMAT_COL, META_PREFIX, MISSING_CALL, POS_COL,
    PROGRESS_INTERVAL, REF_COL, REQUIRED_COLS,
)
from vcf_consensus.helpers.errors import FileIOError, FileReadError, MalformedRecordError, SchemaError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Record:
    """
    One variant row: where it sits, what the reference reads there,
    the alternates it offers and one raw genotype token per sample.
    """
    chrom: str
    pos: int
    ref: str
    alts: tuple[str, ...]
    genotypes: tuple[str, ...]
    line_number: int = 0

    @property
    def end(self):
        return self.pos + len(self.ref)


class Reader:
    def __init__(self, file_path: str, buffer_size = io.DEFAULT_BUFFER_SIZE):
        """
        Line reader over a plain or gzip compressed text file.

        :param file_path: path of the file, read as gzip when it ends in .gz
        :type file_path: str
        :param buffer_size: read buffer for uncompressed files
        """
        self.file_obj = None
        self.buffer = buffer_size
        self.path = str(file_path)
        self.line_number = 0


    def open_file(self):
        try:
            if self.path.endswith(".gz"):
                self.file_obj = gzip.open(self.path, "rt", encoding="utf-8")
            else:
                self.file_obj = open(self.path, "r", encoding="utf-8", buffering=self.buffer)

            self.line_number = 0
            return self
        except (IOError, OSError) as e:
            raise FileIOError(f"File Opening Error: {e}")


    def close_file(self):
        if self.file_obj: # if file was opened
            self.file_obj.close()
            self.file_obj = None


    def read(self):
        """
        Reads the next line with its line ending stripped. Returns None once the
        end of the file has been reached.
        """
        try:
            line = self.file_obj.readline()
        except gzip.BadGzipFile:
            raise FileReadError(f"Failed to read from {self.path}\nInvalid .gz")
        except UnicodeError:
            raise FileReadError(f"Failed to read from {self.path}\nContains Invalid UTF-8 Characters")
        except (IOError, OSError, EOFError) as e:
            raise FileReadError(f"Failed to read from {self.path}\n{e}")

        if not line:
            return None

        self.line_number += 1
        return line.rstrip("\r\n")


    def __enter__(self):
        return self.open_file()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_file()



class VCFReader(Reader):

    def __init__(self, file_path: str, progress_interval: int = PROGRESS_INTERVAL):
        """
        Reads the tab separated variant table: meta lines, one header line, then
        one record per line.

        :param file_path: path of the variant table
        :type file_path: str
        :param progress_interval: log a progress line every this many lines
        :type progress_interval: int
        """
        super().__init__(file_path)
        self.progress_interval = progress_interval
        self.headers = None
        self.header_samples = []
        self.sample_names = None
        self._columns = {}


    @property
    def sample_count(self):
        """Number of sample columns declared by the header."""
        return len(self.header_samples)


    def readHeader(self):
        """
        Skips the meta lines and parses the header line. The samples are the
        columns after FORMAT.
        """
        if self.headers is not None:
            return self.headers

        line = self.read()
        while line is not None and (line.startswith(META_PREFIX) or not line.strip()):
            line = self.read()

        if line is None:
            raise SchemaError(f"{self.path} ended before a header line was found")

        columns = line.split("\t")
        if FORMAT_COL not in columns:
            raise SchemaError(f"Header of {self.path} has no {FORMAT_COL} column")

        missing = [c for c in REQUIRED_COLS if c not in columns]
        if missing:
            raise SchemaError(f"Header of {self.path} is missing columns: {', '.join(missing)}")

        # everything right of FORMAT is a sample
        sample_count = len(columns) - 1 - columns.index(FORMAT_COL)
        self.headers = columns
        self.header_samples = columns[len(columns) - sample_count:]
        self._columns = {name: i for i, name in enumerate(columns)}

        return self.headers


    def validateSamples(self, sample_names = None):
        """
        Checks the caller's sample names against the header. With no names the
        header's own sample names are used.

        :param sample_names: expected sample names, in column order
        """
        self.readHeader()

        if not sample_names:
            self.sample_names = list(self.header_samples)
            return self.sample_names

        if len(sample_names) != self.sample_count:
            raise SchemaError(f"{len(sample_names)} samples expected but found {self.sample_count}.")

        self.sample_names = list(sample_names)
        return self.sample_names


    def formatLine(self, line: str):
        """
        Turns one data line into a Record.

        :param line: the tab separated data line
        :type line: str
        """
        line_list = line.split("\t")

        if len(line_list) < len(self.headers):
            raise MalformedRecordError(f"Line {self.line_number}: expected {len(self.headers)} columns but found {len(line_list)}")

        try:
            pos = int(line_list[self._columns[POS_COL]])
        except ValueError:
            raise MalformedRecordError(f"Line {self.line_number}: failed to set position '{line_list[self._columns[POS_COL]]}'")

        if pos < 1:
            raise MalformedRecordError(f"Line {self.line_number}: position must be 1 or greater, got {pos}")

        ref = line_list[self._columns[REF_COL]]
        if not ref:
            raise MalformedRecordError(f"Line {self.line_number}: empty reference allele")

        alt_str = line_list[self._columns[ALT_COL]]
        alts = tuple(alt_str.split(",")) if alt_str not in (MISSING_CALL, "") else ()

        genotypes = tuple(line_list[len(line_list) - self.sample_count:]) if self.sample_count else ()

        return Record(
            chrom=line_list[self._columns[CHROM_COL]],
            pos=pos,
            ref=ref,
            alts=alts,
            genotypes=genotypes,
            line_number=self.line_number,
        )


    def records(self):
        """Yields Records until the end of the file."""
        self.readHeader()

        while True:
            line = self.read()
            if line is None:
                break

            if self.progress_interval and self.line_number % self.progress_interval == 0:
                logger.info("Processing line %d", self.line_number)

            if not line.strip() or line.startswith(META_PREFIX):
                continue

            yield self.formatLine(line)


    def __iter__(self):
        return self.records()
