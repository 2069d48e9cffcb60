from dataclasses import dataclass
from enum import Enum, auto



class MISSING_MODE(Enum):
    # LAZY leaves missing calls unset until flush, EAGER emits a filler right away
    LAZY = auto()
    EAGER = auto()

class CHROM_POLICY(Enum):
    FLUSH = auto()
    DISCARD = auto()


GAP_CHAR = "-"
MISSING_CHAR = "N"
MISSING_CALL = "."

META_PREFIX = "##"
FORMAT_COL = "FORMAT"
CHROM_COL = "#CHROM"
POS_COL = "POS"
REF_COL = "REF"
ALT_COL = "ALT"
REQUIRED_COLS = (CHROM_COL, POS_COL, REF_COL, ALT_COL)

PROGRESS_INTERVAL = 10000
CHANNEL_SIZE = 64

TEMP_DIR = "temp"
OUTPUT_DIR = "output"


@dataclass(frozen=True)
class ConsensusSettings:
    """
    Run settings shared by the reader, the window and the consensus loop.

    :param gap_char: pads a sample's text up to the width of its slot
    :param missing_char: filler written for missing genotype calls
    :param missing_mode: when missing calls are filled in (see MISSING_MODE)
    :param chrom_policy: what happens to a pending window when the chromosome changes
    :param channel_size: fragments queued per sample before writes have to wait
    :param progress_interval: log progress every this many input lines
    """
    gap_char: str = GAP_CHAR
    missing_char: str = MISSING_CHAR
    missing_mode: MISSING_MODE = MISSING_MODE.LAZY
    chrom_policy: CHROM_POLICY = CHROM_POLICY.FLUSH
    channel_size: int = CHANNEL_SIZE
    progress_interval: int = PROGRESS_INTERVAL

    def __post_init__(self):
        if len(self.gap_char) != 1 or len(self.missing_char) != 1:
            raise ValueError("gap_char and missing_char must be single characters")
        if self.channel_size < 1:
            raise ValueError(f"channel_size must be at least 1, got {self.channel_size}")
