import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, TextIO

from vcf_consensus.helpers.constants import CHROM_POLICY, ConsensusSettings
from vcf_consensus.helpers.errors import GenotypeRangeError, MalformedRecordError
from vcf_consensus.helpers.genotypes import resolve
from vcf_consensus.helpers.readers import Record
from vcf_consensus.helpers.sinks import SinkPool
from vcf_consensus.helpers.window import ConsensusWindow


logger = logging.getLogger(__name__)


@dataclass
class ConsensusStats:
    records: int = 0
    windows: int = 0
    chromosomes: int = 0
    slots_written: int = 0
    slots_discarded: int = 0


@dataclass
class ChromosomeContext:
    """The chromosome being read and the window buffered for it."""
    window: ConsensusWindow
    chrom: Optional[str] = None


@dataclass
class ConsensusBuilder:
    """
    Consumes records in input order and writes every sample's consensus to
    its sink, one window at a time.

    A window holds records whose reference spans overlap. It is flushed when a
    record starts at or past its right edge, when the chromosome changes
    (unless the DISCARD policy is set) and when the input ends.
    """
    sample_names: Sequence[str]
    pool: SinkPool
    settings: ConsensusSettings = field(default_factory=ConsensusSettings)
    stats: ConsensusStats = field(default_factory=ConsensusStats)

    def __post_init__(self):
        if len(self.sample_names) != len(self.pool):
            raise ValueError(f"{len(self.sample_names)} sample names but {len(self.pool)} sinks")
        window = ConsensusWindow(len(self.sample_names), self.settings.gap_char, self.settings.missing_char)
        self.context = ChromosomeContext(window=window)


    @property
    def window(self):
        return self.context.window


    async def addRecord(self, record: Record):
        """
        Merges one record into the current window, flushing first when the record
        opens a new window.

        :param record: next record of the input, in position order
        """
        if len(record.genotypes) != len(self.sample_names):
            raise MalformedRecordError(f"Line {record.line_number}: {len(record.genotypes)} genotypes "
                                       f"for {len(self.sample_names)} samples")

        if record.chrom != self.context.chrom:
            await self.switchChromosome(record.chrom)

        window = self.window
        if window.is_empty or record.pos >= window.right:
            await self.flush()
            window.anchor(record.pos)
        elif record.pos < window.left:
            raise MalformedRecordError(f"Line {record.line_number}: {record.chrom}:{record.pos} comes before "
                                       f"{record.chrom}:{window.left}, input must be sorted by position")

        window.extendTo(record.end)
        offset = window.offsetOf(record.pos)

        for sample_idx, token in enumerate(record.genotypes):
            if window.isCovered(offset, sample_idx, len(record.ref)):
                continue

            try:
                fragment = resolve(token, record.ref, record.alts,
                                   self.settings.missing_mode, self.settings.missing_char)
            except GenotypeRangeError as e:
                raise type(e)(f"{record.chrom}:{record.pos} (line {record.line_number}), "
                              f"sample '{self.sample_names[sample_idx]}': {e}") from e

            # lazy missing calls stay unset until the flush
            if fragment is not None:
                window.place(offset, sample_idx, fragment, len(record.ref))

        self.stats.records += 1


    async def switchChromosome(self, chrom: str):
        """
        Ends the current chromosome and starts chrom. A pending window is written
        out under the FLUSH policy and dropped under DISCARD.
        """
        window = self.window

        if not window.is_empty:
            if self.settings.chrom_policy == CHROM_POLICY.FLUSH:
                await self.flush()
            else:
                logger.warning("Discarding %d buffered slots at the end of %s", len(window), self.context.chrom)
                self.stats.slots_discarded += len(window)

        logger.info("Entering chromosome %s", chrom)
        window.reset()
        self.context.chrom = chrom
        self.stats.chromosomes += 1


    async def flush(self):
        """Aligns the buffered window, sends it to every sample and clears it."""
        window = self.window
        if window.is_empty:
            return

        texts = window.render()
        logger.debug("Flushing %s:%d-%d (%d slots)", self.context.chrom, window.left, window.right - 1, len(window))

        await self.pool.send_all(texts)

        self.stats.windows += 1
        self.stats.slots_written += len(window)
        window.clear()


    async def finish(self):
        """Flushes the last window. Closing the sinks is left to the pool's owner."""
        await self.flush()
        return self.stats



async def buildConsensus(records: Iterable[Record], sample_names: Sequence[str], handles: Sequence[TextIO],
                          settings: Optional[ConsensusSettings] = None) -> ConsensusStats:
    """
    Writes each sample's consensus sequence to its handle.

    :param records: records sorted by position within each chromosome
    :param sample_names: sample names, in genotype column order
    :param handles: one writable text handle per sample
    :param settings: run settings, defaults to ConsensusSettings()
    """
    settings = settings or ConsensusSettings()

    async with SinkPool(sample_names, handles, settings.channel_size) as pool:
        builder = ConsensusBuilder(sample_names, pool, settings)
        for record in records:
            await builder.addRecord(record)
        stats = await builder.finish()

    return stats
