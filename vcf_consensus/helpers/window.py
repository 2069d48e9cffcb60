from typing import Dict, List, Optional, Tuple

from vcf_consensus.helpers.constants import GAP_CHAR, MISSING_CHAR


class ConsensusWindow:
    """
    Buffer of not yet written genomic offsets, one row per offset and one cell
    per sample in every row.

    A cell is None until a record sets it for that sample. A fragment at least
    as long as its reference allele is stored whole in the record's first cell
    and the other offsets of the reference span are claimed with an empty
    string. Such spans are rendered as one unit, so the whole fragment is
    measured against the whole span.
    """

    def __init__(self, sample_count: int, gap_char: str = GAP_CHAR, missing_char: str = MISSING_CHAR):
        self.sample_count = sample_count
        self.gap_char = gap_char
        self.missing_char = missing_char
        self.rows: List[List[Optional[str]]] = []
        # (offset, sample) of a whole fragment -> offset just past its span
        self.claims: Dict[Tuple[int, int], int] = {}
        self.left = 0
        self.right = 0


    def __len__(self):
        return len(self.rows)


    @property
    def is_empty(self):
        return not self.rows


    def anchor(self, pos: int):
        """
        Starts an empty window at pos so offsets are counted from there.

        :param pos: 1 based position of the record opening the window
        """
        if self.rows:
            raise RuntimeError(f"Cannot re-anchor a window holding {len(self.rows)} slots")
        self.left = pos
        self.right = pos


    def extendTo(self, end: int):
        """
        Appends unset rows until the right edge reaches end. The right edge never
        moves left.

        :param end: position just past the last reference base of a record
        """
        while self.right < end:
            self.rows.append([None] * self.sample_count)
            self.right += 1


    def offsetOf(self, pos: int):
        return pos - self.left


    def unsetFrom(self, offset: int, sample_idx: int, span: int):
        """First index within span, counted from offset, whose cell is still unset. span when none is."""
        for i in range(span):
            if self.rows[offset + i][sample_idx] is None:
                return i
        return span


    def isCovered(self, offset: int, sample_idx: int, span: int):
        return self.unsetFrom(offset, sample_idx, span) == span


    def place(self, offset: int, sample_idx: int, fragment: str, ref_len: int):
        """
        Stores one sample's fragment for a record starting at offset and spanning
        ref_len offsets. Cells that are already set keep their value.

        When the leading offsets of the span were set by an earlier overlapping
        record, only the rest of the fragment goes into the remaining offsets.

        :param offset: window offset of the record
        :param sample_idx: column of the sample
        :param fragment: text the sample carries for the record
        :param ref_len: length of the record's reference allele
        """
        covered = self.unsetFrom(offset, sample_idx, ref_len)
        if covered == ref_len:
            return
        if covered:
            offset += covered
            ref_len -= covered
            fragment = fragment[covered:]

        if len(fragment) >= ref_len:
            # insertions and same length substitutions live in one cell, the rest of the span is claimed
            cells = [fragment] + [""] * (ref_len - 1)
            if ref_len > 1:
                self.claims[(offset, sample_idx)] = offset + ref_len
        else:
            # deletions keep one base per offset and gap out what is left
            cells = list(fragment) + [self.gap_char] * (ref_len - len(fragment))

        for i, cell in enumerate(cells):
            row = self.rows[offset + i]
            if row[sample_idx] is None:
                row[sample_idx] = cell


    def slotWidths(self):
        """
        Width of every single offset: its longest cell set one base per offset,
        at least 1. Whole fragments are measured by their block instead.
        """
        widths = []
        for offset, row in enumerate(self.rows):
            lengths = [len(cell) for idx, cell in enumerate(row)
                       if cell is not None and (offset, idx) not in self.claims]
            widths.append(max(lengths + [1]))
        return widths


    def blocks(self):
        """
        Splits the offsets into (start, end) ranges rendered as one unit: claimed
        spans, merged where they overlap, and single offsets everywhere else.
        """
        reach = {}
        for (start, _), end in self.claims.items():
            reach[start] = max(end, reach.get(start, start + 1))

        blocks = []
        start = 0
        while start < len(self.rows):
            end = reach.get(start, start + 1)
            offset = start + 1
            while offset < end:
                end = max(end, reach.get(offset, offset + 1))
                offset += 1
            blocks.append((start, end))
            start = end
        return blocks


    def render(self):
        """
        Aligns the buffered slots and returns one text per sample. Within a block
        every sample gets the same width: set cells are padded with the gap
        character and a sample with nothing set becomes missing filler.
        """
        widths = self.slotWidths()
        pieces = [[] for _ in range(self.sample_count)]

        for start, end in self.blocks():
            texts = [self._blockText(idx, start, end, widths) for idx in range(self.sample_count)]
            width = max([sum(widths[start:end])] + [len(t) for t in texts if t is not None])

            for sample_idx, text in enumerate(texts):
                if text is None:
                    pieces[sample_idx].append(self.missing_char * width)
                else:
                    pieces[sample_idx].append(text.ljust(width, self.gap_char))

        return ["".join(p) for p in pieces]


    def _blockText(self, sample_idx, start, end, widths):
        cells = [self.rows[offset][sample_idx] for offset in range(start, end)]
        if all(cell is None for cell in cells):
            return None

        parts = []
        for offset, cell in enumerate(cells, start):
            if cell is None:
                parts.append(self.missing_char * widths[offset])
            elif cell == "" or (offset, sample_idx) in self.claims:
                parts.append(cell)
            else:
                parts.append(cell.ljust(widths[offset], self.gap_char))
        return "".join(parts)


    def clear(self):
        """Drops every slot. The left edge moves up to the right edge."""
        self.rows = []
        self.claims = {}
        self.left = self.right


    def reset(self):
        """Forgets the window entirely, used when a new chromosome starts."""
        self.rows = []
        self.claims = {}
        self.left = 0
        self.right = 0
