import pytest

from vcf_consensus.helpers.window import ConsensusWindow


@pytest.fixture
def window():
    w = ConsensusWindow(sample_count=2)
    w.anchor(10)
    return w


def test_extend_adds_one_unset_row_per_offset(window):
    window.extendTo(13)

    assert len(window) == 3
    assert window.right == 13
    assert window.left == 10
    assert all(cell is None for row in window.rows for cell in row)


def test_extend_never_moves_right_edge_left(window):
    window.extendTo(13)
    window.extendTo(11)

    assert window.right == 13
    assert len(window) == 3


def test_long_fragment_sits_in_one_slot_and_claims_the_span(window):
    window.extendTo(12)
    window.place(0, 0, "ATTT", 2)

    assert window.rows[0][0] == "ATTT"
    assert window.rows[1][0] == ""


def test_short_fragment_is_spread_and_gapped(window):
    window.extendTo(13)
    window.place(0, 1, "A", 3)

    assert [row[1] for row in window.rows] == ["A", "-", "-"]


def test_first_writer_wins(window):
    window.extendTo(12)
    window.place(0, 0, "A", 2)
    window.place(0, 0, "CCCC", 2)
    window.place(1, 0, "T", 1)

    assert [row[0] for row in window.rows] == ["A", "-"]


def test_later_record_fills_only_the_unset_tail(window):
    window.extendTo(14)
    window.place(0, 0, "ACGT", 4)
    window.extendTo(16)
    window.place(2, 0, "GTAA", 4)

    assert [row[0] for row in window.rows] == ["ACGT", "", "", "", "AA", ""]
    assert window.isCovered(2, 0, 4)
    assert not window.isCovered(2, 1, 4)


def test_render_pads_every_sample_to_the_block_width(window):
    window.extendTo(12)
    window.place(0, 0, "AT", 2)
    window.place(0, 1, "ATTT", 2)

    assert window.slotWidths() == [1, 1]
    assert window.blocks() == [(0, 2)]
    assert window.render() == ["AT--", "ATTT"]


def test_deletion_next_to_reference_call_adds_no_columns(window):
    window.extendTo(13)
    window.place(0, 0, "ACG", 3)
    window.place(0, 1, "A", 3)

    assert window.render() == ["ACG", "A--"]


def test_overlapping_claims_form_one_block():
    w = ConsensusWindow(sample_count=2)
    w.anchor(1)
    w.extendTo(6)
    w.place(0, 0, "ACG", 3)
    w.place(2, 1, "GTTT", 3)

    assert w.blocks() == [(0, 5)]
    assert len(set(len(text) for text in w.render())) == 1


def test_unset_cells_render_as_missing_filler(window):
    window.extendTo(13)
    window.place(0, 0, "ACG", 3)

    assert window.render() == ["ACG", "NNN"]


def test_slot_nobody_set_is_one_wide():
    w = ConsensusWindow(sample_count=1)
    w.anchor(1)
    w.extendTo(4)

    assert w.slotWidths() == [1, 1, 1]
    assert w.render() == ["NNN"]


def test_clear_moves_left_edge_to_right_edge(window):
    window.extendTo(12)
    window.place(0, 0, "AT", 2)
    window.clear()

    assert window.is_empty
    assert window.claims == {}
    assert window.left == window.right == 12


def test_reset_forgets_edges(window):
    window.extendTo(12)
    window.reset()

    assert window.is_empty
    assert window.left == window.right == 0


def test_anchor_refuses_non_empty_window(window):
    window.extendTo(11)
    with pytest.raises(RuntimeError):
        window.anchor(20)


def test_custom_gap_and_missing_characters():
    w = ConsensusWindow(sample_count=2, gap_char=".", missing_char="?")
    w.anchor(1)
    w.extendTo(3)
    w.place(0, 0, "A", 2)

    assert w.render() == ["A.", "??"]
