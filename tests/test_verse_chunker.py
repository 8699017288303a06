from pathlib import Path

import pytest

from smartcode.chunking import (
    ChunkingParams,
    VerseChunker,
    chunk_lines,
    chunk_source,
    chunk_verse_file,
    estimate_tokens,
)

ROOMY = ChunkingParams(max_tokens=8191, target_tokens=6000, overlap_tokens=500)

DEVICE_SOURCE = """\
using { /Fortnite.com/Devices }
using { /Verse.org/Simulation }

# Drives the round flow.
@editable_device
round_manager := class(creative_device):

    @editable
    StartButton : button_device = button_device{}

    var CurrentRound : int = 0

    OnBegin<override>()<suspends>:void=
        StartButton.InteractedWithEvent.Subscribe(OnPressed)
        Print("round manager ready")

    OnPressed(Agent:agent):void=
        set CurrentRound += 1
        Print("round advanced")

scorable := interface:
    GetScore<public>()<transacts>:int
    ResetScore<public>()<transacts>:void

(Player:player).AwardPoints<public>(
    Amount: int,
    Reason: string
)<transacts>: void =
    Print("points awarded")

team_color := enum{Red, Blue, Green, Yellow}
"""


def test_device_file_chunk_layout() -> None:
    chunks = chunk_verse_file(DEVICE_SOURCE, ROOMY)
    layout = [(c.kind, c.start_line, c.end_line, c.parent) for c in chunks]
    assert layout == [
        ("class", 5, 20, None),
        ("member", 8, 10, "round_manager"),
        ("member", 11, 12, "round_manager"),
        ("member", 13, 16, "round_manager"),
        ("member", 17, 20, "round_manager"),
        ("interface", 21, 24, None),
        ("interface-method", 22, 22, "scorable"),
        ("interface-method", 23, 23, "scorable"),
        ("extension", 25, 30, None),
        ("enum", 31, 31, None),
    ]


def test_every_chunk_text_is_its_source_lines() -> None:
    source_lines = DEVICE_SOURCE.splitlines()
    for chunk in chunk_verse_file(DEVICE_SOURCE, ROOMY):
        assert 1 <= chunk.start_line <= chunk.end_line <= len(source_lines)
        expected = "\n".join(source_lines[chunk.start_line - 1 : chunk.end_line])
        assert chunk.text == expected


def test_chunking_is_deterministic() -> None:
    first = chunk_verse_file(DEVICE_SOURCE, ROOMY)
    second = VerseChunker(params=ROOMY).chunk(DEVICE_SOURCE)
    assert first == second
    assert [c.content_hash for c in first] == [c.content_hash for c in second]


def test_crlf_input_matches_lf_layout() -> None:
    lf = chunk_verse_file(DEVICE_SOURCE, ROOMY)
    crlf = chunk_verse_file(DEVICE_SOURCE.replace("\n", "\r\n"), ROOMY)
    assert [(c.kind, c.start_line, c.end_line) for c in crlf] == [
        (c.kind, c.start_line, c.end_line) for c in lf
    ]


def test_tight_budget_splits_large_chunks() -> None:
    tight = ChunkingParams(max_tokens=64, target_tokens=24, overlap_tokens=4)
    chunks = chunk_verse_file(DEVICE_SOURCE, tight)
    continued = [c for c in chunks if c.continuation]
    assert continued, "expected the class chunk to be split"
    assert any(c.kind == "class" for c in continued)
    split_signatures = {c.signature for c in continued}
    for chunk in chunks:
        assert chunk.token_count == estimate_tokens(chunk.text)
        assert chunk.start_line <= chunk.end_line
        if chunk.signature in split_signatures:
            assert chunk.token_count <= tight.target_tokens
        else:
            assert chunk.token_count <= tight.target_tokens * 1.5


def test_file_without_definitions_yields_nothing() -> None:
    assert chunk_verse_file("using { /Verse.org/Simulation }\n\n# notes\n", ROOMY) == []


def test_line_windows_for_other_files() -> None:
    content = "\n".join(f"line {index} value" for index in range(40))
    chunks = chunk_lines(content, ROOMY, chunk_size=15, chunk_overlap=3)
    assert [(c.start_line, c.end_line) for c in chunks] == [(1, 15), (13, 27), (25, 39), (37, 40)]
    assert all(c.kind == "block" for c in chunks)
    assert chunks[0].signature == "line 0 value"


def test_line_windows_skip_blank_windows() -> None:
    content = "\n" * 20 + "print('hello')\n"
    chunks = chunk_lines(content, ROOMY, chunk_size=10, chunk_overlap=0)
    assert [(c.start_line, c.end_line) for c in chunks] == [(21, 21)]


@pytest.mark.parametrize("size, overlap", [(0, 0), (15, 15), (15, -1)])
def test_line_windows_reject_bad_sizes(size: int, overlap: int) -> None:
    with pytest.raises(ValueError):
        chunk_lines("x", ROOMY, chunk_size=size, chunk_overlap=overlap)


def test_dispatch_by_suffix() -> None:
    verse = chunk_source(DEVICE_SOURCE, Path("game/round.verse"), ROOMY)
    other = chunk_source(DEVICE_SOURCE, Path("notes/round.txt"), ROOMY)
    assert verse[0].kind == "class"
    assert {c.kind for c in other} == {"block"}
