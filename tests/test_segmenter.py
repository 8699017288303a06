from typing import List

from smartcode.chunking.classifier import read_lines
from smartcode.chunking.models import Chunk
from smartcode.chunking.segmenter import segment


def _segment(source: str) -> List[Chunk]:
    return segment(read_lines(source))


def _spans(chunks: List[Chunk]) -> List[tuple]:
    return [(chunk.kind, chunk.start_line, chunk.end_line) for chunk in chunks]


def test_multi_line_header_yields_single_function_chunk() -> None:
    source = (
        "Pack4Ints<public>(\n"
        "    A: int,\n"
        "    B: int\n"
        ")<decides><transacts>: int =\n"
        "    Result\n"
    )
    chunks = _segment(source)
    assert _spans(chunks) == [("function", 1, 5)]
    assert chunks[0].signature == "Pack4Ints<public>("
    assert chunks[0].text == source.rstrip("\n")


def test_attributes_attach_to_following_definition() -> None:
    source = (
        "@editable\n"
        "@doc(\"tracks the round\")\n"
        "round_tracker := class(creative_device):\n"
        "    Rounds : int = 0\n"
    )
    chunks = _segment(source)
    assert _spans(chunks) == [("class", 1, 4)]
    assert chunks[0].signature == "round_tracker := class(creative_device):"
    assert chunks[0].text.startswith("@editable")


def test_blank_line_discards_pending_attributes() -> None:
    source = (
        "@editable\n"
        "\n"
        "round_tracker := class(creative_device):\n"
        "    Rounds : int = 0\n"
    )
    assert _spans(_segment(source)) == [("class", 3, 4)]


def test_comment_between_attribute_and_definition_is_kept() -> None:
    source = (
        "@editable\n"
        "# counts finished rounds\n"
        "round_tracker := class:\n"
        "    Rounds : int = 0\n"
    )
    assert _spans(_segment(source)) == [("class", 1, 4)]


def test_sibling_definitions_are_emitted_back_to_back() -> None:
    source = (
        "first_device := class(creative_device):\n"
        "    Alpha : int = 0\n"
        "second_device := class(creative_device):\n"
        "    Beta : int = 1\n"
    )
    assert _spans(_segment(source)) == [("class", 1, 2), ("class", 3, 4)]


def test_blank_lines_inside_a_body_stay_in_the_block() -> None:
    source = (
        "first_device := class(creative_device):\n"
        "    Alpha : int = 0\n"
        "\n"
        "    Gamma : int = 2\n"
        "\n"
        "second_device := class(creative_device):\n"
        "    Beta : int = 1\n"
    )
    assert _spans(_segment(source)) == [("class", 1, 5), ("class", 6, 7)]


def test_comment_at_column_zero_does_not_end_body() -> None:
    source = (
        "Runner(Input:int):int =\n"
        "    Next := Input + 1\n"
        "# doubled below\n"
        "    Next * 2\n"
    )
    assert _spans(_segment(source)) == [("function", 1, 4)]


def test_single_line_enum_closes_immediately() -> None:
    source = (
        "direction := enum{North, South, East, West}\n"
        "Describe(Value:direction):string =\n"
        "    \"some direction\"\n"
    )
    chunks = _segment(source)
    assert _spans(chunks) == [("enum", 1, 1), ("function", 2, 3)]


def test_multi_line_enum_and_module() -> None:
    source = (
        "direction := enum:\n"
        "    North\n"
        "    South\n"
        "utilities := module:\n"
        "    Helper(X:int):int =\n"
        "        X + 1\n"
    )
    assert _spans(_segment(source)) == [("enum", 1, 3), ("module", 4, 6)]


def test_directives_and_other_lines_are_skipped() -> None:
    source = (
        "using { /Verse.org/Simulation }\n"
        "\n"
        "Helper(Value:int):int =\n"
        "    Value + 1000\n"
    )
    chunks = _segment(source)
    assert _spans(chunks) == [("function", 3, 4)]


def test_inline_body_function_closes_at_next_sibling() -> None:
    source = (
        "ComputeAnswer():int = 42\n"
        "Increment(Value:int):int =\n"
        "    Value + 1\n"
    )
    assert _spans(_segment(source)) == [("function", 1, 1), ("function", 2, 3)]


def test_extension_methods() -> None:
    source = (
        "(Player:player).GetDisplayName<public>()<transacts>:string =\n"
        "    \"Player\"\n"
        "(Player:player).Teleport<public>(\n"
        "    Target: vector3\n"
        ")<transacts>: void =\n"
        "    Player.SetLocation(Target)\n"
    )
    assert _spans(_segment(source)) == [("extension", 1, 2), ("extension", 3, 6)]


def test_unterminated_header_is_kept_at_end_of_file() -> None:
    source = (
        "Broken<public>(\n"
        "    First: int,\n"
        "    Second: int\n"
    )
    assert _spans(_segment(source)) == [("function", 1, 3)]


def test_tiny_matches_are_dropped() -> None:
    assert _segment("F():void=\n    x\n") == []


def test_empty_and_blank_input() -> None:
    assert _segment("") == []
    assert _segment("\n\n   \n") == []


def test_long_signature_is_capped() -> None:
    name = "Very" + "Long" * 40
    source = f"{name}(Value:int):int =\n    Value\n"
    chunk = _segment(source)[0]
    assert len(chunk.signature) == 100
    assert chunk.signature == source.splitlines()[0][:100]


def test_top_level_chunks_do_not_overlap() -> None:
    source = (
        "using { /Verse.org/Simulation }\n"
        "@editable\n"
        "first_device := class(creative_device):\n"
        "    Alpha : int = 0\n"
        "Helper(Value:int):int =\n"
        "    Value + 1000\n"
        "direction := enum{North, South, East, West}\n"
        "(Player:player).GetDisplayName<public>()<transacts>:string =\n"
        "    \"Player\"\n"
    )
    chunks = _segment(source)
    assert len(chunks) == 4
    for previous, current in zip(chunks, chunks[1:]):
        assert previous.end_line < current.start_line
