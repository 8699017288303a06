from smartcode.chunking.classifier import read_lines
from smartcode.chunking.members import extract_members, members_of
from smartcode.chunking.segmenter import segment

GAME_MANAGER = (
    "game_manager := class(creative_device):\n"
    "\n"
    "    @editable\n"
    "    StartButton : button_device = button_device{}\n"
    "\n"
    "    OnBegin<override>()<suspends>:void=\n"
    "        StartButton.InteractedWithEvent.Subscribe(OnPressed)\n"
    "\n"
    "    OnPressed(Agent:agent):void=\n"
    "        Print(\"Button pressed\")\n"
)


def _members(source: str):
    (parent,) = segment(read_lines(source))
    return parent, members_of(parent)


def test_class_members_are_promoted_with_parent_signature() -> None:
    parent, members = _members(GAME_MANAGER)
    assert (parent.kind, parent.start_line, parent.end_line) == ("class", 1, 10)

    assert [(m.start_line, m.end_line) for m in members] == [(3, 5), (6, 8), (9, 10)]
    assert all(m.kind == "member" for m in members)
    assert all(m.parent == "game_manager" for m in members)
    assert [m.signature for m in members] == [
        "game_manager::StartButton : button_device = button_device{}",
        "game_manager::OnBegin<override>()<suspends>:void=",
        "game_manager::OnPressed(Agent:agent):void=",
    ]


def test_member_attributes_are_attached() -> None:
    _, members = _members(GAME_MANAGER)
    assert members[0].text.splitlines()[0] == "    @editable"


def test_member_text_matches_its_line_range() -> None:
    source_lines = GAME_MANAGER.splitlines()
    _, members = _members(GAME_MANAGER)
    for member in members:
        expected = "\n".join(source_lines[member.start_line - 1 : member.end_line])
        assert member.text == expected


def test_nested_definitions_stay_inside_their_member() -> None:
    source = (
        "score_tracker := class:\n"
        "    UpdateScores():void =\n"
        "        Inner(Value:int):int =\n"
        "            Value + 1\n"
        "        Print(\"updated scores\")\n"
    )
    _, members = _members(source)
    assert [(m.start_line, m.end_line) for m in members] == [(2, 5)]
    assert members[0].signature == "score_tracker::UpdateScores():void ="


def test_interface_methods_are_header_only() -> None:
    source = (
        "damageable := interface:\n"
        "    TakeDamage<public>(Amount:float)<transacts>:void\n"
        "    GetHealth<public>()<decides>:float\n"
    )
    parent, members = _members(source)
    assert parent.kind == "interface"
    assert [(m.kind, m.start_line, m.end_line) for m in members] == [
        ("interface-method", 2, 2),
        ("interface-method", 3, 3),
    ]
    assert members[0].signature == "damageable::TakeDamage<public>(Amount:float)<transacts>:void"


def test_multi_line_interface_method_header() -> None:
    source = (
        "configurable := interface:\n"
        "    Configure<public>(\n"
        "        Name: string,\n"
        "        Limit: int\n"
        "    )<transacts>: void\n"
        "    Reset<public>()<transacts>:void\n"
    )
    _, members = _members(source)
    assert [(m.start_line, m.end_line) for m in members] == [(2, 5), (6, 6)]


def test_struct_fields_are_members() -> None:
    source = (
        "player_stats<public> := struct:\n"
        "    TotalEliminations : int = 0\n"
        "    FavoriteWeaponName : string = \"none\"\n"
    )
    parent, members = _members(source)
    assert parent.kind == "struct"
    assert [m.signature for m in members] == [
        "player_stats::TotalEliminations : int = 0",
        "player_stats::FavoriteWeaponName : string = \"none\"",
    ]


def test_extract_members_keeps_parent_first_and_skips_other_kinds() -> None:
    source = GAME_MANAGER + (
        "utilities := module:\n"
        "    Helper(Value:int):int =\n"
        "        Value + 1000\n"
    )
    chunks = extract_members(segment(read_lines(source)))
    kinds = [chunk.kind for chunk in chunks]
    assert kinds == ["class", "member", "member", "member", "module"]
    assert chunks[-1].parent is None


def test_blank_line_detaches_member_attribute() -> None:
    source = (
        "game_thing := class:\n"
        "    @editable\n"
        "\n"
        "    StartButton : button_device = button_device{}\n"
    )
    _, members = _members(source)
    assert [(m.start_line, m.end_line) for m in members] == [(4, 4)]
    assert not members[0].text.lstrip().startswith("@editable")
    assert members[0].signature == "game_thing::StartButton : button_device = button_device{}"
