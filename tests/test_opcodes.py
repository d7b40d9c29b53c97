import json

import pytest

from dmgcore.opcodes import Instruction, Operand, build_table, load_table

SAMPLE = {
    "unprefixed": {
        "0x00": {"mnemonic": "NOP", "bytes": 1, "cycles": [4], "operands": [], "immediate": True,
                 "flags": {"Z": "-", "N": "-", "H": "-", "C": "-"}},
        "0x21": {"mnemonic": "LD", "bytes": 3, "cycles": [12],
                 "operands": [{"name": "HL", "immediate": True},
                              {"name": "n16", "bytes": 2, "immediate": True}],
                 "immediate": True, "flags": {}},
        "0x32": {"mnemonic": "LD", "bytes": 1, "cycles": [8],
                 "operands": [{"name": "HL", "decrement": True, "immediate": False},
                              {"name": "A", "immediate": True}],
                 "immediate": False},
        "0x20": {"mnemonic": "JR", "bytes": 2, "cycles": [12, 8],
                 "operands": [{"name": "NZ", "immediate": True},
                              {"name": "e8", "bytes": 1, "immediate": True}],
                 "immediate": True},
    },
    "cbprefixed": {
        "0x7C": {"mnemonic": "BIT", "bytes": 2, "cycles": [8],
                 "operands": [{"name": "7", "immediate": True}, {"name": "H", "immediate": True}],
                 "immediate": True, "flags": {"Z": "Z", "N": "0", "H": "1", "C": "-"}},
    },
}


def test_operand_from_dict_defaults():
    op = Operand.from_dict({"name": "A"})
    assert op == Operand(name="A", bytes=0, immediate=False, increment=False, decrement=False)


def test_operand_from_dict_all_fields():
    op = Operand.from_dict({"name": "HL", "bytes": 0, "immediate": False, "increment": True})
    assert op.increment and not op.decrement and not op.immediate
    assert str(op) == "(HL++)"


@pytest.mark.parametrize(
    "operand, text",
    [
        (Operand("A", immediate=True), "A"),
        (Operand("BC"), "(BC)"),
        (Operand("HL", decrement=True), "(HL--)"),
        (Operand("HL", increment=True, immediate=True), "HL++"),
    ],
)
def test_operand_str(operand, text):
    assert str(operand) == text


def test_instruction_str_forms():
    assert str(Instruction()) == "UNKNOWN"
    assert str(Instruction(mnemonic="NOP")) == "NOP"
    instr = Instruction(mnemonic="LD", operands=(Operand("HL", decrement=True), Operand("A", immediate=True)))
    assert str(instr) == "LD (HL--), A"


def test_instruction_from_dict():
    instr = Instruction.from_dict(SAMPLE["unprefixed"]["0x20"], cb_prefixed=False)
    assert instr.mnemonic == "JR"
    assert instr.bytes == 2
    assert instr.cycles == (12, 8)
    assert instr.operands[1] == Operand("e8", bytes=1, immediate=True)
    assert instr.cb_prefixed is False
    assert instr.execute is None


def test_build_table_layout():
    table = build_table(SAMPLE)
    assert len(table) == 512
    assert table[0x00].mnemonic == "NOP"
    assert table[0x00].opcode == "0x00"
    assert table[0x21].operands[0].name == "HL"
    assert str(table[0x32]) == "LD (HL--), A"
    assert not table[0x00].cb_prefixed


def test_build_table_cb_section():
    table = build_table(SAMPLE)
    bit = table[256 + 0x7C]
    assert bit.mnemonic == "BIT"
    assert bit.cb_prefixed
    assert bit.opcode == "0x7C"
    assert bit.flags == {"Z": "Z", "N": "0", "H": "1", "C": "-"}
    assert str(bit) == "BIT 7, H"


def test_missing_slots_are_empty():
    table = build_table(SAMPLE)
    present = {0x00, 0x21, 0x32, 0x20, 256 + 0x7C}
    for idx, instr in enumerate(table):
        if idx not in present:
            assert instr == Instruction()
            assert str(instr) == "UNKNOWN"


def test_build_table_empty_data():
    table = build_table({})
    assert len(table) == 512
    assert all(instr.mnemonic == "" for instr in table)


def test_missing_optional_fields_default():
    table = build_table({"unprefixed": {"0x10": {"mnemonic": "STOP"}}})
    stop = table[0x10]
    assert stop.cycles == ()
    assert stop.operands == ()
    assert stop.flags == {}


def test_load_table_matches_build(tmp_path):
    path = tmp_path / "opcodes.json"
    path.write_text(json.dumps(SAMPLE), encoding="utf-8")
    assert load_table(path) == build_table(SAMPLE)


def test_load_table_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        load_table(path)