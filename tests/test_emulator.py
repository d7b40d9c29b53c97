import json

import pytest

from dmgcore.emulator import build_cpu, main, run
from dmgcore.instructions import UnimplementedInstruction, op_ld_r16_n16, op_xor_a_r8
from dmgcore.registers import Flag

OPCODES = {
    "unprefixed": {
        "0x00": {"mnemonic": "NOP", "bytes": 1, "cycles": [4], "operands": [], "immediate": True},
        "0x31": {
            "mnemonic": "LD",
            "bytes": 3,
            "cycles": [12],
            "operands": [
                {"name": "SP", "immediate": True},
                {"name": "n16", "bytes": 2, "immediate": True},
            ],
            "immediate": True,
        },
        "0xAF": {
            "mnemonic": "XOR",
            "bytes": 1,
            "cycles": [4],
            "operands": [
                {"name": "A", "immediate": True},
                {"name": "A", "immediate": True},
            ],
            "immediate": True,
        },
    },
    "cbprefixed": {},
}

PROGRAM = bytes([0x31, 0xFE, 0xFF, 0xAF, 0x00])


@pytest.fixture
def files(tmp_path):
    opcodes = tmp_path / "opcodes.json"
    opcodes.write_text(json.dumps(OPCODES), encoding="utf-8")
    boot = tmp_path / "boot.bin"
    boot.write_bytes(PROGRAM)
    return opcodes, boot


def test_build_cpu_binds_handlers_and_starts_at_zero(files):
    cpu = build_cpu(*files)
    assert cpu.registers.pc == 0
    assert cpu.registers.sp == 0xFFFE
    assert cpu.table[0x31].execute is op_ld_r16_n16
    assert cpu.table[0xAF].execute is op_xor_a_r8
    assert cpu.mmu.read_byte(0) == PROGRAM[0]


def test_run_executes_program(files):
    cpu = build_cpu(*files)
    cpu.registers.a = 0x42
    total = run(cpu, 3)
    expected = sum(cpu.table[op].cycles[0] for op in (0x31, 0xAF, 0x00))
    assert total == expected
    assert cpu.registers.pc == len(PROGRAM)
    assert cpu.registers.sp == 0xFFFE
    assert cpu.registers.a == 0
    assert cpu.registers.flag(Flag.ZERO)


def test_run_zero_steps_does_nothing(files):
    cpu = build_cpu(*files)
    assert run(cpu, 0) == 0
    assert cpu.registers.pc == 0


def test_run_hits_unbound_opcode(tmp_path, files):
    opcodes, _ = files
    boot = tmp_path / "halt.bin"
    boot.write_bytes(bytes([0x76]))
    cpu = build_cpu(opcodes, boot)
    with pytest.raises(UnimplementedInstruction):
        run(cpu)


def test_main_runs_limited_steps(files, capsys):
    opcodes, boot = files
    code = main(["--opcodes", str(opcodes), "--boot-rom", str(boot), "--max-steps", "3"])
    assert code == 0
    assert "Starting emulation..." in capsys.readouterr().out


def test_main_reports_missing_file(tmp_path, capsys):
    code = main(["--opcodes", str(tmp_path / "missing.json"), "--boot-rom", str(tmp_path / "b.bin")])
    assert code == 1
    assert "error" in capsys.readouterr().err