import pytest

from dmgcore.cpu import CPU, half_carry_add
from dmgcore.instructions import UnimplementedInstruction
from dmgcore.mmu import MMU
from dmgcore.opcodes import Instruction, Operand
from dmgcore.registers import Registers

BASE = 0xC000


def make_cpu(program=b"", base=BASE, sp=0xFFFE):
    mmu = MMU()
    mmu.write_byte(0xFF50, 1)
    for offset, byte in enumerate(program):
        mmu.write_byte(base + offset, byte)
    return CPU(registers=Registers(pc=base, sp=sp), mmu=mmu)


def test_half_carry_add():
    assert half_carry_add(0x0F, 0x01) is True
    assert half_carry_add(0x07, 0x08) is False
    assert half_carry_add(0xF8, 0x08) is True


def test_fetch_byte_reads_and_advances():
    program = bytes([0x3E, 0x42])
    cpu = make_cpu(program)
    assert cpu.fetch_byte() == program[0]
    assert cpu.fetch_byte() == program[1]
    assert cpu.registers.pc == BASE + len(program)


def test_fetch_word_is_little_endian():
    cpu = make_cpu(bytes([0x34, 0x12]))
    assert cpu.fetch_word() == 0x1234
    assert cpu.registers.pc == BASE + 2


def test_fetch_byte_wraps_pc():
    cpu = make_cpu(base=0xFFFF - 1)
    cpu.registers.pc = 0xFFFF
    cpu.fetch_byte()
    assert cpu.registers.pc == 0


def test_fetch_reads_boot_rom_while_enabled():
    boot = bytes([0x31, 0xFE, 0xFF])
    cpu = CPU(registers=Registers(), mmu=MMU(boot))
    assert [cpu.fetch_byte() for _ in boot] == list(boot)


def test_push_pop_round_trip():
    start = 0xFFFE
    cpu = make_cpu(sp=start)
    cpu.push_word(0xBEEF)
    assert cpu.registers.sp == start - 2
    assert cpu.mmu.read_byte(start - 1) == 0xBEEF >> 8
    assert cpu.mmu.read_byte(start - 2) == 0xBEEF & 0xFF
    assert cpu.pop_word() == 0xBEEF
    assert cpu.registers.sp == start


def test_push_order_is_last_in_first_out():
    cpu = make_cpu()
    values = [0x0102, 0x0304, 0x0506]
    for value in values:
        cpu.push_word(value)
    assert [cpu.pop_word() for _ in values] == list(reversed(values))


def test_decode_unprefixed_returns_table_entry():
    cpu = make_cpu(bytes([0x00]))
    nop = Instruction(mnemonic="NOP", bytes=1, cycles=(4,))
    cpu.table[0x00] = nop
    assert cpu.decode() is nop
    assert cpu.registers.pc == BASE + 1


def test_decode_cb_prefixed_uses_upper_half():
    cpu = make_cpu(bytes([0xCB, 0x11]))
    rl = Instruction(
        mnemonic="RL", bytes=2, cycles=(8,), cb_prefixed=True,
        operands=(Operand("C", immediate=True),),
    )
    cpu.table[256 + 0x11] = rl
    assert cpu.decode() is rl
    assert cpu.registers.pc == BASE + 2


def test_step_runs_bound_handler():
    cpu = make_cpu(bytes([0x00]))
    seen = []

    def handler(c, instr):
        seen.append(instr)
        return instr.cycles[0]

    nop = Instruction(mnemonic="NOP", bytes=1, cycles=(4,), execute=handler)
    cpu.table[0x00] = nop
    assert cpu.step() == nop.cycles[0]
    assert seen == [nop]


def test_step_without_handler_raises():
    cpu = make_cpu(bytes([0x76]))
    cpu.table[0x76] = Instruction(mnemonic="HALT", bytes=1, cycles=(4,))
    with pytest.raises(UnimplementedInstruction, match="HALT"):
        cpu.step()


def test_opcode_addr_subtracts_length():
    cpu = make_cpu(bytes([0x31, 0xFE, 0xFF]))
    instr = Instruction(mnemonic="LD", bytes=3, cycles=(12,))
    for _ in range(instr.bytes):
        cpu.fetch_byte()
    assert cpu.opcode_addr(instr) == BASE