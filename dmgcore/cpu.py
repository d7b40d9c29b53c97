"""Fetch-decode-execute core operating on registers, memory and an opcode table."""

from __future__ import annotations

from dataclasses import dataclass, field

from dmgcore.instructions import op_unimplemented
from dmgcore.mmu import MMU
from dmgcore.opcodes import TABLE_SIZE, Instruction
from dmgcore.registers import Registers

CB_PREFIX = 0xCB


def half_carry_add(a: int, b: int) -> bool:
    """Whether adding the low nibbles of ``a`` and ``b`` carries out of bit 3."""
    return ((a & 0xF) + (b & 0xF)) > 0xF


@dataclass
class CPU:
    """The processor: a register file, a memory map and the 512-slot opcode table."""

    registers: Registers
    mmu: MMU
    table: list[Instruction] = field(
        default_factory=lambda: [Instruction() for _ in range(TABLE_SIZE)]
    )

    def step(self) -> int:
        """Execute one instruction and return the cycles it took."""
        instr = self.decode()
        handler = instr.execute or op_unimplemented
        return handler(self, instr)

    def decode(self) -> Instruction:
        """Fetch the opcode (and CB suffix if prefixed) and look up its instruction."""
        opcode = self.fetch_byte()
        if opcode == CB_PREFIX:
            return self.table[256 + self.fetch_byte()]
        return self.table[opcode]

    def fetch_byte(self) -> int:
        value = self.mmu.read_byte(self.registers.pc)
        self.registers.pc = (self.registers.pc + 1) & 0xFFFF
        return value

    def fetch_word(self) -> int:
        value = self.mmu.read_word(self.registers.pc)
        self.registers.pc = (self.registers.pc + 2) & 0xFFFF
        return value

    def opcode_addr(self, instr: Instruction) -> int:
        """Address of the instruction currently executing, once its bytes are fetched."""
        return (self.registers.pc - instr.bytes) & 0xFFFF

    def push_word(self, value: int) -> None:
        sp = self.registers.sp
        sp = (sp - 1) & 0xFFFF
        self.mmu.write_byte(sp, (value >> 8) & 0xFF)
        sp = (sp - 1) & 0xFFFF
        self.mmu.write_byte(sp, value & 0xFF)
        self.registers.sp = sp

    def pop_word(self) -> int:
        sp = self.registers.sp
        lo = self.mmu.read_byte(sp)
        sp = (sp + 1) & 0xFFFF
        hi = self.mmu.read_byte(sp)
        sp = (sp + 1) & 0xFFFF
        self.registers.sp = sp
        return (hi << 8) | lo