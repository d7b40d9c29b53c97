"""Game Boy (DMG) CPU core: registers, memory map, opcode tables, handlers and stepper."""

__version__ = "0.1.0"

__all__ = ["cpu", "dispatch", "emulator", "instructions", "mmu", "opcodes", "registers", "utils"]