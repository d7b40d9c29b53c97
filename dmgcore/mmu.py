"""Memory map with a boot ROM overlay at 0x0000-0x00FF."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

MEMORY_SIZE = 0x10000
BOOT_SIZE = 0x100
BOOT_DISABLE_REG = 0xFF50


class MMU:
    """64 KiB address space; the boot ROM shadows the first 256 bytes until disabled."""

    def __init__(self, boot_rom: bytes = b"") -> None:
        self.memory = bytearray(MEMORY_SIZE)
        self.boot = bytearray(BOOT_SIZE)
        rom = bytes(boot_rom[:BOOT_SIZE])
        self.boot[: len(rom)] = rom
        self.boot_enabled = True

    def read_byte(self, addr: int) -> int:
        if self.boot_enabled and 0 <= addr < BOOT_SIZE:
            return self.boot[addr]
        if not 0 <= addr < MEMORY_SIZE:
            logger.warning("Read memory out of bounds at 0x%04X", addr)
            return 0xFF
        return self.memory[addr]

    def read_word(self, addr: int) -> int:
        """Read a little-endian 16-bit word; the second byte's address wraps."""
        lo = self.read_byte(addr)
        hi = self.read_byte((addr + 1) & 0xFFFF)
        return (hi << 8) | lo

    def write_byte(self, addr: int, value: int) -> None:
        value &= 0xFF
        if addr == BOOT_DISABLE_REG:
            # Bit 0 set latches the boot ROM off for good.
            if value & 0x01:
                self.boot_enabled = False
            self.memory[addr] = value
            return
        if not 0 <= addr < MEMORY_SIZE:
            logger.warning("Write memory out of bounds at 0x%04X", addr)
            return
        self.memory[addr] = value