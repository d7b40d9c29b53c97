"""CPU register file with 8-bit registers, 16-bit pairs and flag helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

_R8_NAMES = frozenset({"A", "B", "C", "D", "E", "H", "L"})


class Flag(enum.IntFlag):
    """Bits of the F register. The lower four bits of F are always zero."""

    ZERO = 1 << 7
    SUBTRACT = 1 << 6
    HALF_CARRY = 1 << 5
    CARRY = 1 << 4


@dataclass
class Registers:
    """The register file: A, F, B, C, D, E, H, L plus PC and SP."""

    a: int = 0
    f: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    e: int = 0
    h: int = 0
    l: int = 0  # noqa: E741
    pc: int = 0
    sp: int = 0

    @property
    def af(self) -> int:
        return (self.a << 8) | self.f

    @af.setter
    def af(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f = value & 0x00F0

    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF

    @staticmethod
    def has8(name: str) -> bool:
        """Whether ``name`` is one of the 8-bit registers A, B, C, D, E, H, L."""
        return name in _R8_NAMES

    def read8(self, name: str) -> int:
        """Read an 8-bit register by its upper-case name."""
        if not self.has8(name):
            raise KeyError(f"unknown 8-bit register {name!r}")
        return getattr(self, name.lower())

    def write8(self, name: str, value: int) -> None:
        """Write an 8-bit register by its upper-case name."""
        if not self.has8(name):
            raise KeyError(f"unknown 8-bit register {name!r}")
        setattr(self, name.lower(), value & 0xFF)

    def flag(self, flag: Flag) -> bool:
        return bool(self.f & flag)

    def set_flag(self, flag: Flag, value: bool) -> None:
        if value:
            self.f |= flag
        else:
            self.f &= ~flag & 0xFF

    def add_pc(self, offset: int) -> None:
        """Add a signed offset to PC, wrapping at 16 bits."""
        self.pc = (self.pc + offset) & 0xFFFF

    def dec_hl(self) -> None:
        self.hl = (self.hl - 1) & 0xFFFF

    def inc8_flags(self, orig: int, result: int) -> None:
        """Set Z, N and H as an 8-bit increment from ``orig`` to ``result`` does."""
        self.set_flag(Flag.ZERO, result & 0xFF == 0)
        self.set_flag(Flag.SUBTRACT, False)
        self.set_flag(Flag.HALF_CARRY, orig & 0x0F == 0x0F)