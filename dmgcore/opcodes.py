"""Instruction metadata and the 512-entry opcode table built from JSON definitions."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

TABLE_SIZE = 512


@dataclass(frozen=True)
class Operand:
    """One operand of an instruction as described by the opcode definitions."""

    name: str
    bytes: int = 0
    immediate: bool = False
    increment: bool = False
    decrement: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Operand:
        return cls(
            name=data.get("name", ""),
            bytes=int(data.get("bytes", 0)),
            immediate=bool(data.get("immediate", False)),
            increment=bool(data.get("increment", False)),
            decrement=bool(data.get("decrement", False)),
        )

    def __str__(self) -> str:
        text = self.name
        if self.increment:
            text += "++"
        if self.decrement:
            text += "--"
        if not self.immediate:
            text = f"({text})"
        return text


@dataclass
class Instruction:
    """An opcode's metadata plus the handler that executes it, once bound."""

    opcode: str = ""
    mnemonic: str = ""
    bytes: int = 0
    cycles: tuple[int, ...] = ()
    cb_prefixed: bool = False
    operands: tuple[Operand, ...] = ()
    immediate: bool = False
    flags: dict[str, str] = field(default_factory=dict)
    execute: Callable[..., int] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], cb_prefixed: bool) -> Instruction:
        return cls(
            opcode=data.get("opcode", ""),
            mnemonic=data.get("mnemonic", ""),
            bytes=int(data.get("bytes", 0)),
            cycles=tuple(int(c) for c in data.get("cycles") or ()),
            cb_prefixed=cb_prefixed,
            operands=tuple(Operand.from_dict(op) for op in data.get("operands") or ()),
            immediate=bool(data.get("immediate", False)),
            flags=dict(data.get("flags") or {}),
        )

    def __str__(self) -> str:
        if not self.mnemonic:
            return "UNKNOWN"
        if not self.operands:
            return self.mnemonic
        return f"{self.mnemonic} {', '.join(str(op) for op in self.operands)}"


def build_table(data: Mapping[str, Any]) -> list[Instruction]:
    """Build the 512-slot table: 0-255 unprefixed, 256-511 CB-prefixed.

    Slots without a definition hold an empty instruction.
    """
    sections = (
        (data.get("unprefixed") or {}, False),
        (data.get("cbprefixed") or {}, True),
    )
    table: list[Instruction] = []
    for entries, cb_prefixed in sections:
        for code in range(256):
            key = f"0x{code:02X}"
            raw = entries.get(key)
            if raw is None:
                table.append(Instruction())
                continue
            instr = Instruction.from_dict(raw, cb_prefixed)
            table.append(replace(instr, opcode=key))
    return table


def load_table(path: str | Path) -> list[Instruction]:
    """Read opcode definitions from a JSON file and build the table."""
    with open(path, encoding="utf-8") as fh:
        return build_table(json.load(fh))