"""Assemble a CPU from opcode definitions and a boot ROM, and run it."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from itertools import count
from pathlib import Path

from dmgcore.cpu import CPU
from dmgcore.dispatch import build_dispatch_map
from dmgcore.instructions import InstructionError, bind_handlers
from dmgcore.mmu import MMU
from dmgcore.opcodes import build_table
from dmgcore.registers import Registers

DEFAULT_OPCODES = "data/opcodes.json"
DEFAULT_BOOT_ROM = "data/dmg_boot.bin"
INITIAL_SP = 0xFFFE


def build_cpu(opcodes_path: str | Path, boot_rom_path: str | Path) -> CPU:
    """Load the opcode table, bind handlers and power up with the boot ROM mapped in."""
    with open(opcodes_path, encoding="utf-8") as fh:
        data = json.load(fh)
    table = bind_handlers(build_table(data), build_dispatch_map(data))
    boot_rom = Path(boot_rom_path).read_bytes()
    return CPU(
        registers=Registers(pc=0x0000, sp=INITIAL_SP),
        mmu=MMU(boot_rom),
        table=table,
    )


def run(cpu: CPU, max_steps: int | None = None) -> int:
    """Step the CPU, forever when ``max_steps`` is None; return the cycles spent."""
    steps = count() if max_steps is None else range(max_steps)
    return sum(cpu.step() for _ in steps)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="dmgcore", description="Run the boot ROM.")
    parser.add_argument("--opcodes", default=DEFAULT_OPCODES, help="opcode definitions JSON")
    parser.add_argument("--boot-rom", default=DEFAULT_BOOT_ROM, help="256-byte boot ROM image")
    parser.add_argument("--max-steps", type=int, default=None, help="stop after this many instructions")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        cpu = build_cpu(args.opcodes, args.boot_rom)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print("Starting emulation...")
    try:
        run(cpu, args.max_steps)
    except InstructionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())