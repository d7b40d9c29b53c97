# dmgcore

A compact Game Boy (DMG) CPU core. It models the register file, the 64 KiB
memory map with the boot ROM overlay, the 512-entry opcode table
(unprefixed and `CB`-prefixed) and a stepping CPU that executes the
instructions it has handlers for. Each executed instruction is logged at
INFO level with its address, its disassembly and the effect it had.

## What it needs

- An opcode description file in JSON, with `unprefixed` and `cbprefixed`
  objects keyed by `"0x00"` … `"0xFF"`. Each entry gives the mnemonic, byte
  length, cycle counts, operands and flags.
- A DMG boot ROM image. Its first 256 bytes are mapped over
  `0x0000–0x00FF` until a byte with bit 0 set is written to `0xFF50`, which
  switches the overlay out for good.

Neither file ships with the package.

## Installing

```
pip install .
```

For the test suite:

```
pip install .[test]
pytest
```

## Command line

The `dmgcore` command loads the opcode table and the boot ROM, builds a CPU
with `PC=0x0000` and `SP=0xFFFE`, prints `Starting emulation...` and runs
it, logging every instruction.

```
dmgcore --help
```

Options:

- `--opcodes PATH` — opcode definitions JSON (default `data/opcodes.json`).
- `--boot-rom PATH` — boot ROM image (default `data/dmg_boot.bin`).
- `--max-steps N` — stop after `N` instructions; without it the run goes on
  until an error.

If a file cannot be read or the opcode keys are malformed, or if an
executed opcode has no handler or does not fit its handler, the command
prints `error: …` to standard error and exits with status 1. An
unimplemented opcode is reported with its disassembly and its address.

## Library use

```python
from dmgcore.emulator import build_cpu, run

cpu = build_cpu("opcodes.json", "dmg_boot.bin")
cycles = run(cpu, 1000)        # execute 1000 instructions, return cycles spent
print(hex(cpu.registers.pc))
```

The pieces can be used on their own:

- `dmgcore.registers` — `Registers`, a dataclass with the 8-bit registers
  `a`, `f`, `b`, `c`, `d`, `e`, `h`, `l`, the 16-bit `pc` and `sp`, and the
  pair properties `af`, `bc`, `de`, `hl` (writing `af` clears the low four
  bits of F). Registers can be reached by name with `read8`, `write8` and
  `has8`; `Flag` holds `ZERO`, `SUBTRACT`, `HALF_CARRY` and `CARRY`, read
  and written with `flag` and `set_flag`. `add_pc` adds a signed offset
  with 16-bit wrap-around; `dec_hl` and `inc8_flags` are also provided.
- `dmgcore.mmu` — `MMU(boot_rom)` with `read_byte`, `read_word`
  (little-endian) and `write_byte`, including the boot ROM latch at
  `0xFF50`. Out-of-range addresses log a warning; reads then give `0xFF`
  and writes are ignored.
- `dmgcore.opcodes` — `Operand`, `Instruction`, `build_table` and
  `load_table`, which turn the JSON description into a 512-slot list
  (indices 256 and up are the `CB`-prefixed instructions; missing slots hold
  an empty `Instruction`, whose text form is `UNKNOWN`).
- `dmgcore.dispatch` — classifies instructions by mnemonic and operand
  shape into handler names such as `OpLdR16N16` or `OpCbBitBR8`
  (`handler_name`, `build_dispatch_map`, `describe`, plus the operand tests
  `is_r8`, `is_r16`, `is_cond`, `is_bit_index`, `is_rst_vector`).
- `dmgcore.instructions` — the instruction handlers and `bind_handlers`,
  which attaches them to a table and marks every other slot with
  `op_unimplemented`. Handler failures raise `InstructionError`;
  unimplemented opcodes raise its subclass `UnimplementedInstruction`.
- `dmgcore.cpu` — `CPU(registers, mmu, table)` with `step`, `decode`,
  `fetch_byte`, `fetch_word`, `opcode_addr`, `push_word` and `pop_word`,
  and the helper `half_carry_add`.
- `dmgcore.utils` — `parse_hex_to_uint8` for `0x`-prefixed byte strings.

## What it does not do

This is a CPU core only. Handlers exist for these instructions alone: NOP,
`LD rr, n16`, `LD (BC), A`, `XOR A, r`, `LD (HL), r` (with `HL+`/`HL-`),
`BIT b, r`, `JR cond, e8` (the jump is taken while Z is clear), `LD r, n8`,
`LDH (C), A`, `INC r`, `LDH (a8), A`, `LD A, (DE)`, `CALL a16`, `LD r, r`,
`PUSH rr`, `RL r`, `RLA` and `POP rr`. Any other opcode stops execution.

There is no cartridge loading, no graphics, sound, timers, interrupts or
input, and no display window: the package steps the processor and logs
what it does.