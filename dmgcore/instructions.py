"""Handlers that execute individual instructions against a CPU."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from dmgcore.opcodes import Instruction
from dmgcore.registers import Flag

if TYPE_CHECKING:
    from dmgcore.cpu import CPU
    from dmgcore.dispatch import DispatchEntry

logger = logging.getLogger(__name__)

Handler = Callable[["CPU", Instruction], int]

_LOAD_PAIRS = frozenset({"BC", "DE", "HL", "SP"})
_STACK_PAIRS = frozenset({"BC", "DE", "HL", "AF"})


class InstructionError(RuntimeError):
    """An instruction's metadata does not fit the handler it was bound to."""


class UnimplementedInstruction(InstructionError):
    """The executed opcode has no handler."""


def _log(cpu: CPU, instr: Instruction, detail: str = "", *args: object) -> None:
    """Log one executed instruction; booleans are written as true/false."""
    shown = tuple(str(arg).lower() if isinstance(arg, bool) else arg for arg in args)
    logger.info(
        "0x%04X:\t%-12s" + detail, cpu.opcode_addr(instr), str(instr), *shown
    )


def _require(instr: Instruction, count: int, handler: str) -> None:
    if len(instr.operands) < count:
        raise InstructionError(
            f"{handler} expects {count} operand(s), got {len(instr.operands)} for {instr}"
        )


def _check_r8(cpu: CPU, name: str, handler: str, role: str) -> None:
    if not cpu.registers.has8(name):
        raise InstructionError(f'{handler}: Unexpected {role}register "{name}"')


def _check_pair(name: str, allowed: frozenset[str], handler: str, role: str) -> None:
    if name not in allowed:
        raise InstructionError(f'{handler}: Unexpected {role} register "{name}"')


def op_unimplemented(cpu: CPU, instr: Instruction) -> int:
    pc = (cpu.registers.pc - 1) & 0xFFFF
    raise UnimplementedInstruction(
        f'Unimplemented instruction "{instr}" called at PC: 0x{pc:04X}'
    )


def op_nop(cpu: CPU, instr: Instruction) -> int:
    _log(cpu, instr)
    return instr.cycles[0]


def op_ld_r16_n16(cpu: CPU, instr: Instruction) -> int:
    """LD rr, n16 for BC, DE, HL and SP."""
    _require(instr, 1, "OpLdR16N16")
    target = instr.operands[0].name
    _check_pair(target, _LOAD_PAIRS, "OpLdR16N16", "target")
    value = cpu.fetch_word()
    setattr(cpu.registers, target.lower(), value)
    _log(cpu, instr, " ; nn=0x%04X → %s=0x%04X", value, target, value)
    return instr.cycles[0]


def op_ld_mem_bc_a(cpu: CPU, instr: Instruction) -> int:
    addr = cpu.registers.bc
    value = cpu.registers.a
    cpu.mmu.write_byte(addr, value)
    _log(cpu, instr, " ; BC=0x%04X → [0x%04X]=0x%02X", addr, addr, value)
    return instr.cycles[0]


def op_xor_a_r8(cpu: CPU, instr: Instruction) -> int:
    _require(instr, 2, "OpXorAR8")
    source = instr.operands[1].name
    _check_r8(cpu, source, "OpXorAR8", "source ")
    regs = cpu.registers
    orig = regs.a
    src = regs.read8(source)
    result = orig ^ src
    regs.a = result
    regs.set_flag(Flag.ZERO, result == 0)
    regs.set_flag(Flag.SUBTRACT, False)
    regs.set_flag(Flag.HALF_CARRY, False)
    regs.set_flag(Flag.CARRY, False)
    _log(
        cpu, instr,
        " ; A=0x%02X ^ %s=0x%02X → A=0x%02X ; Z=%s N=false H=false C=false",
        orig, source, src, result, result == 0,
    )
    return instr.cycles[0]


def op_ld_mem_hl_r8(cpu: CPU, instr: Instruction) -> int:
    """LD (HL), r with optional post-increment or post-decrement of HL."""
    _require(instr, 2, "OpLdMemHLR8")
    target = instr.operands[0]
    source = instr.operands[1].name
    _check_r8(cpu, source, "OpLdMemHLR8", "source ")
    regs = cpu.registers
    addr = regs.hl
    value = regs.read8(source)
    cpu.mmu.write_byte(addr, value)
    if target.increment:
        regs.hl = (addr + 1) & 0xFFFF
        _log(cpu, instr, " ; [HL=0x%04X]=%s=0x%02X, HL++: HL=0x%04X",
             addr, source, value, regs.hl)
    elif target.decrement:
        regs.hl = (addr - 1) & 0xFFFF
        _log(cpu, instr, " ; [HL=0x%04X]=%s=0x%02X, HL--: HL=0x%04X",
             addr, source, value, regs.hl)
    else:
        _log(cpu, instr, " ; [HL=0x%04X]=%s=0x%02X", addr, source, value)
    return instr.cycles[0]


def op_cb_bit_b_r8(cpu: CPU, instr: Instruction) -> int:
    """BIT b, r: Z reflects the tested bit; carry is preserved."""
    _require(instr, 2, "OpCbBitBR8")
    bit_text = instr.operands[0].name
    try:
        bit = int(bit_text)
    except ValueError:
        bit = -1
    if not 0 <= bit <= 7:
        raise InstructionError(f'OpCbBitBR8: Invalid bit number "{bit_text}"')
    name = instr.operands[1].name
    _check_r8(cpu, name, "OpCbBitBR8", "")
    regs = cpu.registers
    value = regs.read8(name)
    bit_value = (value >> bit) & 1
    zero = bit_value == 0
    regs.set_flag(Flag.ZERO, zero)
    regs.set_flag(Flag.SUBTRACT, False)
    regs.set_flag(Flag.HALF_CARRY, True)
    _log(
        cpu, instr, " ; %s=0x%02X bit%s=%d → Z=%s N=false H=true C=%s",
        name, value, bit_text, bit_value, zero, regs.flag(Flag.CARRY),
    )
    return instr.cycles[0]


def op_jr_cond_imm8(cpu: CPU, instr: Instruction) -> int:
    """JR cond, e8: jumps while the zero flag is clear."""
    offset = cpu.fetch_byte()
    if not cpu.registers.flag(Flag.ZERO):
        signed = offset - 0x100 if offset & 0x80 else offset
        cpu.registers.add_pc(signed)
        _log(cpu, instr, " ; offset=0x%02X → PC=0x%04X (jump taken)",
             offset, cpu.registers.pc)
        return instr.cycles[0]
    _log(cpu, instr, " ; zero flag set → no jump")
    return instr.cycles[1]


def op_ld_r8_n8(cpu: CPU, instr: Instruction) -> int:
    _require(instr, 1, "OpLdR8N8")
    target = instr.operands[0].name
    value = cpu.fetch_byte()
    _check_r8(cpu, target, "OpLdR8N8", "target ")
    cpu.registers.write8(target, value)
    _log(cpu, instr, " ; n=0x%02X → %s=0x%02X", value, target, value)
    return instr.cycles[0]


def op_ldh_mem_c_a(cpu: CPU, instr: Instruction) -> int:
    addr = 0xFF00 | cpu.registers.c
    value = cpu.registers.a
    cpu.mmu.write_byte(addr, value)
    _log(cpu, instr, " ; C=0x%02X → [0x%04X]=0x%02X", cpu.registers.c, addr, value)
    return instr.cycles[0]


def op_inc_r8(cpu: CPU, instr: Instruction) -> int:
    """INC r: sets Z, clears N, sets H on carry out of bit 3; carry untouched."""
    _require(instr, 1, "OpIncR8")
    name = instr.operands[0].name
    _check_r8(cpu, name, "OpIncR8", "")
    regs = cpu.registers
    orig = regs.read8(name)
    result = (orig + 1) & 0xFF
    regs.write8(name, result)
    regs.set_flag(Flag.ZERO, result == 0)
    regs.set_flag(Flag.SUBTRACT, False)
    regs.set_flag(Flag.HALF_CARRY, (orig & 0x0F) + 1 > 0x0F)
    _log(
        cpu, instr, " ; %s=0x%02X → 0x%02X ; Z=%s N=%s H=%s C=%s",
        name, orig, result,
        regs.flag(Flag.ZERO), regs.flag(Flag.SUBTRACT),
        regs.flag(Flag.HALF_CARRY), regs.flag(Flag.CARRY),
    )
    return instr.cycles[0]


def op_ldh_mem_imm8_a(cpu: CPU, instr: Instruction) -> int:
    offset = cpu.fetch_byte()
    addr = 0xFF00 | offset
    value = cpu.registers.a
    cpu.mmu.write_byte(addr, value)
    _log(cpu, instr, " ; a8=0x%02X → [0x%04X]=0x%02X", offset, addr, value)
    return instr.cycles[0]


def op_ld_a_mem_de(cpu: CPU, instr: Instruction) -> int:
    addr = cpu.registers.de
    value = cpu.mmu.read_byte(addr)
    cpu.registers.a = value
    _log(cpu, instr, " ; [0x%04X]=0x%02X → A=0x%02X", addr, value, cpu.registers.a)
    return instr.cycles[0]


def op_call_imm16(cpu: CPU, instr: Instruction) -> int:
    addr = cpu.fetch_word()
    ret_addr = cpu.registers.pc
    cpu.push_word(ret_addr)
    cpu.registers.pc = addr
    _log(
        cpu, instr, " ; nn=0x%04X → PC=0x%04X; pushed ret=0x%04X; SP=0x%04X",
        addr, cpu.registers.pc, ret_addr, cpu.registers.sp,
    )
    return instr.cycles[0]


def op_ld_r8_r8(cpu: CPU, instr: Instruction) -> int:
    _require(instr, 2, "OpLdR8R8")
    target = instr.operands[0].name
    source = instr.operands[1].name
    _check_r8(cpu, source, "OpLdR8R8", "source ")
    _check_r8(cpu, target, "OpLdR8R8", "target ")
    value = cpu.registers.read8(source)
    cpu.registers.write8(target, value)
    _log(cpu, instr, " ; %s = %s = 0x%02X", target, source, value)
    return instr.cycles[0]


def op_push_r16(cpu: CPU, instr: Instruction) -> int:
    _require(instr, 1, "OpPushR16")
    source = instr.operands[0].name
    _check_pair(source, _STACK_PAIRS, "OpPushR16", "source")
    value = getattr(cpu.registers, source.lower())
    cpu.push_word(value)
    _log(cpu, instr, " ; pushed %s=0x%04X; SP=0x%04X", source, value, cpu.registers.sp)
    return instr.cycles[0]


def op_cb_rl_r8(cpu: CPU, instr: Instruction) -> int:
    """RL r: rotate left through carry."""
    _require(instr, 1, "OpCbRlR8")
    name = instr.operands[0].name
    _check_r8(cpu, name, "OpCbRlR8", "")
    regs = cpu.registers
    old = regs.read8(name)
    carry_in = 1 if regs.flag(Flag.CARRY) else 0
    new_carry = bool(old & 0x80)
    result = ((old << 1) & 0xFE) | carry_in
    regs.write8(name, result)
    regs.set_flag(Flag.ZERO, result == 0)
    regs.set_flag(Flag.SUBTRACT, False)
    regs.set_flag(Flag.HALF_CARRY, False)
    regs.set_flag(Flag.CARRY, new_carry)
    _log(
        cpu, instr, " ; %s=0x%02X → 0x%02X ; Z=%s N=false H=false C=%s",
        name, old, result, result == 0, new_carry,
    )
    return instr.cycles[0]


def op_rla(cpu: CPU, instr: Instruction) -> int:
    """RLA: rotate A left through carry; Z is always cleared."""
    regs = cpu.registers
    a = regs.a
    carry_in = 1 if regs.flag(Flag.CARRY) else 0
    new_carry = bool(a & 0x80)
    result = ((a << 1) | carry_in) & 0xFF
    regs.a = result
    regs.set_flag(Flag.ZERO, False)
    regs.set_flag(Flag.SUBTRACT, False)
    regs.set_flag(Flag.HALF_CARRY, False)
    regs.set_flag(Flag.CARRY, new_carry)
    _log(cpu, instr, " ; A=0x%02X → A=0x%02X ; Z=false N=false H=false C=%s",
         a, result, new_carry)
    return instr.cycles[0]


def op_pop_r16(cpu: CPU, instr: Instruction) -> int:
    """POP rr; popping into AF drops the low four bits of F."""
    _require(instr, 1, "OpPopR16")
    target = instr.operands[0].name
    _check_pair(target, _STACK_PAIRS, "OpPopR16", "target")
    value = cpu.pop_word()
    setattr(cpu.registers, target.lower(), value)
    _log(cpu, instr, " ; popped 0x%04X → %s; SP=0x%04X", value, target, cpu.registers.sp)
    return instr.cycles[0]


HANDLERS: dict[str, Handler] = {
    "OpNop": op_nop,
    "OpLdR16N16": op_ld_r16_n16,
    "OpLdMemBCA": op_ld_mem_bc_a,
    "OpXorAR8": op_xor_a_r8,
    "OpLdMemHLR8": op_ld_mem_hl_r8,
    "OpCbBitBR8": op_cb_bit_b_r8,
    "OpJrCondImm8": op_jr_cond_imm8,
    "OpLdR8N8": op_ld_r8_n8,
    "OpLdhMemCA": op_ldh_mem_c_a,
    "OpIncR8": op_inc_r8,
    "OpLdhMemImm8A": op_ldh_mem_imm8_a,
    "OpLdAMemDE": op_ld_a_mem_de,
    "OpCallImm16": op_call_imm16,
    "OpLdR8R8": op_ld_r8_r8,
    "OpPushR16": op_push_r16,
    "OpCbRlR8": op_cb_rl_r8,
    "OpRla": op_rla,
    "OpPopR16": op_pop_r16,
}


def bind_handlers(
    table: list[Instruction], dispatch: Mapping[int, DispatchEntry]
) -> list[Instruction]:
    """Attach a handler to every table slot; slots without one get op_unimplemented."""
    for index, instr in enumerate(table):
        entry = dispatch.get(index)
        handler = HANDLERS.get(entry.func_name) if entry else None
        instr.execute = handler or op_unimplemented
    return table