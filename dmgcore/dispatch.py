"""Map opcode definitions onto grouped handler names."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from dmgcore.opcodes import Instruction, Operand
from dmgcore.utils import parse_hex_to_uint8

logger = logging.getLogger(__name__)

_R8 = frozenset({"A", "B", "C", "D", "E", "H", "L"})
_R16 = frozenset({"BC", "DE", "HL", "SP"})
_CONDITIONS = frozenset({"Z", "NZ", "C", "NC"})
_BIT_INDICES = frozenset("01234567")
_ADDRESS_PAIRS = frozenset({"BC", "DE", "HL", "C"})

_SIMPLE = {
    "NOP": "Nop",
    "HALT": "Halt",
    "STOP": "Stop",
    "DI": "Di",
    "EI": "Ei",
    "RLCA": "Rlca",
    "RRCA": "Rrca",
    "RLA": "Rla",
    "RRA": "Rra",
    "DAA": "Daa",
    "CPL": "Cpl",
    "SCF": "Scf",
    "CCF": "Ccf",
    "RETI": "Reti",
}

_ALU = frozenset({"ADD", "ADC", "SUB", "SBC", "AND", "XOR", "OR", "CP"})
_ROTATES = frozenset({"RLC", "RRC", "RL", "RR", "SLA", "SRA", "SWAP", "SRL"})
_BIT_OPS = frozenset({"BIT", "RES", "SET"})


@dataclass(frozen=True)
class DispatchEntry:
    """A handler name and the human-readable form of the instruction it serves."""

    func_name: str
    description: str


def is_r8(op: Operand) -> bool:
    return op.name in _R8


def is_r16(op: Operand) -> bool:
    return op.name in _R16


def is_cond(op: Operand) -> bool:
    return op.name in _CONDITIONS


def is_bit_index(op: Operand) -> bool:
    return op.name in _BIT_INDICES


def is_rst_vector(op: Operand) -> bool:
    return op.name.startswith("$")


def _is_af(op: Operand) -> bool:
    return op.name == "AF"


def _is_n8(op: Operand) -> bool:
    return op.bytes == 1 and op.name == "n8"


def _is_n16(op: Operand) -> bool:
    return op.bytes == 2 and op.name == "n16"


def _is_a8(op: Operand) -> bool:
    return op.bytes == 1 and op.name == "a8"


def _is_a16(op: Operand) -> bool:
    return op.bytes == 2 and op.name == "a16"


def _is_e8(op: Operand) -> bool:
    return op.bytes == 1 and op.name == "e8"


def _is_mem(op: Operand, name: str) -> bool:
    return op.name == name and not op.immediate


def capitalize_mnemonic(mnemonic: str) -> str:
    """Turn ``LD`` into ``Ld``, ``ADD`` into ``Add`` and so on."""
    lowered = mnemonic.lower()
    return lowered[:1].upper() + lowered[1:]


def describe(instr: Instruction) -> str:
    """Assembly-style text: addresses through BC, DE, HL, C, a8 and a16 are bracketed."""
    if not instr.mnemonic:
        return "UNKNOWN"
    if not instr.operands:
        return instr.mnemonic

    parts = []
    for op in instr.operands:
        text = op.name
        if op.increment:
            text += "++"
        if op.decrement:
            text += "--"
        if op.name in ("a8", "a16") or (op.name in _ADDRESS_PAIRS and not op.immediate):
            text = f"({text})"
        parts.append(text)
    return f"{instr.mnemonic} {', '.join(parts)}"


def _ld_suffix(ops: tuple[Operand, ...]) -> str | None:
    if len(ops) == 2:
        op1, op2 = ops
        checks = (
            (is_r8(op1) and is_r8(op2), "R8R8"),
            (is_r8(op1) and _is_n8(op2), "R8N8"),
            (is_r16(op1) and _is_n16(op2), "R16N16"),
            (_is_mem(op1, "BC") and op2.name == "A", "MemBCA"),
            (_is_mem(op1, "DE") and op2.name == "A", "MemDEA"),
            (_is_mem(op1, "HL") and is_r8(op2), "MemHLR8"),
            (_is_mem(op1, "HL") and _is_n8(op2), "MemHLN8"),
            (op1.name == "A" and _is_mem(op2, "BC"), "AMemBC"),
            (op1.name == "A" and _is_mem(op2, "DE"), "AMemDE"),
            (is_r8(op1) and _is_mem(op2, "HL"), "R8MemHL"),
            (_is_a16(op1) and op2.name == "A", "MemImm16A"),
            (_is_a16(op1) and op2.name == "SP", "MemImm16SP"),
            (op1.name == "A" and _is_a16(op2), "AMemImm16"),
            (op1.name == "SP" and op2.name == "HL", "SPHL"),
            (_is_mem(op1, "HL") and op1.decrement and op2.name == "A", "MemHLDA"),
            (_is_mem(op1, "HL") and op1.increment and op2.name == "A", "MemHLIA"),
            (op1.name == "A" and _is_mem(op2, "HL") and op2.decrement, "AMemHLD"),
            (op1.name == "A" and _is_mem(op2, "HL") and op2.increment, "AMemHLI"),
        )
        return next((suffix for matched, suffix in checks if matched), None)
    if len(ops) == 3:
        op1, op2, op3 = ops
        if op1.name == "HL" and op2.name == "SP" and _is_e8(op3):
            return "HLSPImm8"
    return None


def _ldh_suffix(ops: tuple[Operand, ...]) -> str | None:
    if len(ops) != 2:
        return None
    op1, op2 = ops
    if _is_a8(op1) and op2.name == "A":
        return "MemImm8A"
    if op1.name == "A" and _is_a8(op2):
        return "AMemImm8"
    if _is_mem(op1, "C") and op2.name == "A":
        return "MemCA"
    if op1.name == "A" and _is_mem(op2, "C"):
        return "AMemC"
    return None


def _alu_suffix(mnemonic: str, ops: tuple[Operand, ...]) -> str | None:
    if len(ops) != 2:
        return None
    op1, op2 = ops
    if op1.name == "A":
        if is_r8(op2):
            return "AR8"
        if _is_n8(op2):
            return "AN8"
        if _is_mem(op2, "HL"):
            return "AMemHL"
    if mnemonic == "ADD" and op1.name == "HL" and is_r16(op2):
        return "HLR16"
    if mnemonic == "ADD" and op1.name == "SP" and _is_e8(op2):
        return "SPE8"
    return None


def _single_suffix(ops: tuple[Operand, ...], allow_r16: bool) -> str | None:
    if len(ops) != 1:
        return None
    (op,) = ops
    if is_r8(op):
        return "R8"
    if allow_r16 and is_r16(op):
        return "R16"
    if _is_mem(op, "HL"):
        return "MemHL"
    return None


def _bit_suffix(ops: tuple[Operand, ...]) -> str | None:
    if len(ops) != 2 or not is_bit_index(ops[0]):
        return None
    if is_r8(ops[1]):
        return "BR8"
    if _is_mem(ops[1], "HL"):
        return "BMemHL"
    return None


def _jump_suffix(mnemonic: str, ops: tuple[Operand, ...]) -> str | None:
    target = _is_e8 if mnemonic == "JR" else _is_a16
    stem = "Imm8" if mnemonic == "JR" else "Imm16"
    if len(ops) == 1:
        if target(ops[0]):
            return stem
        if mnemonic == "JP" and ops[0].name == "HL":
            return "HL"
    if len(ops) == 2 and is_cond(ops[0]) and target(ops[1]):
        return "Cond" + stem
    return None


def handler_name(instr: Instruction, prefix: str) -> str | None:
    """Name of the grouped handler for ``instr``, or None when no pattern matches."""
    mnemonic = instr.mnemonic
    ops = instr.operands

    if mnemonic in _SIMPLE:
        return prefix + _SIMPLE[mnemonic]
    if mnemonic == "PREFIX":
        return None
    if mnemonic == "RET":
        if not ops:
            return prefix + "Ret"
        if len(ops) == 1 and is_cond(ops[0]):
            return prefix + "RetCond"
        return None

    suffix: str | None = None
    if mnemonic == "LD":
        suffix = _ld_suffix(ops)
    elif mnemonic == "LDH":
        suffix = _ldh_suffix(ops)
    elif mnemonic in _ALU:
        suffix = _alu_suffix(mnemonic, ops)
    elif mnemonic in ("INC", "DEC"):
        suffix = _single_suffix(ops, allow_r16=True)
    elif mnemonic in _ROTATES:
        suffix = _single_suffix(ops, allow_r16=False)
    elif mnemonic in _BIT_OPS:
        suffix = _bit_suffix(ops)
    elif mnemonic in ("JP", "JR", "CALL"):
        suffix = _jump_suffix(mnemonic, ops)
    elif mnemonic in ("PUSH", "POP"):
        if len(ops) == 1 and (is_r16(ops[0]) or _is_af(ops[0])):
            suffix = "R16"
    elif mnemonic == "RST":
        if len(ops) == 1 and is_rst_vector(ops[0]):
            suffix = "Vec"

    if suffix is None:
        return None
    return prefix + capitalize_mnemonic(mnemonic) + suffix


def _process(
    entries: Mapping[str, Any],
    prefix: str,
    offset: int,
    cb_prefixed: bool,
    result: dict[int, DispatchEntry],
) -> None:
    for key, raw in entries.items():
        index = offset + parse_hex_to_uint8(key)
        instr = Instruction.from_dict(raw, cb_prefixed)
        if not instr.mnemonic or instr.mnemonic.startswith("ILLEGAL"):
            continue
        name = handler_name(instr, prefix)
        if name is None:
            if instr.mnemonic != "PREFIX":
                logger.warning(
                    "No grouped function name determined for %s %s (Opcode: %s)",
                    prefix,
                    describe(instr),
                    key,
                )
            continue
        result[index] = DispatchEntry(func_name=name, description=describe(instr))


def build_dispatch_map(data: Mapping[str, Any]) -> dict[int, DispatchEntry]:
    """Map table indices (0-255 unprefixed, 256-511 CB) to their handler entries.

    Raises ValueError for an opcode key that is not a ``0x``-prefixed byte.
    """
    result: dict[int, DispatchEntry] = {}
    _process(data.get("unprefixed") or {}, "Op", 0, False, result)
    _process(data.get("cbprefixed") or {}, "OpCb", 256, True, result)
    return dict(sorted(result.items()))