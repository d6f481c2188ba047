# src/rv32i_sim/decoder.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .ast import InstructionRecord
from .isa import SPEC, FIELDS, IMM_BITS, SHIFT_IMM
from .regs import is_valid_index, reg_name
from .utils import sign_extend, s32, is_unsigned_nbit
from .errors import InvalidOperandError

# ---------------- Instrucción lista para ejecutar ----------------

@dataclass(frozen=True)
class DecodedInstruction:
    """Registro parseado + inmediato canónico.

    - imm: con signo extendido (U: ya desplazado 12 bits a la izquierda)
    - shamt: sólo SLLI/SRLI/SRAI (0..31); en ese caso imm es None
    - kind: etiqueta de tipo igual al formato
    """
    opcode: str
    kind: str
    index: int
    line: int
    text: str
    rd: Optional[int] = None
    rs1: Optional[int] = None
    rs2: Optional[int] = None
    imm: Optional[int] = None
    shamt: Optional[int] = None
    label: Optional[str] = None

# ---------------- Helpers ----------------

def _fail(rec: InstructionRecord, message: str) -> InvalidOperandError:
    return InvalidOperandError(f"{rec.opcode}: {message}", line=rec.line)

def _is_int(v: object) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)

def _canonical_imm(rec: InstructionRecord) -> tuple[Optional[int], Optional[int]]:
    """Devuelve (imm, shamt) según el formato."""
    fmt = rec.fmt
    if fmt in ("R", "HLT"):
        return None, None
    if not _is_int(rec.imm):
        raise _fail(rec, f"inmediato no entero: {rec.imm!r}")
    imm: int = rec.imm  # type: ignore[assignment]

    if rec.opcode in SHIFT_IMM:
        if not is_unsigned_nbit(imm, 5):
            raise _fail(rec, "el desplazamiento debe estar entre 0 y 31")
        return None, imm

    if fmt == "U":
        return s32((imm & 0xFFFFF) << 12), None

    value = sign_extend(imm, IMM_BITS[fmt])
    if fmt in ("SB", "UJ") and value % 2 != 0:
        raise _fail(rec, "el offset de salto debe ser par")
    return value, None

# ---------------- Decoder principal ----------------

def decode(rec: InstructionRecord) -> DecodedInstruction:
    """Valida un registro parseado y produce la instrucción ejecutable.

    Función pura: no muta nada y da el mismo resultado para el mismo registro.
    Lanza InvalidOperandError si falta un campo, un registro está fuera de
    x0..x31, el shamt no está en 0..31 o un offset de salto es impar.
    """
    sp = SPEC.get(rec.opcode)
    if sp is None:
        raise InvalidOperandError(f"Instrucción desconocida: {rec.opcode}", line=rec.line)
    if rec.fmt != sp.fmt:
        raise _fail(rec, f"formato {rec.fmt} no corresponde (se esperaba {sp.fmt})")

    required = FIELDS[sp.fmt]
    missing = [f for f in required if getattr(rec, f) is None]
    if missing:
        raise _fail(rec, f"faltan operandos ({', '.join(missing)})")

    for f in ("rd", "rs1", "rs2"):
        if f in required and not is_valid_index(getattr(rec, f)):
            raise _fail(rec, f"registro {f} inválido: x{getattr(rec, f)} (debe ser x0-x31)")

    imm, shamt = _canonical_imm(rec)

    return DecodedInstruction(
        opcode=rec.opcode,
        kind=sp.fmt,
        index=rec.index,
        line=rec.line,
        text=rec.text,
        rd=rec.rd if "rd" in required else None,
        rs1=rec.rs1 if "rs1" in required else None,
        rs2=rec.rs2 if "rs2" in required else None,
        imm=imm,
        shamt=shamt,
        label=rec.label if sp.fmt in ("SB", "UJ") else None,
    )

def describe(d: DecodedInstruction) -> str:
    """Texto canónico de una instrucción decodificada (registros como xN)."""
    r = reg_name
    k = d.kind
    if k == "R":
        return f"{d.opcode} {r(d.rd)}, {r(d.rs1)}, {r(d.rs2)}"
    if k == "I":
        val = d.shamt if d.shamt is not None else d.imm
        return f"{d.opcode} {r(d.rd)}, {r(d.rs1)}, {val}"
    if k == "IL":
        return f"{d.opcode} {r(d.rd)}, {d.imm}({r(d.rs1)})"
    if k == "S":
        return f"{d.opcode} {r(d.rs2)}, {d.imm}({r(d.rs1)})"
    if k == "SB":
        return f"{d.opcode} {r(d.rs1)}, {r(d.rs2)}, {d.label or d.imm}"
    if k == "UJ":
        return f"{d.opcode} {r(d.rd)}, {d.label or d.imm}"
    if k == "JALR":
        return f"{d.opcode} {r(d.rd)}, {r(d.rs1)}, {d.imm}"
    if k == "U":
        return f"{d.opcode} {r(d.rd)}, {(d.imm >> 12) & 0xFFFFF}"
    return d.opcode
