# src/rv32i_sim/parser.py
from __future__ import annotations
import logging
import re
from typing import Dict, List, Mapping, Optional, Tuple

from .lexer import (
    strip_comment,
    split_label,
    split_mnemonic_operands,
    split_operands,
    has_mem_syntax,
)
from .ast import InstructionRecord, Program
from .isa import SPEC, IMM_BITS
from .labels import first_pass
from .pseudo import is_pseudo, expand
from .regs import reg_num
from .utils import signed_range
from .diagnostics import Diagnostic, error, has_errors
from .errors import AssemblySyntaxError

logger = logging.getLogger(__name__)

IMM_RE    = re.compile(r"^[+-]?(0[xX][0-9a-fA-F]+|0[bB][01]+|\d+)$")
SYMBOL_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

RA = 1

def parse_imm(token: str, bits: int) -> int:
    """Convierte un literal decimal, 0x.. o 0b.. (con signo opcional) y
    comprueba que quepa en 'bits' bits con signo."""
    t = token.strip()
    if not IMM_RE.match(t):
        raise ValueError(f"Inmediato inválido: {token}")
    neg = t.startswith("-")
    body = t.lstrip("+-")
    if body[:2].lower() == "0x":
        value = int(body[2:], 16)
    elif body[:2].lower() == "0b":
        value = int(body[2:], 2)
    else:
        value = int(body, 10)
    if neg:
        value = -value
    lo, hi = signed_range(bits)
    if not lo <= value <= hi:
        raise ValueError(f"El inmediato {value} no cabe en {bits} bits con signo (rango {lo}..{hi})")
    return value

def _target(token: str, index: int, bits: int, labels: Mapping[str, int]) -> Tuple[int, Optional[str]]:
    """Operando de salto: etiqueta definida o inmediato literal (offset en bytes)."""
    if token in labels:
        imm = (labels[token] - index) * 4
        lo, hi = signed_range(bits)
        if not lo <= imm <= hi:
            raise ValueError(f"Desplazamiento a la etiqueta '{token}' ({imm} bytes) fuera de rango para {bits} bits")
        return imm, token
    if SYMBOL_RE.match(token):
        raise ValueError(f"Etiqueta no definida: {token}")
    return parse_imm(token, bits), None

def _expect(op: str, ops: List[str], n: int, form: str) -> None:
    if len(ops) != n:
        raise ValueError(f"{op} requiere {n} operandos ({form})")

# ---------------- Un parser por formato ----------------
# Cada uno devuelve los campos del registro; errores como ValueError.

def _parse_r(op, ops, mem, index, labels) -> Dict[str, object]:
    _expect(op, ops, 3, "rd, rs1, rs2")
    return {"rd": reg_num(ops[0]), "rs1": reg_num(ops[1]), "rs2": reg_num(ops[2])}

def _parse_i(op, ops, mem, index, labels) -> Dict[str, object]:
    _expect(op, ops, 3, "rd, rs1, imm")
    return {"rd": reg_num(ops[0]), "rs1": reg_num(ops[1]), "imm": parse_imm(ops[2], IMM_BITS["I"])}

def _base_offset(op: str, ops: List[str], mem: bool, first: str) -> Dict[str, object]:
    """Formas 'op r, imm(rs1)', 'op r, (rs1)' y 'op r, rs1, imm' (cargas y almacenes)."""
    if mem and len(ops) == 3:
        return {first: reg_num(ops[0]), "imm": parse_imm(ops[1], 12), "rs1": reg_num(ops[2])}
    if mem and len(ops) == 2:
        return {first: reg_num(ops[0]), "imm": 0, "rs1": reg_num(ops[1])}
    if not mem and len(ops) == 3:
        return {first: reg_num(ops[0]), "rs1": reg_num(ops[1]), "imm": parse_imm(ops[2], 12)}
    raise ValueError(f"{op} requiere el formato {first}, imm(rs1) o {first}, rs1, imm")

def _parse_load(op, ops, mem, index, labels) -> Dict[str, object]:
    return _base_offset(op, ops, mem, "rd")

def _parse_store(op, ops, mem, index, labels) -> Dict[str, object]:
    return _base_offset(op, ops, mem, "rs2")

def _parse_branch(op, ops, mem, index, labels) -> Dict[str, object]:
    _expect(op, ops, 3, "rs1, rs2, etiqueta/offset")
    imm, label = _target(ops[2], index, IMM_BITS["SB"], labels)
    return {"rs1": reg_num(ops[0]), "rs2": reg_num(ops[1]), "imm": imm, "label": label}

def _parse_jal(op, ops, mem, index, labels) -> Dict[str, object]:
    if len(ops) == 1:
        rd, tok = RA, ops[0]   # 'JAL etiqueta' enlaza en ra
    elif len(ops) == 2:
        rd, tok = reg_num(ops[0]), ops[1]
    else:
        raise ValueError(f"{op} requiere 1 o 2 operandos ([rd,] etiqueta/offset)")
    imm, label = _target(tok, index, IMM_BITS["UJ"], labels)
    return {"rd": rd, "imm": imm, "label": label}

def _parse_jalr(op, ops, mem, index, labels) -> Dict[str, object]:
    if mem:
        return _base_offset(op, ops, mem, "rd")
    if len(ops) == 1:
        return {"rd": RA, "rs1": reg_num(ops[0]), "imm": 0}
    if len(ops) == 2:
        return {"rd": reg_num(ops[0]), "rs1": reg_num(ops[1]), "imm": 0}
    if len(ops) == 3:
        return {"rd": reg_num(ops[0]), "rs1": reg_num(ops[1]), "imm": parse_imm(ops[2], IMM_BITS["JALR"])}
    raise ValueError(f"{op} requiere el formato [rd,] rs1[, imm] o rd, imm(rs1)")

def _parse_u(op, ops, mem, index, labels) -> Dict[str, object]:
    _expect(op, ops, 2, "rd, imm")
    return {"rd": reg_num(ops[0]), "imm": parse_imm(ops[1], IMM_BITS["U"])}

def _parse_hlt(op, ops, mem, index, labels) -> Dict[str, object]:
    if ops:
        raise ValueError(f"{op} no admite operandos")
    return {}

_FORMAT_PARSERS = {
    "R": _parse_r,
    "I": _parse_i,
    "IL": _parse_load,
    "S": _parse_store,
    "SB": _parse_branch,
    "UJ": _parse_jal,
    "JALR": _parse_jalr,
    "U": _parse_u,
    "HLT": _parse_hlt,
}

def parse_instruction(text: str, index: int, line: int,
                      labels: Mapping[str, int]) -> InstructionRecord:
    """Parsea una instrucción (sin etiqueta ni comentario). Lanza ValueError."""
    mnemonic, op_str = split_mnemonic_operands(text)
    ops = split_operands(op_str)
    mem = has_mem_syntax(op_str)

    if is_pseudo(mnemonic):
        expanded = expand(mnemonic, ops)
        if expanded is None:
            raise ValueError(f"Número de operandos incorrecto para la pseudoinstrucción {mnemonic}")
        mnemonic, ops = expanded
        mem = False

    sp = SPEC.get(mnemonic)
    if sp is None:
        raise ValueError(f"Instrucción desconocida: {mnemonic}")

    fields = _FORMAT_PARSERS[sp.fmt](mnemonic, ops, mem, index, labels)
    return InstructionRecord(opcode=mnemonic, fmt=sp.fmt, index=index, line=line, text=text, **fields)

def parse_program(text: str, *, filename: Optional[str] = None) -> Tuple[Optional[Program], List[Diagnostic]]:
    """
    Devuelve (program, diagnostics). Si hay algún error, program es None.

    Reglas:
      - Comentarios: '#' o '//' hasta fin de línea.
      - Etiquetas: 'name:' al inicio de línea (sola o seguida de una instrucción).
      - Las líneas vacías y las etiquetas solas no ocupan índice.
      - Se reportan todos los errores del código, no sólo el primero.
    """
    lines: List[Tuple[int, str]] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        core = strip_comment(raw)
        if core:
            lines.append((lineno, core))

    # Pasada 1: etiquetas
    lab = first_pass(lines, filename=filename)
    diags: List[Diagnostic] = list(lab.diagnostics)

    # Pasada 2: instrucciones
    records: List[InstructionRecord] = []
    index = 0
    for lineno, core in lines:
        _, rest = split_label(core)
        if not rest:
            continue
        try:
            records.append(parse_instruction(rest, index, lineno, lab.labels))
        except ValueError as ex:
            diags.append(error(str(ex), line=lineno, file=filename))
        # el índice avanza aunque la línea falle, igual que en la pasada 1
        index += 1

    for d in diags:
        if not d.is_error:
            logger.warning(str(d))

    if has_errors(diags):
        return None, diags

    logger.debug(f"Programa parseado: {len(records)} instrucciones, {len(lab.labels)} etiquetas")
    return Program(tuple(records), lab.labels), diags

def parse(text: str, *, filename: Optional[str] = None) -> Program:
    """Como parse_program, pero lanza AssemblySyntaxError con el primer error."""
    program, diags = parse_program(text, filename=filename)
    if program is None:
        raise AssemblySyntaxError.from_diagnostics(diags)
    return program
