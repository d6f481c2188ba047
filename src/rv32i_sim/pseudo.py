from __future__ import annotations
from typing import List, Optional, Tuple

# Sólo pseudoinstrucciones que se expanden a UNA instrucción base: así cada
# línea de código sigue ocupando exactamente un índice de programa.
PSEUDOS = frozenset({
    "NOP", "MV", "NOT", "NEG", "SEQZ", "SNEZ", "SLTZ", "SGTZ", "LI",
    "BEQZ", "BNEZ", "BLEZ", "BGEZ", "BLTZ", "BGTZ",
    "BGT", "BLE", "BGTU", "BLEU",
    "J", "JR", "RET",
})

X0 = "x0"; RA = "x1"

def is_pseudo(mnemonic: str) -> bool:
    return mnemonic.upper() in PSEUDOS

def expand(mnemonic: str, ops: List[str]) -> Optional[Tuple[str, List[str]]]:
    """Traduce (MNEMÓNICO, operandos) de una pseudo a su instrucción base.

    Devuelve None si el mnemónico no es pseudo o la aridad no corresponde
    (el parser reporta entonces el error de operandos)."""
    m = mnemonic.upper(); n = len(ops)

    if m == "NOP" and n == 0: return "ADDI", [X0, X0, "0"]
    if m == "MV"  and n == 2: return "ADDI", [ops[0], ops[1], "0"]
    if m == "NOT" and n == 2: return "XORI", [ops[0], ops[1], "-1"]
    if m == "NEG" and n == 2: return "SUB",  [ops[0], X0, ops[1]]
    if m == "SEQZ" and n == 2: return "SLTIU", [ops[0], ops[1], "1"]
    if m == "SNEZ" and n == 2: return "SLTU",  [ops[0], X0, ops[1]]
    if m == "SLTZ" and n == 2: return "SLT",   [ops[0], ops[1], X0]
    if m == "SGTZ" and n == 2: return "SLT",   [ops[0], X0, ops[1]]
    # li sólo cubre inmediatos de 12 bits (sin LUI+ADDI, ocuparía dos índices)
    if m == "LI"  and n == 2: return "ADDI", [ops[0], X0, ops[1]]

    if m == "BEQZ" and n == 2: return "BEQ", [ops[0], X0, ops[1]]
    if m == "BNEZ" and n == 2: return "BNE", [ops[0], X0, ops[1]]
    if m == "BLEZ" and n == 2: return "BGE", [X0, ops[0], ops[1]]
    if m == "BGEZ" and n == 2: return "BGE", [ops[0], X0, ops[1]]
    if m == "BLTZ" and n == 2: return "BLT", [ops[0], X0, ops[1]]
    if m == "BGTZ" and n == 2: return "BLT", [X0, ops[0], ops[1]]

    if m == "BGT"  and n == 3: return "BLT",  [ops[1], ops[0], ops[2]]
    if m == "BLE"  and n == 3: return "BGE",  [ops[1], ops[0], ops[2]]
    if m == "BGTU" and n == 3: return "BLTU", [ops[1], ops[0], ops[2]]
    if m == "BLEU" and n == 3: return "BGEU", [ops[1], ops[0], ops[2]]

    if m == "J"   and n == 1: return "JAL",  [X0, ops[0]]
    if m == "JR"  and n == 1: return "JALR", [X0, ops[0], "0"]
    if m == "RET" and n == 0: return "JALR", [X0, RA, "0"]

    return None
