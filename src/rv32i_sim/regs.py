'''
mapeos ABI↔xN, validaciones, utilidades de registros
'''

from __future__ import annotations
from typing import Dict, List

NUM_REGS = 32

# Nombres ABI en orden de índice (x8 también se llama 'fp')
ABI_NAMES: List[str] = [
    "zero", "ra", "sp", "gp", "tp", "t0", "t1", "t2",
    "s0", "s1", "a0", "a1", "a2", "a3", "a4", "a5",
    "a6", "a7", "s2", "s3", "s4", "s5", "s6", "s7",
    "s8", "s9", "s10", "s11", "t3", "t4", "t5", "t6",
]

# Mapeo de nombres ABI a índices
ABI_TO_NUM: Dict[str, int] = {name: i for i, name in enumerate(ABI_NAMES)}
ABI_TO_NUM["fp"] = 8

def reg_num(token: str) -> int:
    """Devuelve el índice numérico 0..31 del registro, aceptando ABI o 'xN'."""
    t = token.strip().lower()
    if t in ABI_TO_NUM:
        return ABI_TO_NUM[t]
    if t.startswith("x") and t[1:].isdigit():
        n = int(t[1:])
        if 0 <= n < NUM_REGS:
            return n
    raise ValueError(f"Registro inválido: {token}")

def is_reg(token: str) -> bool:
    """Indica si el token representa un registro válido (ABI o 'xN')."""
    try:
        reg_num(token)
        return True
    except ValueError:
        return False

def is_valid_index(n: object) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and 0 <= n < NUM_REGS

def reg_name(n: int, *, abi: bool = False) -> str:
    """Nombre canónico 'xN' (o el ABI si abi=True)."""
    if not is_valid_index(n):
        raise ValueError(f"Índice de registro inválido: {n}")
    return ABI_NAMES[n] if abi else f"x{n}"
