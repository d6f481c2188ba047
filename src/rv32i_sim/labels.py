# src/rv32i_sim/labels.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .lexer import split_label
from .regs import is_reg
from .isa import is_mnemonic
from .diagnostics import Diagnostic, error, warning

# ---------- Resultado de la pasada 1 ----------

@dataclass(frozen=True)
class LabelResult:
    labels: Dict[str, int]      # etiqueta -> índice de instrucción (base 0)
    count: int                  # instrucciones encontradas
    diagnostics: List[Diagnostic]

# ---------- Pasada 1 (tabla de etiquetas) ----------

def first_pass(lines: Sequence[Tuple[int, str]], *, filename: str | None = None) -> LabelResult:
    """Recorre las líneas ya limpias (sin comentarios ni vacías) y asigna a cada
    etiqueta el índice de la instrucción actual.

    Una línea 'etiqueta:' sola no consume índice; 'etiqueta: instr' sí.
    """
    labels: Dict[str, int] = {}
    diags: List[Diagnostic] = []
    index = 0

    for lineno, core in lines:
        name, rest = split_label(core)
        if name is not None:
            if name in labels:
                diags.append(error(f"Etiqueta redefinida: {name}", line=lineno, file=filename,
                                   hint=f"ya apunta a la instrucción {labels[name]}"))
            else:
                labels[name] = index
                if is_reg(name) or is_mnemonic(name):
                    diags.append(warning(f"La etiqueta '{name}' coincide con un registro o mnemónico",
                                         line=lineno, file=filename))
            if not rest:
                continue
        index += 1

    return LabelResult(labels=labels, count=index, diagnostics=diags)
