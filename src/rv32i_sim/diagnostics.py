'''
diagnósticos del simulador: errores y advertencias ligados a una línea del programa
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

Severity = Literal["error", "advertencia"]

@dataclass(frozen=True)
class Diagnostic:
    """Problema detectado al parsear o ejecutar un programa.

    Se imprime como 'archivo:línea: SEVERIDAD: mensaje  (pista: ...)'; el
    archivo, la línea y la pista son opcionales.
    """
    severity: Severity
    message: str
    line: Optional[int] = None
    hint: Optional[str] = None
    file: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    @property
    def location(self) -> str:
        return ":".join(str(p) for p in (self.file, self.line) if p is not None)

    def __str__(self) -> str:
        text = f"{self.severity.upper()}: {self.message}"
        if self.hint:
            text += f"  (pista: {self.hint})"
        return f"{self.location}: {text}" if self.location else text

def has_errors(diags: Iterable[Diagnostic]) -> bool:
    return any(d.is_error for d in diags)

def error(message: str, *, line: Optional[int] = None, file: Optional[str] = None,
          hint: Optional[str] = None) -> Diagnostic:
    return Diagnostic("error", message, line=line, hint=hint, file=file)

def warning(message: str, *, line: Optional[int] = None, file: Optional[str] = None,
            hint: Optional[str] = None) -> Diagnostic:
    return Diagnostic("advertencia", message, line=line, hint=hint, file=file)
