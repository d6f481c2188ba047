'''
jerarquía de excepciones del simulador (sintaxis, operandos, memoria, límites)
'''

from __future__ import annotations
from typing import List, Optional, Sequence

from .diagnostics import Diagnostic, error


class SimulatorError(Exception):
    """Base de todos los errores que el simulador reporta al llamador.

    Cada error conoce la línea de código fuente que lo provocó (si aplica) y
    se puede convertir en un Diagnostic con el mismo formato que usa el
    ensamblador.
    """

    kind = "error"

    def __init__(self, message: str, *, line: Optional[int] = None,
                 hint: Optional[str] = None, file: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.hint = hint
        self.file = file

    @property
    def diagnostic(self) -> Diagnostic:
        return error(self.message, line=self.line, file=self.file, hint=self.hint)

    def __str__(self) -> str:
        return str(self.diagnostic)


class AssemblySyntaxError(SimulatorError):
    """Línea que no se puede clasificar: mnemónico desconocido, operandos,
    inmediato fuera de rango, etiqueta no definida o repetida."""

    kind = "syntax"

    def __init__(self, message: str, *, line: Optional[int] = None,
                 hint: Optional[str] = None, file: Optional[str] = None,
                 diagnostics: Sequence[Diagnostic] = ()):
        super().__init__(message, line=line, hint=hint, file=file)
        self.diagnostics: List[Diagnostic] = list(diagnostics) or [self.diagnostic]

    @classmethod
    def from_diagnostics(cls, diags: Sequence[Diagnostic]) -> "AssemblySyntaxError":
        """Construye el error a partir del primer diagnóstico de severidad error."""
        first = next(d for d in diags if d.is_error)
        return cls(first.message, line=first.line, hint=first.hint, file=first.file,
                   diagnostics=diags)


class InvalidOperandError(SimulatorError):
    """Fallo de validación al decodificar (campo ausente, registro o desplazamiento inválido)."""

    kind = "operand"


class MemoryAccessViolation(SimulatorError):
    """Acceso a memoria fuera de rango o desalineado."""

    kind = "memory"

    def __init__(self, message: str, *, address: int, width: int,
                 line: Optional[int] = None, hint: Optional[str] = None):
        super().__init__(message, line=line, hint=hint)
        self.address = address
        self.width = width


class StepLimitExceeded(SimulatorError):
    kind = "limit"

    def __init__(self, limit: int, *, line: Optional[int] = None):
        super().__init__(f"Se superó el límite de {limit} pasos de ejecución", line=line,
                         hint="¿bucle infinito? use --max-steps para ampliarlo")
        self.limit = limit


class SnapshotError(SimulatorError):
    """Instantánea de estado mal formada recibida del llamador."""

    kind = "snapshot"


class InternalError(SimulatorError):
    """Caso inalcanzable si parser y decoder cumplen sus invariantes (defecto, no error de usuario)."""

    kind = "internal"
