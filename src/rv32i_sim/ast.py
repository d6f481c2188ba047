'''
dataclases del programa parseado (InstructionRecord, Program)
'''

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

_OPTIONAL = ("rd", "rs1", "rs2", "imm", "label")

@dataclass(frozen=True)
class InstructionRecord:
    """Instrucción parseada (aún sin validar por el decoder).

    Sólo están presentes los campos que pide su formato; el resto queda en None.
    """
    opcode: str            # mnemónico en mayúsculas, p.ej. 'ADDI'
    fmt: str               # 'R','I','IL','S','SB','UJ','JALR','U','HLT'
    index: int             # posición en el programa (base 0)
    line: int              # línea del código fuente (base 1)
    text: str              # texto original de la instrucción
    rd: Optional[int] = None
    rs1: Optional[int] = None
    rs2: Optional[int] = None
    imm: Optional[int] = None
    label: Optional[str] = None

    def present_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in _OPTIONAL if getattr(self, f) is not None)

    def to_dict(self) -> Dict[str, Any]:
        """Forma serializable (JSON) con sólo los campos presentes."""
        d: Dict[str, Any] = {
            "opcode": self.opcode, "format": self.fmt, "index": self.index,
            "line": self.line, "text": self.text,
        }
        for f in self.present_fields():
            d[f] = getattr(self, f)
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "InstructionRecord":
        """Inversa de to_dict; no valida rangos (eso lo hace el decoder)."""
        kw = {f: d.get(f) for f in _OPTIONAL}
        return cls(
            opcode=str(d["opcode"]).upper(),
            fmt=str(d.get("format") or d.get("fmt")),
            index=int(d["index"]),
            line=int(d.get("line", 0)),
            text=str(d.get("text", "")),
            **kw,
        )

@dataclass(frozen=True)
class Program:
    """Imagen de programa de sólo lectura: instrucciones + tabla de etiquetas."""
    instructions: Tuple[InstructionRecord, ...]
    labels: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "instructions", tuple(self.instructions))
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> InstructionRecord:
        return self.instructions[index]

    def __iter__(self) -> Iterator[InstructionRecord]:
        return iter(self.instructions)

    def contains_pc(self, pc: int) -> bool:
        return 0 <= pc < len(self.instructions)

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.instructions]

    @classmethod
    def from_list(cls, items: Sequence[Mapping[str, Any]]) -> "Program":
        return cls(tuple(InstructionRecord.from_dict(d) for d in items))
