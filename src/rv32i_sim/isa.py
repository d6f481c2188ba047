'''
tabla formal del subconjunto RV32I (+HLT): formato, funct3/7, ancho de inmediato
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Literal, Optional, Tuple

# Clases de formato que entiende el simulador
Fmt = Literal["R", "I", "IL", "S", "SB", "UJ", "JALR", "U", "HLT"]
FORMATS: Tuple[str, ...] = ("R", "I", "IL", "S", "SB", "UJ", "JALR", "U", "HLT")

@dataclass(frozen=True)
class ISpec:
    """Especificación de una instrucción.

    - fmt: clase de formato (determina qué campos lleva el registro parseado)
    - funct3/funct7: cuando aplica (sólo informativo, no se codifica a binario)
    - imm_bits: ancho con signo del inmediato en ensamblador (None si no lleva)
    - width/signed: ancho en bytes y extensión de signo para cargas/almacenes
    """
    fmt: str
    funct3: Optional[int] = None
    funct7: Optional[int] = None
    imm_bits: Optional[int] = None
    width: Optional[int] = None
    signed: bool = True

# Anchos de inmediato por formato
IMM_BITS: Dict[str, int] = {
    "I": 12, "IL": 12, "S": 12, "JALR": 12,
    "SB": 13, "UJ": 21, "U": 20,
}

# Campos presentes en el registro parseado, por formato
FIELDS: Dict[str, Tuple[str, ...]] = {
    "R":    ("rd", "rs1", "rs2"),
    "I":    ("rd", "rs1", "imm"),
    "IL":   ("rd", "rs1", "imm"),
    "S":    ("rs1", "rs2", "imm"),
    "SB":   ("rs1", "rs2", "imm"),
    "UJ":   ("rd", "imm"),
    "JALR": ("rd", "rs1", "imm"),
    "U":    ("rd", "imm"),
    "HLT":  (),
}

SHIFT_IMM = frozenset({"SLLI", "SRLI", "SRAI"})

SPEC: Dict[str, ISpec] = {}

def _add(name: str, fmt: str, funct3: Optional[int] = None, funct7: Optional[int] = None,
         **kw) -> None:
    SPEC[name] = ISpec(fmt, funct3, funct7, IMM_BITS.get(fmt), **kw)

# Tipo R
_add("ADD",  "R", 0b000, 0b0000000)
_add("SUB",  "R", 0b000, 0b0100000)
_add("SLL",  "R", 0b001, 0b0000000)
_add("SLT",  "R", 0b010, 0b0000000)
_add("SLTU", "R", 0b011, 0b0000000)
_add("XOR",  "R", 0b100, 0b0000000)
_add("SRL",  "R", 0b101, 0b0000000)
_add("SRA",  "R", 0b101, 0b0100000)
_add("OR",   "R", 0b110, 0b0000000)
_add("AND",  "R", 0b111, 0b0000000)

# Tipo I (ALU inmediatos)
_add("ADDI",  "I", 0b000)
_add("SLTI",  "I", 0b010)
_add("SLTIU", "I", 0b011)
_add("XORI",  "I", 0b100)
_add("ORI",   "I", 0b110)
_add("ANDI",  "I", 0b111)
# Desplazamientos (shamt 0..31, funct7 distingue SRLI/SRAI)
_add("SLLI",  "I", 0b001, 0b0000000)
_add("SRLI",  "I", 0b101, 0b0000000)
_add("SRAI",  "I", 0b101, 0b0100000)

# Cargas
_add("LB",  "IL", 0b000, width=1)
_add("LH",  "IL", 0b001, width=2)
_add("LW",  "IL", 0b010, width=4)
_add("LBU", "IL", 0b100, width=1, signed=False)
_add("LHU", "IL", 0b101, width=2, signed=False)

# Almacenes
_add("SB", "S", 0b000, width=1)
_add("SH", "S", 0b001, width=2)
_add("SW", "S", 0b010, width=4)

# Saltos condicionales
_add("BEQ",  "SB", 0b000)
_add("BNE",  "SB", 0b001)
_add("BLT",  "SB", 0b100)
_add("BGE",  "SB", 0b101)
_add("BLTU", "SB", 0b110)
_add("BGEU", "SB", 0b111)

# Saltos incondicionales
_add("JAL",  "UJ")
_add("JALR", "JALR", 0b000)

# Tipo U
_add("LUI",   "U")
_add("AUIPC", "U")

# Parada (no estándar)
_add("HLT", "HLT")

def spec(mnemonic: str) -> ISpec:
    """Devuelve la especificación de una instrucción por mnemónico."""
    m = mnemonic.upper()
    if m not in SPEC:
        raise KeyError(f"Instrucción desconocida: {mnemonic}")
    return SPEC[m]

def is_mnemonic(token: str) -> bool:
    return token.upper() in SPEC
