# src/rv32i_sim/executor.py
from __future__ import annotations
import logging
import operator
from typing import Callable, Dict, Optional

from .config import MachineConfig
from .decoder import DecodedInstruction
from .isa import spec
from .machine import MachineState
from .utils import u32
from .errors import InternalError, MemoryAccessViolation

logger = logging.getLogger(__name__)

# Operaciones de la ALU sobre valores con signo; el resultado se envuelve
# a 32 bits al escribir el registro.
_ALU: Dict[str, Callable[[int, int], int]] = {
    "ADD":  lambda a, b: a + b,
    "SUB":  lambda a, b: a - b,
    "SLL":  lambda a, b: a << (b & 0x1F),
    "SLT":  lambda a, b: int(a < b),
    "SLTU": lambda a, b: int(u32(a) < u32(b)),
    "XOR":  lambda a, b: a ^ b,
    "SRL":  lambda a, b: u32(a) >> (b & 0x1F),
    "SRA":  lambda a, b: a >> (b & 0x1F),
    "OR":   lambda a, b: a | b,
    "AND":  lambda a, b: a & b,
}

# Variante inmediata -> operación de la ALU
_IMM_ALU: Dict[str, str] = {
    "ADDI": "ADD", "SLTI": "SLT", "SLTIU": "SLTU",
    "XORI": "XOR", "ORI": "OR", "ANDI": "AND",
    "SLLI": "SLL", "SRLI": "SRL", "SRAI": "SRA",
}

_BRANCH: Dict[str, Callable[[int, int], bool]] = {
    "BEQ":  operator.eq,
    "BNE":  operator.ne,
    "BLT":  operator.lt,
    "BGE":  operator.ge,
    "BLTU": lambda a, b: u32(a) < u32(b),
    "BGEU": lambda a, b: u32(a) >= u32(b),
}

def _lookup(table: Dict[str, object], d: DecodedInstruction):
    try:
        return table[d.opcode]
    except KeyError:
        raise InternalError(f"Sin ejecución para {d.opcode} (formato {d.kind})", line=d.line) from None

def _link_value(st: MachineState, cfg: MachineConfig) -> int:
    """Dirección de retorno: en bytes (por defecto) o en unidades de instrucción."""
    return (st.pc + 1) * 4 if cfg.link_mode == "byte" else st.pc + 1

# ---------------- Un handler por formato ----------------

def _exec_r(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    fn = _lookup(_ALU, d)
    st.set_register(d.rd, fn(st.get_register(d.rs1), st.get_register(d.rs2)))
    st.advance()

def _exec_i(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    fn = _ALU[_lookup(_IMM_ALU, d)]
    operand = d.shamt if d.shamt is not None else d.imm
    st.set_register(d.rd, fn(st.get_register(d.rs1), operand))
    st.advance()

def _exec_load(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    sp = spec(d.opcode)
    address = u32(st.get_register(d.rs1) + d.imm)
    st.set_register(d.rd, st.memory.load(address, sp.width, signed=sp.signed))
    st.advance()

def _exec_store(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    sp = spec(d.opcode)
    address = u32(st.get_register(d.rs1) + d.imm)
    st.memory.store(address, sp.width, st.get_register(d.rs2))
    st.advance()

def _exec_branch(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    taken = _lookup(_BRANCH, d)(st.get_register(d.rs1), st.get_register(d.rs2))
    if taken:
        # imm es un offset en bytes; el PC cuenta instrucciones
        target = st.pc + d.imm // 4
        logger.debug(f"{d.opcode} tomado: pc {st.pc} -> {target}")
        st.jump(target)
    else:
        st.advance()

def _exec_jal(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    target = st.pc + d.imm // 4
    st.set_register(d.rd, _link_value(st, cfg))
    st.jump(target)

def _exec_jalr(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    base = st.get_register(d.rs1)
    if cfg.link_mode == "byte":
        target = (u32(base + d.imm) & ~1) // 4
    else:
        target = base + d.imm // 4
    # el destino se calcula antes de escribir rd (rd == rs1)
    st.set_register(d.rd, _link_value(st, cfg))
    st.jump(target)

def _exec_u(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    if d.opcode == "LUI":
        st.set_register(d.rd, d.imm)
    elif d.opcode == "AUIPC":
        st.set_register(d.rd, st.pc * 4 + d.imm)
    else:
        raise InternalError(f"Sin ejecución para {d.opcode} (formato U)", line=d.line)
    st.advance()

def _exec_hlt(d: DecodedInstruction, st: MachineState, cfg: MachineConfig) -> None:
    # HLT no avanza el PC
    st.halt()

HANDLERS: Dict[str, Callable[[DecodedInstruction, MachineState, MachineConfig], None]] = {
    "R": _exec_r,
    "I": _exec_i,
    "IL": _exec_load,
    "S": _exec_store,
    "SB": _exec_branch,
    "UJ": _exec_jal,
    "JALR": _exec_jalr,
    "U": _exec_u,
    "HLT": _exec_hlt,
}

# ---------------- Punto de entrada ----------------

def execute(d: DecodedInstruction, state: MachineState, *, config: Optional[MachineConfig] = None) -> None:
    """Ejecuta una instrucción decodificada mutando 'state' in situ.

    Lanza MemoryAccessViolation en accesos fuera de rango o desalineados
    (las mutaciones previas se conservan) e InternalError si el formato no
    tiene handler, lo que indica un defecto del decoder.
    """
    handler = HANDLERS.get(d.kind)
    if handler is None:
        raise InternalError(f"Formato sin handler: {d.kind}", line=d.line)
    try:
        handler(d, state, config or state.config)
    except MemoryAccessViolation as ex:
        if ex.line is None:
            ex.line = d.line
        raise
