'''
estado arquitectónico: registros, memoria por bytes, PC, halted, historial
'''

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any, Deque, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .config import MachineConfig, DEFAULT_CONFIG
from .regs import NUM_REGS, is_valid_index
from .utils import s32
from .errors import MemoryAccessViolation, SnapshotError

logger = logging.getLogger(__name__)

_CHUNK = 4096

# ---------------- Memoria ----------------

class Memory:
    """Región plana de bytes 0..size-1, little-endian.

    Todo acceso se comprueba al momento: rango y alineación natural para
    anchos de 2 y 4 bytes.
    """

    def __init__(self, size: int = DEFAULT_CONFIG.memory_size):
        self.size = size
        self.data = bytearray(size)

    def _check(self, address: int, width: int) -> None:
        if address < 0 or address + width > self.size:
            raise MemoryAccessViolation(
                f"Acceso a memoria fuera de rango en 0x{address:08x} ({width} bytes)",
                address=address, width=width,
                hint=f"la memoria va de 0x0 a 0x{self.size - 1:x}")
        if width > 1 and address % width != 0:
            raise MemoryAccessViolation(
                f"Acceso de {width} bytes desalineado en 0x{address:08x}",
                address=address, width=width,
                hint=f"la dirección debe ser múltiplo de {width}")

    def load(self, address: int, width: int, *, signed: bool = True) -> int:
        """Lee 1, 2 o 4 bytes; con signed=True extiende el signo."""
        self._check(address, width)
        return int.from_bytes(self.data[address:address + width], "little", signed=signed)

    def store(self, address: int, width: int, value: int) -> None:
        """Escribe los 'width' bytes bajos de value."""
        self._check(address, width)
        raw = value & ((1 << (8 * width)) - 1)
        self.data[address:address + width] = raw.to_bytes(width, "little")

    def read_byte(self, address: int) -> int:
        return self.load(address, 1, signed=False)

    def write_byte(self, address: int, value: int) -> None:
        self.store(address, 1, value)

    def window(self, n: int) -> List[int]:
        """Primeros n bytes como lista densa."""
        return list(self.data[:n])

    def nonzero(self, start: int = 0) -> Iterator[Tuple[int, int]]:
        """(dirección, valor) de cada byte distinto de cero a partir de 'start'."""
        for base in range(start, self.size, _CHUNK):
            chunk = self.data[base:base + _CHUNK]
            if not chunk.strip(b"\x00"):
                continue
            for off, value in enumerate(chunk):
                if value:
                    yield base + off, value

# ---------------- Historial ----------------

@dataclass(frozen=True)
class HistoryEntry:
    cycle: int
    pc: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "HistoryEntry":
        return cls(cycle=int(d["cycle"]), pc=int(d["pc"]), text=str(d.get("text", "")))

# ---------------- Estado de la máquina ----------------

class MachineState:
    """Estado arquitectónico mutable de una máquina RV32I.

    - registers: 32 enteros con signo de 32 bits; x0 siempre lee 0
    - memory: Memory de config.memory_size bytes
    - pc: índice de instrucción (no dirección en bytes)
    - halted: estado terminal hasta reset()
    """

    def __init__(self, config: Optional[MachineConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.reset()

    def reset(self) -> None:
        self.registers: List[int] = [0] * NUM_REGS
        self.memory = Memory(self.config.memory_size)
        self.pc = 0
        self.halted = False
        self.cycle_count = 0
        self.history: Deque[HistoryEntry] = deque(maxlen=self.config.history_limit)

    # --- registros ---

    def get_register(self, n: int) -> int:
        if not is_valid_index(n):
            raise ValueError(f"Registro inválido: x{n}")
        return 0 if n == 0 else self.registers[n]

    def set_register(self, n: int, value: int) -> None:
        """Escribe con envoltura a 32 bits; las escrituras a x0 se descartan."""
        if not is_valid_index(n):
            raise ValueError(f"Registro inválido: x{n}")
        if n == 0:
            return
        self.registers[n] = s32(value)
        logger.debug(f"x{n} = {self.registers[n]}")

    # --- PC y parada ---

    def advance(self) -> None:
        self.pc += 1

    def jump(self, target: int) -> None:
        self.pc = target

    def halt(self) -> None:
        self.halted = True

    def record(self, pc: int, text: str) -> None:
        """Anota un paso ejecutado en el historial acotado."""
        self.history.append(HistoryEntry(self.cycle_count, pc, text))
        self.cycle_count += 1

    # --- serialización ---

    def to_snapshot(self, *, window: Optional[int] = None) -> Dict[str, Any]:
        """Instantánea serializable (JSON).

        La memoria va como pares dirección/valor: siempre los primeros
        'window' bytes, más cualquier byte distinto de cero fuera de ellos,
        para que el viaje de ida y vuelta sea exacto.
        """
        w = self.config.memory_window if window is None else window
        data = self.memory.data
        memory = [{"address": a, "value": data[a]} for a in range(min(w, self.memory.size))]
        memory.extend({"address": a, "value": v} for a, v in self.memory.nonzero(start=w))
        return {
            "registers": [self.get_register(i) for i in range(NUM_REGS)],
            "memory": memory,
            "pc": self.pc,
            "halted": self.halted,
            "cycle_count": self.cycle_count,
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_snapshot(cls, snap: Mapping[str, Any], config: Optional[MachineConfig] = None) -> "MachineState":
        """Reconstruye el estado desde una instantánea; lanza SnapshotError si está mal formada."""
        if not isinstance(snap, Mapping):
            raise SnapshotError("La instantánea debe ser un objeto")
        state = cls(config)

        regs = snap.get("registers")
        if regs is not None:
            if not isinstance(regs, (list, tuple)) or len(regs) != NUM_REGS:
                raise SnapshotError(f"'registers' debe tener {NUM_REGS} valores")
            for i, v in enumerate(regs):
                if not _is_int(v):
                    raise SnapshotError(f"Valor no entero en el registro x{i}: {v!r}")
                state.set_register(i, v)

        for address, value in memory_items(snap.get("memory")):
            if not 0 <= address < state.memory.size:
                raise SnapshotError(f"Dirección de memoria fuera de rango: {address}")
            if not 0 <= value <= 0xFF:
                raise SnapshotError(f"Valor de byte inválido en 0x{address:x}: {value}")
            state.memory.write_byte(address, value)

        pc = snap.get("pc", 0)
        if not _is_int(pc) or pc < 0:
            raise SnapshotError(f"'pc' debe ser un entero no negativo: {pc!r}")
        state.pc = pc
        halted = snap.get("halted", False)
        if not isinstance(halted, bool):
            raise SnapshotError(f"'halted' debe ser booleano: {halted!r}")
        state.halted = halted

        cycles = snap.get("cycle_count", 0)
        if not _is_int(cycles) or cycles < 0:
            raise SnapshotError(f"'cycle_count' inválido: {cycles!r}")
        state.cycle_count = cycles

        try:
            for h in snap.get("history") or ():
                state.history.append(HistoryEntry.from_dict(h))
        except (KeyError, TypeError, ValueError) as ex:
            raise SnapshotError(f"'history' mal formado: {ex}") from ex

        return state

# ---------------- Helpers de instantánea ----------------

def _is_int(v: object) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)

def memory_items(mem: Any) -> Iterable[Tuple[int, int]]:
    """Acepta lista densa, lista de {address, value}, lista de pares o mapeo."""
    if mem is None:
        return []
    try:
        if isinstance(mem, Mapping):
            return [(int(k), int(v)) for k, v in mem.items()]
        if not isinstance(mem, (list, tuple)):
            raise SnapshotError("'memory' debe ser una lista o un objeto")
        if all(_is_int(v) for v in mem):
            return list(enumerate(mem))
        out: List[Tuple[int, int]] = []
        for item in mem:
            if isinstance(item, Mapping):
                out.append((int(item["address"]), int(item["value"])))
            else:
                a, v = item
                out.append((int(a), int(v)))
        return out
    except (KeyError, TypeError, ValueError) as ex:
        raise SnapshotError(f"'memory' mal formado: {ex}") from ex
