from __future__ import annotations
import json
from typing import Any, Dict, List, Mapping, Sequence

from .machine import memory_items
from .regs import NUM_REGS, reg_name
from .utils import to_hex32

def window_bytes(snapshot: Mapping[str, Any], n: int) -> List[int]:
    """Primeros n bytes de la memoria de una instantánea, como lista densa."""
    out = [0] * n
    for a, v in memory_items(snapshot.get("memory")):
        if 0 <= a < n:
            out[a] = v
    return out

def to_register_lines(registers: Sequence[int], *, columns: int = 4) -> List[str]:
    cells = [
        f"{reg_name(i):>3} ({reg_name(i, abi=True):>4}) {to_hex32(registers[i])} {registers[i]:>11}"
        for i in range(NUM_REGS)
    ]
    return ["   ".join(cells[i:i + columns]) for i in range(0, NUM_REGS, columns)]

def to_memory_lines(data: Sequence[int], *, base: int = 0, width: int = 16) -> List[str]:
    lines = []
    for off in range(0, len(data), width):
        row = data[off:off + width]
        lines.append(f"{to_hex32(base + off)}: " + " ".join(f"{b:02x}" for b in row))
    return lines

def format_state(snapshot: Mapping[str, Any], *, window: int = 256) -> str:
    """Volcado de texto de una instantánea: PC, parada, registros y memoria."""
    head = f"pc={snapshot['pc']}  halted={'sí' if snapshot['halted'] else 'no'}"
    if "cycle_count" in snapshot:
        head += f"  ciclos={snapshot['cycle_count']}"
    parts = [head, ""]
    parts += to_register_lines(snapshot["registers"])
    parts.append("")
    parts += to_memory_lines(window_bytes(snapshot, window))
    return "\n".join(parts)

def write_snapshot(snapshot: Mapping[str, Any], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2)
        f.write("\n")

def read_snapshot(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
