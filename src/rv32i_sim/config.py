'''
parámetros de la máquina (memoria, ventana serializada, historial, límites)
'''

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

LinkMode = Literal["byte", "slot"]

MEMORY_SIZE = 1024 * 1024   # 1 MiB
MEMORY_WINDOW = 256         # bytes expuestos al llamador
HISTORY_LIMIT = 10
MAX_STEPS = 100_000

@dataclass(frozen=True)
class MachineConfig:
    """Configuración de una máquina simulada.

    - memory_size: bytes de memoria direccionable (0..N-1)
    - memory_window: bytes iniciales que siempre se serializan
    - history_limit: pasos recientes conservados para diagnóstico (0 = sin historial)
    - max_steps: tope de instrucciones en una ejecución completa
    - link_mode: 'byte' (direcciones de retorno en bytes) o 'slot' (obsoleto,
      en unidades de instrucción)
    """
    memory_size: int = MEMORY_SIZE
    memory_window: int = MEMORY_WINDOW
    history_limit: int = HISTORY_LIMIT
    max_steps: int = MAX_STEPS
    link_mode: LinkMode = "byte"

    def __post_init__(self):
        if self.memory_size <= 0 or self.memory_size % 4 != 0:
            raise ValueError("memory_size debe ser positivo y múltiplo de 4")
        if not 0 <= self.memory_window <= self.memory_size:
            raise ValueError("memory_window debe estar en [0, memory_size]")
        if self.history_limit < 0:
            raise ValueError("history_limit no puede ser negativo")
        if self.max_steps <= 0:
            raise ValueError("max_steps debe ser positivo")
        if self.link_mode not in ("byte", "slot"):
            raise ValueError(f"link_mode inválido: {self.link_mode!r}")
        if self.link_mode == "slot":
            logger.warning("link_mode='slot' está obsoleto: las direcciones de retorno "
                           "en unidades de instrucción no combinan con AUIPC")

DEFAULT_CONFIG = MachineConfig()
