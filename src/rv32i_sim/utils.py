'''
aritmética de enteros de 32 bits: envoltura, extensión de signo y rangos
'''

from __future__ import annotations

WORD_MASK = 0xFFFFFFFF

def u32(x: int) -> int:
    """Vista sin signo de x en 32 bits."""
    return x & WORD_MASK

def s32(x: int) -> int:
    """Vista con signo (complemento a dos) de x en 32 bits."""
    x &= WORD_MASK
    return x - (1 << 32) if x & 0x80000000 else x

def sign_extend(x: int, bits: int) -> int:
    """Interpreta los 'bits' bits bajos de x como un entero con signo.

    Un x ya negativo conserva su valor si cabe en ese ancho.
    """
    if bits <= 0:
        raise ValueError("bits debe ser positivo")
    if x & (1 << (bits - 1)):
        return x | (-1 << bits)
    return x & ((1 << bits) - 1)

def signed_range(n: int) -> tuple[int, int]:
    """Límites (mínimo, máximo) de un entero con signo de n bits."""
    if n <= 0:
        raise ValueError("n debe ser positivo")
    return -(1 << (n - 1)), (1 << (n - 1)) - 1

def is_unsigned_nbit(x: int, n: int) -> bool:
    return 0 <= x < (1 << n)

def to_hex32(x: int, *, prefix: bool = True) -> str:
    s = format(u32(x), "08x")
    return "0x" + s if prefix else s
