from __future__ import annotations
import re
from typing import List, Optional, Tuple

COMMENT_SPLIT_RE = re.compile(r"(#|//)")

def strip_comment(line: str) -> str:
    """Remove comments starting with '#' or '//'"""
    m = COMMENT_SPLIT_RE.split(line, maxsplit=1)
    return m[0].strip()

LABEL_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*):\s*(.*)$")

def split_label(line: str) -> Tuple[Optional[str], str]:
    """Return (label, rest) if line has 'label:', else (None, line)."""
    m = LABEL_RE.match(line)
    if not m:
        return None, line
    return m.group(1), m.group(2).strip()

def split_mnemonic_operands(line: str) -> Tuple[str, str]:
    """Return (MNEMONIC, operand text); the mnemonic is upper-cased."""
    s = line.strip()
    if not s:
        return "", ""
    parts = s.split(None, 1)
    if len(parts) == 1:
        return parts[0].upper(), ""
    return parts[0].upper(), parts[1].strip()

OPERAND_SPLIT_RE = re.compile(r"[\s,()]+")

def split_operands(op_str: str) -> List[str]:
    """Split operand text on whitespace, commas and parentheses.

    'x1, 4(x2)' -> ['x1', '4', 'x2']
    """
    return [t for t in OPERAND_SPLIT_RE.split(op_str) if t]

def has_mem_syntax(op_str: str) -> bool:
    """True when the operands use the 'imm(reg)' / '(reg)' form."""
    return "(" in op_str and op_str.rstrip().endswith(")")
