import pytest
from src.rv32i_sim.lexer import (
    strip_comment, split_label, split_mnemonic_operands, split_operands, has_mem_syntax
)

@pytest.mark.parametrize("raw, core", [
    ("ADDI x1, x0, 10   # carga 10", "ADDI x1, x0, 10"),
    ("SW x3, 100(x0) // guarda", "SW x3, 100(x0)"),
    ("#solo comentario", ""),
    ("//", ""),
    ("\tHLT\t", "HLT"),
    ("", ""),
])
def test_comments_are_removed(raw, core):
    assert strip_comment(raw) == core

@pytest.mark.parametrize("core, label, rest", [
    ("loop: BNE t0, x0, loop", "loop", "BNE t0, x0, loop"),
    ("fin:", "fin", ""),
    ("_tmp_2:   HLT", "_tmp_2", "HLT"),
    ("2fin: HLT", None, "2fin: HLT"),
    ("mal etiqueta: HLT", None, "mal etiqueta: HLT"),
    ("ADD x1, x2, x3", None, "ADD x1, x2, x3"),
])
def test_labels(core, label, rest):
    assert split_label(core) == (label, rest)

@pytest.mark.parametrize("text, mnemonic, operands", [
    ("addi  sp, sp, -16", "ADDI", "sp, sp, -16"),
    ("Hlt", "HLT", ""),
    ("", "", ""),
])
def test_mnemonic_is_upper_cased(text, mnemonic, operands):
    assert split_mnemonic_operands(text) == (mnemonic, operands)

@pytest.mark.parametrize("text, tokens", [
    ("x1,x2,x3", ["x1", "x2", "x3"]),
    ("ra, -8(sp)", ["ra", "-8", "sp"]),
    ("x1 -8 ( sp )", ["x1", "-8", "sp"]),
    ("a0, (a1)", ["a0", "a1"]),
    ("t0\t,\tloop", ["t0", "loop"]),
    ("", []),
])
def test_operand_tokens(text, tokens):
    assert split_operands(text) == tokens

@pytest.mark.parametrize("text, mem", [
    ("x1, 4(x2)", True),
    ("x1, (x2) ", True),
    ("x1, x2, 4", False),
    ("x1, (x2), 4", False),
    ("", False),
])
def test_base_offset_form_detection(text, mem):
    assert has_mem_syntax(text) is mem
