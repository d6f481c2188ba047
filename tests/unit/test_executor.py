import pytest
from src.rv32i_sim.config import MachineConfig
from src.rv32i_sim.decoder import decode
from src.rv32i_sim.errors import MemoryAccessViolation
from src.rv32i_sim.executor import execute, HANDLERS
from src.rv32i_sim.isa import FORMATS
from src.rv32i_sim.machine import MachineState
from src.rv32i_sim.parser import parse

CFG = MachineConfig(memory_size=4096)

def exec1(line, *, pc=0, regs=None, state=None, config=None):
    """Ejecuta una sola instrucción con el PC indicado y devuelve el estado."""
    st = state or MachineState(config or CFG)
    for n, v in (regs or {}).items():
        st.set_register(n, v)
    st.pc = pc
    execute(decode(parse(line)[0]), st, config=config)
    return st

# ---------- ALU ----------

@pytest.mark.parametrize("line, regs, expected", [
    ("ADD x3, x1, x2", {1: 0x7FFFFFFF, 2: 1}, -2**31),
    ("SUB x3, x1, x2", {1: -2**31, 2: 1}, 2**31 - 1),
    ("SLL x3, x1, x2", {1: 1, 2: 33}, 2),
    ("SRL x3, x1, x2", {1: -16, 2: 2}, 0x3FFFFFFC),
    ("SRA x3, x1, x2", {1: -16, 2: 2}, -4),
    ("SLT x3, x1, x2", {1: -1, 2: 1}, 1),
    ("SLTU x3, x1, x2", {1: -1, 2: 1}, 0),
    ("XOR x3, x1, x2", {1: 0b1100, 2: 0b1010}, 0b0110),
    ("OR x3, x1, x2", {1: 0b1100, 2: 0b1010}, 0b1110),
    ("AND x3, x1, x2", {1: 0b1100, 2: 0b1010}, 0b1000),
])
def test_register_ops(line, regs, expected):
    st = exec1(line, regs=regs)
    assert st.get_register(3) == expected
    assert st.pc == 1

@pytest.mark.parametrize("line, regs, expected", [
    ("ADDI x3, x1, -1", {1: 0}, -1),
    ("SLTI x3, x1, 0", {1: -5}, 1),
    ("SLTIU x3, x1, 1", {1: 0}, 1),
    ("SLTIU x3, x1, -1", {1: 5}, 1),
    ("XORI x3, x1, -1", {1: 0}, -1),
    ("ORI x3, x1, 0x0F0", {1: 0x00F}, 0x0FF),
    ("ANDI x3, x1, 0x0F0", {1: -1}, 0x0F0),
    ("SLLI x3, x1, 31", {1: 1}, -2**31),
    ("SRLI x3, x1, 28", {1: -1}, 0xF),
    ("SRAI x3, x1, 28", {1: -2**31}, -8),
])
def test_immediate_ops(line, regs, expected):
    assert exec1(line, regs=regs).get_register(3) == expected

def test_writes_to_x0_are_discarded():
    st = exec1("ADDI x0, x0, 5")
    assert st.get_register(0) == 0 and st.pc == 1

def test_upper_immediates():
    assert exec1("LUI x1, 1").get_register(1) == 4096
    # AUIPC usa la dirección en bytes de la instrucción (pc * 4)
    assert exec1("AUIPC x1, 1", pc=3).get_register(1) == 12 + 4096

# ---------- Cargas y almacenes ----------

def test_load_sign_and_zero_extension():
    st = MachineState(CFG)
    st.memory.store(0, 4, 0x8000FF80)
    assert exec1("LB x1, 0(x0)", state=st).get_register(1) == -128
    assert exec1("LBU x1, 0(x0)", state=st).get_register(1) == 0x80
    assert exec1("LH x1, 2(x0)", state=st).get_register(1) == -32768
    assert exec1("LHU x1, 2(x0)", state=st).get_register(1) == 0x8000
    assert exec1("LW x1, 0(x0)", state=st).get_register(1) == -2147418240

def test_stores_use_base_plus_offset():
    st = exec1("SW x3, -4(x2)", regs={2: 104, 3: 30})
    assert st.memory.window(104)[100:104] == [30, 0, 0, 0]
    st = exec1("SB x3, 1(x2)", regs={2: 8, 3: 0x1234})
    assert st.memory.read_byte(9) == 0x34
    st = exec1("SH x3, 2(x0)", regs={3: -1})
    assert st.memory.window(4) == [0, 0, 0xFF, 0xFF]

def test_misaligned_access_keeps_state():
    st = MachineState(CFG)
    st.set_register(1, 2)
    with pytest.raises(MemoryAccessViolation) as ei:
        exec1("LW x5, 0(x1)", state=st, pc=7)
    assert ei.value.line == 1
    assert "desalineado" in str(ei.value)
    assert st.pc == 7 and st.get_register(1) == 2 and st.get_register(5) == 0

def test_out_of_range_store():
    with pytest.raises(MemoryAccessViolation, match="fuera de rango"):
        exec1("SW x1, 0(x2)", regs={2: 4096})

# ---------- Saltos ----------

@pytest.mark.parametrize("line, regs, taken", [
    ("BEQ x1, x2, 8", {1: 3, 2: 3}, True),
    ("BEQ x1, x2, 8", {1: 3, 2: 4}, False),
    ("BNE x1, x2, 8", {1: 3, 2: 4}, True),
    ("BLT x1, x2, 8", {1: -1, 2: 1}, True),
    ("BGE x1, x2, 8", {1: -1, 2: 1}, False),
    ("BLTU x1, x2, 8", {1: -1, 2: 1}, False),
    ("BGEU x1, x2, 8", {1: -1, 2: 1}, True),
])
def test_branches(line, regs, taken):
    st = exec1(line, regs=regs, pc=1)
    assert st.pc == (3 if taken else 2)

def test_backward_branch():
    assert exec1("BNE x1, x0, -8", regs={1: 1}, pc=5).pc == 3

def test_jal_links_byte_address():
    st = exec1("JAL x1, 8", pc=2)
    assert st.pc == 4
    assert st.get_register(1) == 12

def test_jalr_byte_mode():
    st = exec1("JALR x1, x5, 4", regs={5: 20}, pc=1)
    assert st.pc == 6 and st.get_register(1) == 8
    # el bit 0 del destino se descarta
    assert exec1("JALR x0, x5, 0", regs={5: 9}).pc == 2

def test_jalr_rd_equals_rs1():
    st = exec1("JALR x5, x5, 0", regs={5: 8})
    assert st.pc == 2 and st.get_register(5) == 4

def test_call_and_return_round_trip():
    st = exec1("JAL x1, 12", pc=1)
    assert st.pc == 4
    assert exec1("RET", state=st, pc=st.pc).pc == 2

def test_slot_link_mode():
    cfg = MachineConfig(memory_size=4096, link_mode="slot")
    st = exec1("JAL x1, 8", pc=2, config=cfg)
    assert st.pc == 4 and st.get_register(1) == 3
    st = exec1("JALR x1, x5, 4", regs={5: 6}, config=cfg)
    assert st.pc == 7 and st.get_register(1) == 1

# ---------- HLT ----------

def test_hlt_halts_without_moving_pc():
    st = exec1("HLT", pc=4)
    assert st.halted and st.pc == 4

def test_every_format_has_a_handler():
    assert set(HANDLERS) == set(FORMATS)
