import pytest
from src.rv32i_sim.config import MachineConfig
from src.rv32i_sim.machine import Memory, MachineState, HistoryEntry
from src.rv32i_sim.errors import MemoryAccessViolation, SnapshotError

SMALL = MachineConfig(memory_size=1024, history_limit=3)

# ---------- Configuración ----------

@pytest.mark.parametrize("kw", [
    {"memory_size": 0}, {"memory_size": 1023}, {"memory_window": 2048, "memory_size": 1024},
    {"history_limit": -1}, {"max_steps": 0}, {"link_mode": "word"},
])
def test_invalid_config(kw):
    with pytest.raises(ValueError):
        MachineConfig(**kw)

def test_slot_link_mode_is_deprecated(caplog):
    MachineConfig(link_mode="slot")
    assert "obsoleto" in caplog.text
    assert caplog.records[-1].levelname == "WARNING"

# ---------- Registros ----------

def test_x0_always_reads_zero():
    st = MachineState(SMALL)
    st.set_register(0, 123)
    assert st.get_register(0) == 0
    assert st.to_snapshot()["registers"][0] == 0

@pytest.mark.parametrize("value, stored", [
    (0x7FFFFFFF + 1, -2**31), (0xFFFFFFFF, -1), (2**32 + 5, 5), (-2**31 - 1, 2**31 - 1),
])
def test_register_writes_wrap(value, stored):
    st = MachineState(SMALL)
    st.set_register(5, value)
    assert st.get_register(5) == stored

@pytest.mark.parametrize("n", [-1, 32])
def test_bad_register_index(n):
    st = MachineState(SMALL)
    with pytest.raises(ValueError, match="Registro inválido"):
        st.get_register(n)
    with pytest.raises(ValueError):
        st.set_register(n, 1)

# ---------- Memoria ----------

def test_memory_little_endian():
    m = Memory(64)
    m.store(8, 4, 0x11223344)
    assert [m.read_byte(8 + i) for i in range(4)] == [0x44, 0x33, 0x22, 0x11]
    assert m.load(8, 2, signed=False) == 0x3344
    assert m.load(8, 4) == 0x11223344

def test_memory_sign_extension():
    m = Memory(64)
    m.store(0, 4, -1)
    assert m.load(0, 4) == -1
    assert m.load(0, 1) == -1
    assert m.load(0, 1, signed=False) == 0xFF
    assert m.load(2, 2) == -1
    assert m.load(2, 2, signed=False) == 0xFFFF

def test_store_keeps_low_bytes_only():
    m = Memory(64)
    m.store(4, 1, 0x1FF)
    m.store(6, 2, 0x12345)
    assert m.window(8)[4:8] == [0xFF, 0, 0x45, 0x23]

@pytest.mark.parametrize("address, width", [(2, 4), (1, 2), (3, 4), (6, 4)])
def test_misaligned_access(address, width):
    m = Memory(64)
    with pytest.raises(MemoryAccessViolation, match="desalineado") as ei:
        m.store(address, width, 1)
    assert ei.value.address == address and ei.value.width == width
    assert ei.value.kind == "memory"

def test_byte_access_never_misaligned():
    m = Memory(64)
    for a in range(8):
        m.write_byte(a, a + 1)
    assert m.window(8) == [1, 2, 3, 4, 5, 6, 7, 8]

@pytest.mark.parametrize("address, width", [(64, 1), (62, 4), (-4, 4), (2**32 - 4, 4)])
def test_out_of_range_access(address, width):
    m = Memory(64)
    with pytest.raises(MemoryAccessViolation, match="fuera de rango"):
        m.load(address, width)

def test_nonzero_scan():
    m = Memory(10000)
    m.write_byte(3, 1)
    m.write_byte(9000, 2)
    assert list(m.nonzero()) == [(3, 1), (9000, 2)]
    assert list(m.nonzero(start=4)) == [(9000, 2)]

# ---------- Historial ----------

def test_history_is_bounded():
    st = MachineState(SMALL)
    for i in range(5):
        st.record(i, f"ADDI x1, x1, {i}")
    assert st.cycle_count == 5
    assert [h.pc for h in st.history] == [2, 3, 4]
    assert st.history[0] == HistoryEntry(cycle=2, pc=2, text="ADDI x1, x1, 2")

# ---------- Instantáneas ----------

def test_snapshot_shape():
    snap = MachineState(SMALL).to_snapshot()
    assert set(snap) == {"registers", "memory", "pc", "halted", "cycle_count", "history"}
    assert len(snap["registers"]) == 32
    assert len(snap["memory"]) == 256
    assert snap["memory"][0] == {"address": 0, "value": 0}
    assert (snap["pc"], snap["halted"], snap["cycle_count"], snap["history"]) == (0, False, 0, [])

def test_snapshot_round_trip_keeps_bytes_beyond_window():
    st = MachineState(SMALL)
    st.set_register(3, -7)
    st.memory.store(100, 4, 30)
    st.memory.write_byte(1000, 0xAB)
    st.pc = 4
    st.halted = True
    st.record(3, "HLT")

    snap = st.to_snapshot()
    assert snap["memory"][-1] == {"address": 1000, "value": 0xAB}
    assert len(snap["memory"]) == 257

    back = MachineState.from_snapshot(snap, SMALL)
    assert back.to_snapshot() == snap
    assert back.memory.data == st.memory.data

def test_restore_resets_unlisted_state():
    st = MachineState.from_snapshot({"registers": [0] * 32, "memory": []}, SMALL)
    assert st.pc == 0 and not st.halted and st.cycle_count == 0

@pytest.mark.parametrize("memory, expected", [
    ([1, 2, 3], {0: 1, 1: 2, 2: 3}),
    ([[10, 5], [11, 6]], {10: 5, 11: 6}),
    ({"20": 7, 21: 8}, {20: 7, 21: 8}),
    ([{"address": 600, "value": 9}], {600: 9}),
])
def test_memory_input_forms(memory, expected):
    st = MachineState.from_snapshot({"memory": memory}, SMALL)
    for a, v in expected.items():
        assert st.memory.read_byte(a) == v

def test_x0_in_snapshot_is_ignored():
    regs = [9] * 32
    st = MachineState.from_snapshot({"registers": regs}, SMALL)
    assert st.get_register(0) == 0 and st.get_register(31) == 9

@pytest.mark.parametrize("snap, msg", [
    ([], "objeto"),
    ({"registers": [0] * 31}, "32 valores"),
    ({"registers": [0] * 31 + ["1"]}, "no entero"),
    ({"memory": [{"address": 1024, "value": 1}]}, "fuera de rango"),
    ({"memory": [[0, 256]]}, "byte inválido"),
    ({"memory": "abc"}, "lista o un objeto"),
    ({"memory": [{"addr": 0}]}, "mal formado"),
    ({"pc": -1}, "'pc'"),
    ({"pc": True}, "'pc'"),
    ({"halted": "false"}, "halted"),
    ({"halted": 1}, "booleano"),
    ({"cycle_count": -3}, "cycle_count"),
    ({"history": [{"pc": 1}]}, "history"),
])
def test_bad_snapshots(snap, msg):
    with pytest.raises(SnapshotError, match=msg) as ei:
        MachineState.from_snapshot(snap, SMALL)
    assert ei.value.kind == "snapshot"
