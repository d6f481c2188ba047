from __future__ import annotations
import argparse
import json
import logging
import sys
from typing import Any, Dict, Mapping, Optional

from .ast import Program
from .config import MachineConfig, DEFAULT_CONFIG, MEMORY_SIZE, MAX_STEPS, HISTORY_LIMIT
from .decoder import DecodedInstruction, decode, describe
from .executor import execute
from .machine import MachineState
from .parser import parse
from .errors import SimulatorError, AssemblySyntaxError, SnapshotError, StepLimitExceeded
from .writers import format_state, write_snapshot, read_snapshot

logger = logging.getLogger(__name__)

# ---------------- Bucle de ejecución ----------------

def step_machine(program: Program, state: MachineState,
                 config: Optional[MachineConfig] = None) -> Optional[DecodedInstruction]:
    """Ejecuta exactamente una instrucción (la que indica el PC).

    No hace nada si la máquina está parada; si el PC está fuera del programa
    marca la parada. Devuelve la instrucción ejecutada o None.
    """
    if state.halted:
        return None
    if not program.contains_pc(state.pc):
        logger.debug(f"pc={state.pc} fuera del programa ({len(program)} instrucciones): parada")
        state.halt()
        return None

    rec = program[state.pc]
    d = decode(rec)
    pc = state.pc
    logger.debug(f"pc={pc} línea {rec.line}: {describe(d)}")
    execute(d, state, config=config)
    state.record(pc, rec.text)

    if not state.halted and not program.contains_pc(state.pc):
        state.halt()
    return d

def run_machine(program: Program, state: MachineState,
                config: Optional[MachineConfig] = None) -> int:
    """Ejecuta hasta la parada. Devuelve el número de instrucciones ejecutadas."""
    cfg = config or state.config
    steps = 0
    while not state.halted:
        if steps >= cfg.max_steps:
            line = program[state.pc].line if program.contains_pc(state.pc) else None
            raise StepLimitExceeded(cfg.max_steps, line=line)
        if step_machine(program, state, cfg) is not None:
            steps += 1
    logger.info(f"Ejecución terminada: {steps} instrucciones, pc={state.pc}")
    return steps

# ---------------- Sesión (Run / Step / Reset) ----------------

class Simulator:
    """Sesión de un llamador: posee su propio MachineState y su programa.

    No existe estado global de proceso; dos sesiones nunca comparten nada.
    Las respuestas tienen la forma {"success": bool, "state": {...}} y, en
    caso de fallo, además "error", "kind" y "line".
    """

    def __init__(self, config: Optional[MachineConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.state = MachineState(self.config)
        self.program: Optional[Program] = None
        self._source: Optional[str] = None

    def load(self, source: str) -> Program:
        program = parse(source)
        self.program, self._source = program, source
        logger.info(f"Programa cargado: {len(program)} instrucciones")
        return program

    def run(self, source: str) -> Dict[str, Any]:
        """Estado limpio, parsea y ejecuta hasta la parada."""
        self.state = MachineState(self.config)
        self.program = self._source = None
        try:
            program = self.load(source)
            run_machine(program, self.state, self.config)
        except SimulatorError as ex:
            return self._failure(ex)
        return self._success()

    def step(self, source: str, snapshot: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Ejecuta una instrucción partiendo de 'snapshot' o del estado de la sesión.

        El programa sale de snapshot["instructions"] si viene; si no, del
        programa ya cargado para el mismo código; si no, se parsea 'source'.
        """
        try:
            if snapshot is not None:
                self.state = MachineState.from_snapshot(snapshot, self.config)
            program = self._program_for(source, snapshot)
            step_machine(program, self.state, self.config)
        except SimulatorError as ex:
            return self._failure(ex)
        return self._success(include_program=True)

    def reset(self) -> Dict[str, Any]:
        self.state = MachineState(self.config)
        self.program = self._source = None
        logger.info("Simulador reiniciado")
        return self._success()

    # --- internos ---

    def _program_for(self, source: str, snapshot: Optional[Mapping[str, Any]]) -> Program:
        cached = snapshot.get("instructions") if snapshot is not None else None
        if cached:
            try:
                program = Program.from_list(cached)
            except (KeyError, TypeError, ValueError, AttributeError) as ex:
                raise SnapshotError(f"'instructions' mal formado: {ex}") from ex
            self.program, self._source = program, source
            return program
        if self.program is not None and self._source == source:
            return self.program
        return self.load(source)

    def _success(self, *, include_program: bool = False) -> Dict[str, Any]:
        snap = self.state.to_snapshot()
        if include_program and self.program is not None:
            snap["instructions"] = self.program.to_list()
        return {"success": True, "state": snap}

    def _failure(self, ex: SimulatorError) -> Dict[str, Any]:
        logger.error(str(ex))
        out: Dict[str, Any] = {
            "success": False,
            "error": str(ex),
            "kind": ex.kind,
            "line": ex.line,
            # sin estado si el fallo ocurrió antes de ejecutar nada
            "state": None if isinstance(ex, (AssemblySyntaxError, SnapshotError)) else self.state.to_snapshot(),
        }
        if isinstance(ex, AssemblySyntaxError):
            out["diagnostics"] = [str(d) for d in ex.diagnostics]
        return out

# ---------------- Línea de comandos ----------------

def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"no es un entero: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"debe ser al menos 1: {value}")
    return value

def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="nivel de logging")
    common.add_argument("--memory-size", type=int, default=MEMORY_SIZE, help="bytes de memoria")
    common.add_argument("--history", type=int, default=HISTORY_LIMIT, help="pasos recientes a conservar")
    common.add_argument("--link-mode", choices=["byte", "slot"], default="byte",
                        help="unidades de las direcciones de retorno ('slot' está obsoleto)")
    common.add_argument("--json", action="store_true", help="imprimir la respuesta completa en JSON")
    common.add_argument("--out", help="guardar la instantánea resultante en este archivo")

    ap = argparse.ArgumentParser(prog="rv32i-sim", description="RV32I (+HLT) assembly simulator")
    sub = ap.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", parents=[common], help="ejecutar un programa completo")
    p_run.add_argument("source", help="archivo .asm/.s de entrada")
    p_run.add_argument("--max-steps", type=int, default=MAX_STEPS, help="tope de instrucciones")

    p_step = sub.add_parser("step", parents=[common], help="ejecutar una instrucción")
    p_step.add_argument("source", help="archivo .asm/.s de entrada")
    p_step.add_argument("--state", help="instantánea JSON de la que partir")
    p_step.add_argument("--count", type=_positive_int, default=1, help="instrucciones a ejecutar")

    sub.add_parser("reset", parents=[common], help="imprimir el estado inicial")
    return ap

def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        config = MachineConfig(memory_size=args.memory_size, history_limit=args.history,
                               max_steps=getattr(args, "max_steps", MAX_STEPS),
                               link_mode=args.link_mode)
    except ValueError as ex:
        print(f"ERROR: configuración inválida: {ex}", file=sys.stderr)
        return 2
    sim = Simulator(config)

    source = ""
    snapshot = None
    try:
        if args.command in ("run", "step"):
            with open(args.source, "r", encoding="utf-8") as f:
                source = f.read()
        if getattr(args, "state", None):
            snapshot = read_snapshot(args.state)
    except (OSError, ValueError) as ex:
        print(f"ERROR: no pude leer la entrada: {ex}", file=sys.stderr)
        return 2

    if args.command == "run":
        resp = sim.run(source)
    elif args.command == "step":
        resp = sim.step(source, snapshot)
        for _ in range(args.count - 1):
            if not resp["success"] or resp["state"]["halted"]:
                break
            resp = sim.step(source, resp["state"])
    else:
        resp = sim.reset()

    if not resp["success"]:
        for line in resp.get("diagnostics") or [resp["error"]]:
            print(line, file=sys.stderr)

    if args.json:
        print(json.dumps(resp, indent=2))
    elif resp.get("state") is not None:
        print(format_state(resp["state"], window=config.memory_window))

    if args.out and resp.get("state") is not None:
        try:
            write_snapshot(resp["state"], args.out)
        except OSError as ex:
            print(f"ERROR al escribir {args.out}: {ex}", file=sys.stderr)
            return 3

    return 0 if resp["success"] else 1

if __name__ == "__main__":
    sys.exit(main())
