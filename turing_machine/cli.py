from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO

from rich.console import Console
from rich.logging import RichHandler

from .config_loader import load_specification
from .errors import MalformedDescription, TuringMachineError
from .machine import InstantaneousDescription, MachineResult, TuringMachine

logger = logging.getLogger(__name__)

EXIT_ACCEPTED = 0
EXIT_REJECTED = 1
EXIT_BAD_DESCRIPTION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simulador de Máquinas de Turing deterministas de una cinta",
    )
    parser.add_argument(
        "description",
        type=Path,
        help="Ruta a la descripción de la máquina (formato de líneas o YAML)",
    )
    parser.add_argument(
        "--string",
        "-s",
        dest="strings",
        action="append",
        help="Cadena específica que se desea simular. Puede repetirse; si se omite se lee la entrada estándar",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Número máximo de pasos por cadena (por defecto no hay límite)",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Imprime la descripción instantánea antes de cada paso",
    )
    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Devuelve la salida en formato JSON para facilitar el post-procesamiento",
    )
    parser.add_argument(
        "--last-rule-wins",
        dest="overwrite",
        action="store_true",
        help="Si una transición se repite, conserva la última en lugar de rechazar la descripción",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Muestra mensajes de depuración",
    )
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _input_strings(args: argparse.Namespace, simulation_strings: Iterable[str], stdin: TextIO) -> Iterable[str]:
    if args.strings is not None:
        return args.strings
    if simulation_strings:
        return list(simulation_strings)
    return (line.rstrip("\r\n") for line in stdin)


def _result_payload(result: Optional[MachineResult], error: Optional[TuringMachineError]) -> Dict:
    if error is not None:
        return {"accepted": False, "error": str(error)}
    return {
        "accepted": result.accepted,
        "halted": result.halted,
        "reason": result.reason,
        "steps": result.steps,
        "state": result.state,
        "tape": result.tape,
        "ids": [id_.format() for id_ in result.ids],
    }


def main(argv: List[str] | None = None, stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    try:
        config = load_specification(args.description, overwrite=args.overwrite)
    except MalformedDescription as exc:
        logger.error("Descripción inválida en %s: %s", args.description, exc)
        return EXIT_BAD_DESCRIPTION
    except OSError as exc:
        logger.error("No se pudo leer %s: %s", args.description, exc)
        return EXIT_BAD_DESCRIPTION

    machine = TuringMachine(config)

    def print_id(description: InstantaneousDescription) -> None:
        print(description.format(), file=stdout)

    observer = print_id if args.trace and not args.json_output else None
    exit_code = EXIT_ACCEPTED
    payload = []

    for line_number, tape_text in enumerate(_input_strings(args, config.simulation_strings, stdin), start=1):
        result = None
        error = None
        try:
            result = machine.execute(
                tape_text,
                observer,
                max_steps=args.max_steps,
                capture_ids=args.json_output and args.trace,
            )
        except TuringMachineError as exc:
            logger.error("Entrada %d (%r): %s", line_number, tape_text, exc)
            error = exc

        if result is not None and not result.halted:
            logger.warning("Entrada %d: la máquina no se detuvo tras %d pasos", line_number, result.steps)
        exit_code = EXIT_ACCEPTED if result is not None and result.accepted else EXIT_REJECTED

        if args.json_output:
            payload.append({"input": tape_text, **_result_payload(result, error)})
        elif result is not None:
            print(result.tape, file=stdout)

    if args.json_output:
        print(json.dumps(payload, indent=2, ensure_ascii=False), file=stdout)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
