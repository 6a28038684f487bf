"""Punto de entrada de la calculadora de línea de comandos."""

from __future__ import annotations

import argparse
import logging
import math
import sys
from typing import List, Optional, Tuple

from calculator_engine import DISPLAY_DIGITS, CalculatorEngine, format_result
from commands import COLORS, CommandHistory, CommandProcessor
from session_log import DEFAULT_LOG_FILENAME, SessionLog

try:
    import readline
except ImportError:  # pragma: no cover - Windows sin pyreadline
    readline = None


ANGLE_MODE = "rad"
MAX_COMMAND_LINE = 512
PROMPT = "■ "


class DiagnosticFormatter(logging.Formatter):
    """Antepone 'Error:' o 'Warning:' y colorea según el nivel."""

    _LABELS = {
        logging.WARNING: ("Warning:", "yellow"),
        logging.ERROR: ("Error:", "red"),
        logging.CRITICAL: ("Error:", "red"),
    }

    def __init__(self, color: bool):
        super().__init__("%(message)s")
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        label, color = self._LABELS.get(record.levelno, ("", None))
        if not label:
            return message
        if self._color:
            label = f"{COLORS[color]}{label}{COLORS['reset']}"
        return f"{label} {message}"


def configure_diagnostics(color: bool, stream=None) -> logging.Handler:
    """Envía los diagnósticos del motor (logger ``nmri``) a stderr."""
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(DiagnosticFormatter(color))
    root = logging.getLogger("nmri")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    root.propagate = False
    return handler


def _paint(text: str, color: bool, *styles: str) -> str:
    if not color:
        return text
    return "".join(COLORS[s] for s in styles) + text + COLORS["reset"]


def run_expression(words: List[str], engine: CalculatorEngine, session_log: SessionLog,
                   color: bool, digits: int) -> int:
    expression = " ".join(words)
    if len(expression) >= MAX_COMMAND_LINE:
        logging.getLogger("nmri").error("Expresión de línea de comandos demasiado larga")
        return 1

    session_log.message(f"Command line execution: {expression}")
    result = engine.evaluate_expression(expression)
    if math.isnan(result):
        session_log.message("Command line result: Error")
        return 1

    print(_paint(format_result(result, digits), color, "green"))
    session_log.message(f"Command line result: {format_result(result, digits)}")
    return 0


def run_repl(processor: CommandProcessor, color: bool) -> int:
    print()
    print(_paint("NMRI Command Line Calculator", color, "bold"))
    print(f"Escriba '{_paint('help', color, 'green')}' para ver las instrucciones, "
          f"'{_paint('exit', color, 'green')}' para salir.\n")

    prompt = _paint(PROMPT, color, "bold", "cyan")
    while True:
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not processor.handle_line(line):
            break

    print()
    print(_paint("¡Hasta luego!", color, "bold", "green"))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nmri",
        description="Calculadora de línea de comandos con variables, porcentajes y funciones",
    )
    # las opciones van antes de la expresión; desde la primera palabra todo es expresión
    parser.add_argument("expression", nargs=argparse.REMAINDER,
                        help="Expresión a evaluar; sin argumentos abre la consola interactiva")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILENAME,
                        help="Archivo del registro de sesión")
    parser.add_argument("--log", action="store_true",
                        help="Activar el registro de sesión desde el inicio")
    parser.add_argument("--deg", action="store_true",
                        help="Trigonometría en grados en lugar de radianes")
    parser.add_argument("--digits", type=int, default=DISPLAY_DIGITS,
                        help="Dígitos significativos al mostrar resultados")
    parser.add_argument("--no-color", action="store_true",
                        help="Desactivar los colores ANSI")
    return parser


def parse_arguments(parser: argparse.ArgumentParser,
                    argv: Optional[List[str]] = None) -> Tuple[argparse.Namespace, List[str]]:
    """Separa las opciones de las palabras de la expresión.

    argparse toma por opción desconocida cualquier palabra inicial que empiece
    con '-' y no sea un número ('-pi', '-(3)', '-sqrt(4)'). Esas palabras
    son el comienzo de la expresión; solo '--algo' se rechaza como opción.
    """
    args, extra = parser.parse_known_args(argv)
    unknown = [word for word in extra if word.startswith("--")]
    if unknown:
        parser.error(f"opción no reconocida: {' '.join(unknown)}")
    return args, extra + args.expression


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args, words = parse_arguments(parser, argv)
    color = not args.no_color and sys.stdout.isatty()
    configure_diagnostics(color and sys.stderr.isatty())

    session_log = SessionLog(args.log_file)
    if args.log:
        try:
            session_log.enable()
        except OSError as exc:
            logging.getLogger("nmri").error(
                "No se pudo abrir el archivo de registro '%s': %s", args.log_file, exc
            )

    engine = CalculatorEngine(
        session_log=session_log,
        angle_mode="deg" if args.deg else ANGLE_MODE,
    )

    try:
        if words:
            return run_expression(words, engine, session_log, color, args.digits)
        processor = CommandProcessor(
            engine,
            session_log=session_log,
            history=CommandHistory(readline_module=readline),
            color=color,
            digits=args.digits,
        )
        return run_repl(processor, color)
    finally:
        session_log.disable()


if __name__ == "__main__":
    raise SystemExit(main())
