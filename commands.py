"""Comandos de la consola y despacho de cada línea introducida."""

from __future__ import annotations

import logging
import math
import re
import sys
from collections import deque
from enum import Enum
from typing import TextIO

from calculator_engine import CalculatorEngine, format_result
from session_log import SessionLog
from symbol_table import CONSTANTS, MAX_IDENTIFIER_LEN
from tokenizer import FUNCTION_NAMES

logger = logging.getLogger("nmri.commands")

HISTORY_SIZE = 20

# ── Paleta de colores ANSI ───────────────────────────────────────
COLORS = {
    "reset":   "\033[0m",
    "bold":    "\033[1m",
    "dim":     "\033[2m",
    "red":     "\033[31m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "blue":    "\033[34m",
    "magenta": "\033[35m",
    "cyan":    "\033[36m",
}

RESERVED_NAMES = (
    set(CONSTANTS) | set(FUNCTION_NAMES) | {"ans", "help", "exit", "quit"}
)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
# "log on" y "log 5" son comandos; "log (2)" y "log(2)" siguen siendo el logaritmo
_LOG_COMMAND = re.compile(r"log\s+[^\s(]")


class CommandResult(Enum):
    HANDLED = "handled"
    EXIT = "exit"
    NOT_A_COMMAND = "not_a_command"


class CommandHistory:
    """Historial acotado de líneas; se refleja en ``readline`` si existe."""

    def __init__(self, size: int = HISTORY_SIZE, readline_module=None):
        self._entries: deque[str] = deque(maxlen=size)
        self._readline = readline_module

    def add(self, line: str):
        if not line or line == "history":
            return
        if self._entries and self._entries[-1] == line:
            return
        self._entries.append(line)
        if self._readline is not None:
            self._readline.add_history(line)

    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class CommandProcessor:
    """Intercepta los comandos de la consola y pasa el resto al motor."""

    def __init__(
        self,
        engine: CalculatorEngine,
        session_log: SessionLog | None = None,
        history: CommandHistory | None = None,
        out: TextIO | None = None,
        color: bool = True,
        digits: int = 15,
    ):
        self.engine = engine
        self.session_log = session_log if session_log is not None else SessionLog()
        self.history = history if history is not None else CommandHistory()
        self._out = out if out is not None else sys.stdout
        self._color = color
        self._digits = digits

    # ── Salida ───────────────────────────────────────────────────

    def _paint(self, text: str, *styles: str) -> str:
        if not self._color or not styles:
            return text
        prefix = "".join(COLORS[s] for s in styles)
        return f"{prefix}{text}{COLORS['reset']}"

    def _print(self, text: str = "", *styles: str):
        print(self._paint(text, *styles), file=self._out)

    def _fmt(self, value: float) -> str:
        return format_result(value, self._digits)

    def _log(self, text: str):
        self.session_log.message(text)

    # ── Línea completa ───────────────────────────────────────────

    def handle_line(self, line: str) -> bool:
        """Procesa una línea de la consola; devuelve False para salir."""
        text = line.strip()
        if not text:
            return True

        self.history.add(text)
        self._log(f"User input: {text}")

        outcome = self.process_command(text)
        if outcome is CommandResult.EXIT:
            self._log("User requested exit.")
            return False
        if outcome is CommandResult.HANDLED:
            return True

        assignment = split_assignment(text)
        if assignment is not None:
            self._run_assignment(text, *assignment)
            return True

        result = self.engine.evaluate_expression(text)
        if not math.isnan(result):
            self._print(self._fmt(result), "green")
        return True

    def _run_assignment(self, text: str, name: str, expression: str):
        if len(name) >= MAX_IDENTIFIER_LEN:
            logger.error("Longitud de nombre de variable no válida en la asignación")
            self._log(f"Assignment Error: Invalid variable name length near '{text}'")
            return
        if not _IDENTIFIER.fullmatch(name):
            logger.error("Nombre de variable '%s' no válido para la asignación", name)
            self._log(f"Assignment Error: Invalid variable name '{name}'")
            return
        if name in RESERVED_NAMES:
            logger.error("No se puede asignar al nombre reservado '%s'", name)
            self._log(f"Assignment Error: Attempt to assign to reserved name '{name}'")
            return

        result = self.engine.handle_assignment(name, expression)
        if not math.isnan(result):
            self._print(
                f"{self._paint(name, 'yellow')} = {self._paint(self._fmt(result), 'green')}"
            )
        else:
            self._log(f"Assignment failed for: {text}")

    # ── Comandos ─────────────────────────────────────────────────

    def process_command(self, text: str) -> CommandResult:
        text = text.strip()
        symbols = self.engine.symbols

        if text == "help":
            self.show_help()
            return CommandResult.HANDLED
        if text in ("exit", "quit"):
            return CommandResult.EXIT
        if text in ("clear", "cls"):
            print("\033[2J\033[H", end="", file=self._out)
            return CommandResult.HANDLED
        if text == "history":
            self.show_history()
            return CommandResult.HANDLED
        if text in ("variables", "vars"):
            self.show_variables()
            return CommandResult.HANDLED
        if text in ("memory", "mem"):
            self._print(f"Memoria: {self._fmt(symbols.memory)}")
            return CommandResult.HANDLED
        if text == "m+":
            last = self.engine.last_result
            symbols.memory += last
            self._print(f"Memoria = {self._fmt(symbols.memory)} (sumado {self._fmt(last)})")
            self._log(f"Memory += {self._fmt(last)} --> {self._fmt(symbols.memory)}")
            return CommandResult.HANDLED
        if text == "m-":
            last = self.engine.last_result
            symbols.memory -= last
            self._print(f"Memoria = {self._fmt(symbols.memory)} (restado {self._fmt(last)})")
            self._log(f"Memory -= {self._fmt(last)} --> {self._fmt(symbols.memory)}")
            return CommandResult.HANDLED
        if text == "mr":
            self.engine.set_last_result(symbols.memory)
            self._print(f"Recuperado de memoria: {self._fmt(symbols.memory)}")
            self._log(f"Memory Recall (mr): {self._fmt(symbols.memory)}")
            return CommandResult.HANDLED
        if text == "mc":
            symbols.memory = 0.0
            self._print("Memoria borrada.")
            self._log("Memory Cleared (mc)")
            return CommandResult.HANDLED
        if text == "store" or text.startswith("store "):
            self.store(text[len("store"):].strip())
            return CommandResult.HANDLED
        if text == "log" or _LOG_COMMAND.match(text):
            self.log_command(text[len("log"):].strip())
            return CommandResult.HANDLED
        return CommandResult.NOT_A_COMMAND

    def store(self, name: str):
        """Guarda el último resultado en la variable ``name``."""
        if not name:
            logger.error("Falta el nombre de variable para 'store'")
            self._log("Command Error: Missing variable name for store")
            return
        name = name.split()[0]
        if not _IDENTIFIER.fullmatch(name):
            logger.error(
                "Nombre de variable '%s' no válido para 'store': debe empezar con "
                "letra o guion bajo y contener solo letras, dígitos o '_'",
                name,
            )
            self._log(f"Command Error: Invalid store variable name '{name}'")
            return
        if len(name) >= MAX_IDENTIFIER_LEN:
            logger.error("Nombre de variable '%s...' demasiado largo para 'store'",
                         name[:MAX_IDENTIFIER_LEN - 1])
            self._log(f"Command Error: Store variable name too long '{name}'")
            return

        last = self.engine.last_result
        try:
            self.engine.symbols.set(name, last)
        except ValueError as exc:
            logger.error("%s", exc)
            self._log(f"Command Error: Failed to store {self._fmt(last)} in variable '{name}'")
            return
        self._print(f"Guardado {self._fmt(last)} en la variable '{name}'", "green")
        self._log(f"Command: Stored {self._fmt(last)} in variable '{name}'")

    def log_command(self, subcommand: str):
        log = self.session_log

        if subcommand == "on":
            if log.enabled:
                self._print(f"El registro ya está activo. Archivo: {log.path}")
                return
            try:
                log.enable()
            except OSError as exc:
                logger.error("No se pudo abrir el archivo de registro '%s': %s", log.path, exc)
                return
            self._print(f"Registro activado. Archivo: {log.path}", "green")
            self._log("Command: Logging enabled")
            return

        if subcommand == "off":
            if not log.enabled:
                self._print("El registro ya está desactivado.")
                return
            self._log("Command: Logging disabled")
            log.disable()
            self._print("Registro desactivado.", "yellow")
            return

        if subcommand == "show":
            self._log("Command: Show log requested")
            self.show_log(HISTORY_SIZE)
            return

        if subcommand == "file":
            self._print(f"Archivo de registro actual: {self._paint(log.path, 'yellow')}")
            self._log(f"Command: Log file path requested ({log.path})")
            return

        if subcommand.startswith("file "):
            new_path = subcommand[len("file "):].strip()
            try:
                log.set_path(new_path)
            except OSError as exc:
                logger.error("No se pudo abrir el archivo de registro '%s': %s", new_path, exc)
                return
            self._print(f"Archivo de registro: {self._paint(log.path, 'yellow')}")
            self._log(f"Command: Log file path changed to {log.path}")
            return

        logger.error(
            "Subcomando de 'log' desconocido '%s'. Use 'on', 'off', 'show', "
            "'file' o 'file <ruta>'.",
            subcommand,
        )
        self._log(f"Command Error: Unknown log subcommand '{subcommand}'")

    # ── Listados ─────────────────────────────────────────────────

    def show_history(self):
        self._print("=== Historial ===", "bold", "yellow")
        entries = self.history.entries()
        if not entries:
            self._print("  (El historial está vacío)", "dim")
        for number, entry in enumerate(entries, start=1):
            self._print(f"  {self._paint(f'{number:2d}:', 'cyan')} {entry}")
        self._print("=== Fin del historial ===", "bold", "yellow")

    def show_variables(self):
        self._print("=== Variables ===", "bold", "magenta")
        for name, value in self.engine.symbols.items():
            self._print(f"  {self._paint(name, 'yellow')} = {self._paint(self._fmt(value), 'green')}")
        self._print("=== Fin de variables ===", "bold", "magenta")

    def show_log(self, lines: int):
        try:
            recent = self.session_log.tail(lines)
        except OSError as exc:
            logger.error(
                "No se pudo leer el archivo de registro '%s': %s", self.session_log.path, exc
            )
            return
        self._print(f"=== Entradas recientes ({len(recent)} líneas) ===", "bold", "cyan")
        for entry in recent:
            self._print(entry, _log_line_style(entry))
        self._print("=== Fin del registro ===", "bold", "cyan")

    def show_help(self):
        self._print(HELP_TEXT.format(log_path=self.session_log.path, lines=HISTORY_SIZE))


def _log_line_style(line: str) -> str:
    if "Error" in line:
        return "red"
    if "SESSION START" in line or "SESSION STOP" in line:
        return "green"
    if "User input:" in line:
        return "yellow"
    if "Result:" in line or "Assignment:" in line:
        return "green"
    return "cyan"


def split_assignment(text: str) -> tuple[str, str] | None:
    """Separa ``nombre = expresión`` si el '=' precede a todo operador.

    Devuelve None cuando la línea no tiene forma de asignación.
    """
    equals = text.find("=")
    if equals <= 0:
        return None
    first_operator = re.search(r"[+\-*/^%]", text)
    if first_operator is not None and first_operator.start() < equals:
        return None
    return text[:equals].strip(), text[equals + 1:]


HELP_TEXT = """
Ayuda de la calculadora NMRI

Comandos:
  exit, quit     Salir de la calculadora.
  help           Mostrar esta ayuda.
  clear, cls     Limpiar la pantalla.
  history        Mostrar el historial de comandos.
  vars           Listar las variables definidas (alias: variables).
  mem            Mostrar el valor guardado en memoria (alias: memory).
  m+             Sumar el último resultado ('ans') a la memoria.
  m-             Restar el último resultado ('ans') de la memoria.
  mr             Recuperar la memoria (actualiza 'ans').
  mc             Borrar la memoria.
  store <n>      Guardar el último resultado en la variable <n>.
  log on         Activar el registro en '{log_path}'.
  log off        Desactivar el registro.
  log show       Mostrar las últimas {lines} líneas del registro.
  log file       Mostrar la ruta del archivo de registro.
  log file <r>   Cambiar la ruta del archivo de registro.

Constantes:
  pi, e, phi, gamma, c, h, G, Na, k, inf
  ans            Resultado del último cálculo correcto.

Operadores:
  + -            Suma y resta. 'A + B%' significa A + (B/100)*A.
  * /            Producto y división. 'A * B%' significa A * (B/100).
  ^              Potencia (asociativa por la derecha).
  %              Módulo (resto).
  =              Asignación (p. ej. 'x = 5 * 2'); debe ser el primer operador.

Funciones (argumentos en radianes salvo modo grados):
  sin cos tan asin acos atan log ln sqrt exp abs floor ceil round
  Los argumentos admiten porcentajes: sin(30%) == sin(0.3)

Ejemplos:
  > 100 + 20%      → 120
  > 100 * 50%      → 50
  > x = 5          → x = 5
  > y = x^2 + 2*x + 1 → y = 36
  > ans * 2        → 72
"""
