import io

import pytest

from calculator_engine import CalculatorEngine
from commands import (
    CommandHistory,
    CommandProcessor,
    CommandResult,
    split_assignment,
)
from session_log import SessionLog


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def session_log(tmp_path):
    log = SessionLog(str(tmp_path / "nmri.log"))
    yield log
    log.disable()


@pytest.fixture
def processor(out, session_log):
    engine = CalculatorEngine(session_log=session_log)
    return CommandProcessor(engine, session_log=session_log, out=out, color=False)


def _lines(out):
    return out.getvalue().splitlines()


def test_expression_prints_result(processor, out):
    assert processor.handle_line("2 + 2")
    assert _lines(out) == ["4"]


def test_failed_expression_prints_nothing(processor, out, caplog):
    assert processor.handle_line("1 / 0")
    assert out.getvalue() == ""
    assert "División por cero" in caplog.text


def test_blank_line_is_ignored(processor, out):
    assert processor.handle_line("   ")
    assert out.getvalue() == ""
    assert len(processor.history) == 0


@pytest.mark.parametrize("line", ["exit", "quit", "  exit  "])
def test_exit(processor, line):
    assert processor.handle_line(line) is False


def test_assignment_then_use(processor, out):
    processor.handle_line("x = 5")
    processor.handle_line("y = x^2 + 2*x + 1")
    processor.handle_line("x * 2")
    assert _lines(out) == ["x = 5", "y = 36", "10"]


@pytest.mark.parametrize("line", ["pi = 3", "sin = 1", "ans = 2", "help = 1"])
def test_reserved_names_cannot_be_assigned(processor, out, caplog, line):
    processor.handle_line(line)
    name = line.split("=")[0].strip()
    assert out.getvalue() == ""
    assert "reservado" in caplog.text
    if name != "ans":
        assert not processor.engine.symbols.has(name)


def test_invalid_assignment_name(processor, caplog):
    processor.handle_line("2x = 3")
    assert "no válido" in caplog.text
    assert not processor.engine.symbols.has("2x")


def test_assignment_name_too_long(processor, caplog):
    processor.handle_line("a" * 32 + " = 1")
    assert "Longitud" in caplog.text


def test_failed_assignment_is_logged(processor, session_log):
    session_log.enable()
    processor.handle_line("z = 1 / 0")
    assert not processor.engine.symbols.has("z")
    assert any("Assignment failed for: z = 1 / 0" in line for line in session_log.tail())


def test_memory_commands(processor, out):
    symbols = processor.engine.symbols
    processor.handle_line("10")
    processor.handle_line("m+")
    processor.handle_line("m+")
    assert symbols.memory == 20.0
    processor.handle_line("m-")
    assert symbols.memory == 10.0
    processor.handle_line("3")
    processor.handle_line("mr")
    assert processor.engine.last_result == 10.0
    assert symbols.lookup("ans") == 10.0
    processor.handle_line("mc")
    assert symbols.memory == 0.0
    out.truncate(0)
    out.seek(0)
    processor.handle_line("mem")
    assert _lines(out) == ["Memoria: 0"]


def test_store(processor, out):
    processor.handle_line("6 * 7")
    processor.handle_line("store answer")
    assert processor.engine.symbols.lookup("answer") == 42.0
    assert "Guardado 42 en la variable 'answer'" in out.getvalue()
    assert processor.engine.evaluate_expression("answer + 1") == 43.0


@pytest.mark.parametrize("line", ["store", "store 1abc", "store a-b", "store " + "v" * 32])
def test_store_rejects_bad_names(processor, caplog, line):
    processor.handle_line(line)
    assert caplog.records
    assert processor.engine.symbols.items() == [("ans", 0.0)]


def test_vars_lists_ans_first(processor, out):
    processor.handle_line("b = 2")
    processor.handle_line("a = 1")
    out.truncate(0)
    out.seek(0)
    processor.handle_line("vars")
    assert _lines(out) == [
        "=== Variables ===",
        "  ans = 1",
        "  b = 2",
        "  a = 1",
        "=== Fin de variables ===",
    ]


def test_history_command(processor, out):
    processor.handle_line("1 + 1")
    processor.handle_line("1 + 1")
    processor.handle_line("2 + 2")
    processor.handle_line("history")
    lines = _lines(out)
    assert lines[3] == "=== Historial ==="
    assert lines[4] == "   1: 1 + 1"
    assert lines[5] == "   2: 2 + 2"
    assert processor.history.entries() == ["1 + 1", "2 + 2"]


def test_history_is_bounded_and_mirrors_readline():
    class FakeReadline:
        def __init__(self):
            self.items = []

        def add_history(self, line):
            self.items.append(line)

    fake = FakeReadline()
    history = CommandHistory(size=3, readline_module=fake)
    for line in ["a", "a", "history", "b", "c", "d", ""]:
        history.add(line)
    assert history.entries() == ["b", "c", "d"]
    assert fake.items == ["a", "b", "c", "d"]


def test_help(processor, out):
    assert processor.process_command("help") is CommandResult.HANDLED
    assert "Comandos:" in out.getvalue()
    assert "nmri.log" in out.getvalue()


def test_clear(processor, out):
    processor.handle_line("cls")
    assert out.getvalue() == "\033[2J\033[H"


def test_process_command_passes_expressions_through(processor):
    assert processor.process_command("2 + 2") is CommandResult.NOT_A_COMMAND
    assert processor.process_command("log(1)") is CommandResult.NOT_A_COMMAND
    assert processor.process_command("log (1)") is CommandResult.NOT_A_COMMAND


def test_log_function_still_evaluates(processor, out):
    processor.handle_line("log (1)")
    assert _lines(out) == ["0"]


def test_log_on_show_off(processor, out, session_log):
    processor.handle_line("log on")
    assert session_log.enabled
    processor.handle_line("2 + 3")
    processor.handle_line("log show")
    text = out.getvalue()
    assert "Registro activado" in text
    assert "Result: 2 + 3 = 5" in text
    assert "User input: 2 + 3" in text
    processor.handle_line("log off")
    assert not session_log.enabled
    assert "--- SESSION STOP ---" in session_log.tail()[-1]


def test_log_on_twice(processor, out, session_log):
    processor.handle_line("log on")
    processor.handle_line("log on")
    assert "ya está activo" in out.getvalue()


def test_log_file_change(processor, out, session_log, tmp_path):
    new_path = tmp_path / "other.log"
    processor.handle_line("log on")
    processor.handle_line(f"log file {new_path}")
    assert session_log.path == str(new_path)
    processor.handle_line("7 * 6")
    processor.handle_line("log file")
    assert f"Archivo de registro actual: {new_path}" in out.getvalue()
    assert "Result: 7 * 6 = 42" in new_path.read_text(encoding="utf-8")


def test_log_show_without_file(processor, caplog):
    processor.handle_line("log show")
    assert "No se pudo leer" in caplog.text


def test_unknown_log_subcommand(processor, caplog):
    processor.handle_line("log rotate")
    assert "desconocido" in caplog.text


@pytest.mark.parametrize(
    "text, expected",
    [
        ("x = 1 + 2", ("x", " 1 + 2")),
        ("total=ans*2", ("total", "ans*2")),
        ("1 + x = 2", None),
        ("=5", None),
        ("2 + 2", None),
    ],
)
def test_split_assignment(text, expected):
    assert split_assignment(text) == expected


@pytest.mark.parametrize("line", ["log 5", "log -1", "log x"])
def test_log_with_non_parenthesized_argument_is_a_subcommand(processor, out, caplog, line):
    assert processor.process_command(line) is CommandResult.HANDLED
    assert out.getvalue() == ""
    assert "desconocido" in caplog.text
