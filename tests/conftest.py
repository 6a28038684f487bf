import logging

import pytest

from symbol_table import SymbolTable


@pytest.fixture(autouse=True)
def _restore_nmri_logger():
    # main.configure_diagnostics reconfigura el logger "nmri"
    root = logging.getLogger("nmri")
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


@pytest.fixture
def symbols():
    return SymbolTable()
