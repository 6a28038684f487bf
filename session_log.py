"""Registro opcional de la sesión en un archivo de texto."""

from __future__ import annotations

import logging
from collections import deque

DEFAULT_LOG_FILENAME = "nmri.log"
LOG_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SessionLog:
    """Escribe líneas con marca de tiempo en ``path`` mientras está activo.

    Cada instancia crea su propio ``logging.Logger`` fuera del registro global
    de ``logging``: no propaga hacia la raíz y dos sesiones nunca comparten
    manejadores, aunque usen el mismo nombre.
    """

    def __init__(self, path: str = DEFAULT_LOG_FILENAME, name: str = "nmri.session"):
        self._path = path
        self._logger = logging.Logger(name, logging.INFO)
        self._logger.propagate = False
        self._handler: logging.FileHandler | None = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def enabled(self) -> bool:
        return self._handler is not None

    # ── Ciclo de vida ────────────────────────────────────────────

    def enable(self):
        """Abre el archivo en modo anexar y marca el inicio de sesión.

        Raises:
            OSError: el archivo no se pudo abrir.
        """
        if self._handler is not None:
            return
        handler = logging.FileHandler(self._path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        self._logger.addHandler(handler)
        self._handler = handler
        self.message("--- SESSION START ---")

    def disable(self):
        if self._handler is None:
            return
        self.message("--- SESSION STOP ---")
        self._logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None

    def set_path(self, path: str):
        """Cambia el archivo de destino; si estaba activo, lo reabre."""
        was_enabled = self.enabled
        self.disable()
        self._path = path
        if was_enabled:
            self.enable()

    # ── Escritura y lectura ──────────────────────────────────────

    def message(self, text: str, *args):
        if self._handler is None:
            return
        self._logger.info(text, *args)

    def tail(self, lines: int = 20) -> list[str]:
        """Últimas ``lines`` líneas del archivo.

        Raises:
            OSError: el archivo no existe o no se puede leer.
        """
        if self._handler is not None:
            self._handler.flush()
        with open(self._path, "r", encoding="utf-8") as handle:
            return [line.rstrip("\n") for line in deque(handle, maxlen=lines)]
