"""Punto de entrada de AtomLab, el laboratorio de construcción molecular.

Configura el registro, inicializa PyQt6 con la configuración leída del
entorno y arranca el bucle de eventos.
"""

import logging
import os
import sys

# Aseguramos que Python encuentre los módulos dentro de `src` al ejecutar
# el archivo directamente.
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from PyQt6.QtWidgets import QApplication
from core.config import AppConfig
from gui.main_window import AtomLabWindow


def main():
    """
    Arranca la aplicación Qt y muestra la ventana principal.

    Side Effects:
        Configura `logging` (nivel por `ATOMLAB_LOG_LEVEL`), crea la
        instancia de `QApplication` y entra en el bucle de eventos de Qt.
    """
    logging.basicConfig(
        level=os.environ.get("ATOMLAB_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = AppConfig.from_env()
    if not config.api_key:
        logging.getLogger(__name__).warning(
            "GEMINI_API_KEY not set; reactions will fail and names fall back to formulas"
        )

    app = QApplication(sys.argv)
    app.setApplicationName("AtomLab")

    window = AtomLabWindow(config)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
