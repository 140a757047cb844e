"""Opciones de configuración de la aplicación AtomLab."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from core.layout import LayoutParams


@dataclass
class AppConfig:
    """Opciones globales del laboratorio.

    Los valores por defecto reproducen el lienzo del constructor
    (600 x 400) y la caja usada al disponer productos (400 x 300).
    """

    canvas_width: float = 600.0
    canvas_height: float = 400.0
    product_width: float = 400.0
    product_height: float = 300.0
    # Dispersión (total, no radio) de los átomos nuevos alrededor del centro.
    add_atom_jitter: float = 60.0
    history_limit: int = 100
    drag_threshold: float = 0.0
    api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash"
    # Nombres más largos se consideran respuestas no plausibles.
    max_name_length: int = 50
    library_path: str = field(
        default_factory=lambda: os.path.join(os.path.expanduser("~"), ".atomlab", "library.json")
    )
    layout: LayoutParams = field(default_factory=LayoutParams)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Construye la configuración leyendo variables de entorno.

        Args:
            environ: Mapa de variables; por defecto `os.environ`.

        Returns:
            Configuración con `GEMINI_API_KEY` (o `API_KEY`),
            `ATOMLAB_MODEL` y `ATOMLAB_LIBRARY` aplicados si existen.
        """
        env = os.environ if environ is None else environ
        config = cls()
        config.api_key = env.get("GEMINI_API_KEY") or env.get("API_KEY") or None
        if env.get("ATOMLAB_MODEL"):
            config.model_name = env["ATOMLAB_MODEL"]
        if env.get("ATOMLAB_LIBRARY"):
            config.library_path = env["ATOMLAB_LIBRARY"]
        return config
