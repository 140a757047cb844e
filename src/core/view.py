"""Transformación de vista (desplazamiento y zoom) del lienzo.

Convierte entre coordenadas de modelo y de pantalla con
`pantalla = modelo * escala + desplazamiento`. Es independiente del grafo:
ni el controlador de interacción ni el motor de disposición necesitan
conocer la pantalla.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

MIN_SCALE = 0.1
MAX_SCALE = 5.0


@dataclass(frozen=True)
class ViewTransform:
    """Transformación afín de modelo a pantalla."""
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    @classmethod
    def identity(cls) -> "ViewTransform":
        return cls()

    def to_screen(self, x: float, y: float) -> Tuple[float, float]:
        return (x * self.scale + self.offset_x, y * self.scale + self.offset_y)

    def to_model(self, sx: float, sy: float) -> Tuple[float, float]:
        """Invierte la transformación: `modelo = (pantalla - desplazamiento) / escala`."""
        return ((sx - self.offset_x) / self.scale, (sy - self.offset_y) / self.scale)

    def panned(self, dx: float, dy: float) -> "ViewTransform":
        """Desplaza la vista en píxeles de pantalla."""
        return replace(self, offset_x=self.offset_x + dx, offset_y=self.offset_y + dy)

    def zoomed(self, factor: float, anchor_sx: float, anchor_sy: float) -> "ViewTransform":
        """Escala la vista manteniendo fijo el punto de pantalla indicado.

        Args:
            factor: Multiplicador de escala (>1 acerca, <1 aleja).
            anchor_sx: Coordenada X de pantalla que no debe moverse.
            anchor_sy: Coordenada Y de pantalla que no debe moverse.

        Returns:
            Nueva transformación; la escala queda limitada a
            `[MIN_SCALE, MAX_SCALE]`.
        """
        if factor <= 0:
            return self
        new_scale = min(MAX_SCALE, max(MIN_SCALE, self.scale * factor))
        if new_scale == self.scale:
            return self
        mx, my = self.to_model(anchor_sx, anchor_sy)
        return ViewTransform(
            scale=new_scale,
            offset_x=anchor_sx - mx * new_scale,
            offset_y=anchor_sy - my * new_scale,
        )
