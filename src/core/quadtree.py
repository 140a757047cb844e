"""Árbol cuaternario para aproximar la repulsión de muchos cuerpos.

Implementa la aproximación de Barnes-Hut: un cuadrante lejano (según el
parámetro `theta`) se trata como una única carga situada en el centroide de
sus puntos. Solo se usa cuando el número de nodos supera el umbral
configurado; para moléculas pequeñas el cálculo exacto es suficiente.
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence

MAX_DEPTH = 32


class _Quad:
    __slots__ = ("x0", "y0", "x1", "y1", "children", "points", "count", "cx", "cy")

    def __init__(self, x0: float, y0: float, x1: float, y1: float) -> None:
        self.x0 = x0
        self.y0 = y0
        self.x1 = x1
        self.y1 = y1
        self.children: Optional[List[Optional["_Quad"]]] = None
        self.points: List[int] = []
        self.count = 0
        self.cx = 0.0
        self.cy = 0.0

    @property
    def is_leaf(self) -> bool:
        return self.children is None


class QuadTree:
    """Árbol cuaternario sobre las posiciones de un conjunto de nodos.

    Args:
        xs: Coordenadas X indexadas por nodo.
        ys: Coordenadas Y indexadas por nodo.
    """

    def __init__(self, xs: Sequence[float], ys: Sequence[float]) -> None:
        self.xs = list(xs)
        self.ys = list(ys)
        self.root: Optional[_Quad] = None
        if not self.xs:
            return
        x0, x1 = min(self.xs), max(self.xs)
        y0, y1 = min(self.ys), max(self.ys)
        # Cuadrado que cubre todos los puntos.
        size = max(x1 - x0, y1 - y0, 1.0)
        self.root = _Quad(x0, y0, x0 + size, y0 + size)
        for index in range(len(self.xs)):
            self._insert(self.root, index, 0)
        self._accumulate(self.root)

    def _insert(self, quad: _Quad, index: int, depth: int) -> None:
        if quad.is_leaf:
            if not quad.points or depth >= MAX_DEPTH:
                quad.points.append(index)
                return
            first = quad.points[0]
            if self.xs[first] == self.xs[index] and self.ys[first] == self.ys[index]:
                quad.points.append(index)
                return
            existing = quad.points
            quad.points = []
            quad.children = [None, None, None, None]
            for other in existing:
                self._insert_child(quad, other, depth)
        self._insert_child(quad, index, depth)

    def _insert_child(self, quad: _Quad, index: int, depth: int) -> None:
        mx = (quad.x0 + quad.x1) / 2
        my = (quad.y0 + quad.y1) / 2
        right = self.xs[index] >= mx
        bottom = self.ys[index] >= my
        slot = (2 if bottom else 0) + (1 if right else 0)
        if quad.children is None:
            quad.children = [None, None, None, None]
        child = quad.children[slot]
        if child is None:
            child = _Quad(
                mx if right else quad.x0,
                my if bottom else quad.y0,
                quad.x1 if right else mx,
                quad.y1 if bottom else my,
            )
            quad.children[slot] = child
        self._insert(child, index, depth + 1)

    def _accumulate(self, quad: _Quad) -> None:
        if quad.is_leaf:
            quad.count = len(quad.points)
            quad.cx = sum(self.xs[i] for i in quad.points) / quad.count
            quad.cy = sum(self.ys[i] for i in quad.points) / quad.count
            return
        total = 0
        sx = 0.0
        sy = 0.0
        for child in quad.children or ():
            if child is None:
                continue
            self._accumulate(child)
            total += child.count
            sx += child.cx * child.count
            sy += child.cy * child.count
        quad.count = total
        quad.cx = sx / total
        quad.cy = sy / total

    def repulsion(
        self,
        index: int,
        strength: float,
        alpha: float,
        theta: float,
        rng: random.Random,
    ) -> tuple[float, float]:
        """Calcula el cambio de velocidad que produce el resto de nodos.

        Args:
            index: Nodo sobre el que se evalúa la fuerza.
            strength: Carga por nodo (negativa repele).
            alpha: Temperatura actual de la simulación.
            theta: Criterio de apertura de Barnes-Hut.
            rng: Generador para desempatar puntos coincidentes.

        Returns:
            Tupla `(dvx, dvy)`.
        """
        if self.root is None:
            return 0.0, 0.0
        xi = self.xs[index]
        yi = self.ys[index]
        theta2 = theta * theta
        dvx = 0.0
        dvy = 0.0
        stack = [self.root]
        while stack:
            quad = stack.pop()
            dx = quad.cx - xi
            dy = quad.cy - yi
            width = quad.x1 - quad.x0
            dist2 = dx * dx + dy * dy
            inside = quad.x0 <= xi <= quad.x1 and quad.y0 <= yi <= quad.y1
            if not quad.is_leaf and not inside and width * width / theta2 < dist2:
                w = strength * quad.count * alpha / dist2
                dvx += dx * w
                dvy += dy * w
                continue
            if quad.is_leaf:
                for other in quad.points:
                    if other == index:
                        continue
                    ex, ey, l = separation(self.xs[other] - xi, self.ys[other] - yi, rng)
                    w = strength * alpha / l
                    dvx += ex * w
                    dvy += ey * w
                continue
            stack.extend(child for child in quad.children or () if child is not None)
        return dvx, dvy


def jiggle(rng: random.Random) -> float:
    return (rng.random() - 0.5) * 1e-6


def separation(dx: float, dy: float, rng: random.Random) -> tuple[float, float, float]:
    """Normaliza una separación para que nunca haya división por cero.

    Returns:
        `(dx, dy, l)` donde `l` es la distancia al cuadrado, con un mínimo
        suave de 1 y un desplazamiento ínfimo aleatorio si algún eje es 0.
    """
    if dx == 0:
        dx = jiggle(rng)
    if dy == 0:
        dy = jiggle(rng)
    l = dx * dx + dy * dy
    if l < 1:
        l = max(l ** 0.5, 1e-12)
    return dx, dy, l
