"""Motor de disposición por fuerzas para grafos moleculares.

Asigna coordenadas 2D a una `Molecule` simulando cuatro fuerzas:

- Repulsión entre todos los pares de átomos (exacta o Barnes-Hut).
- Resortes a lo largo de cada enlace hacia una distancia objetivo.
- Centrado suave del centroide hacia el centro del lienzo.
- Evitación de colisiones tratando cada átomo como un disco.

La simulación es una función de paso explícita (`step`) que puede llamarse
en un bucle cerrado (modo por lotes, `auto_layout`) o una vez por tic de un
temporizador (modo en vivo, ver `gui.live_layout`).
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.model import Molecule, atom_radius, with_positions
from core.quadtree import QuadTree, jiggle, separation


@dataclass
class LayoutParams:
    """Parámetros de la simulación de fuerzas."""
    charge_strength: float = -300.0
    link_distance: float = 60.0
    link_strength: float = 2.0
    center_strength: float = 0.05
    collide_strength: float = 1.0
    collide_iterations: int = 2
    # Se suma al radio de dibujo de cada elemento.
    collide_padding: float = 10.0
    velocity_decay: float = 0.4
    alpha: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 1 - 0.001 ** (1 / 300)
    drag_alpha_target: float = 0.3
    batch_steps: int = 300
    margin: float = 30.0
    jitter: float = 50.0
    theta: float = 0.9
    barnes_hut_threshold: int = 64
    live_duration: float = 3.0
    tick_interval_ms: int = 16

    @classmethod
    def live(cls) -> "LayoutParams":
        """Parámetros más suaves para el visor en vivo."""
        return cls(charge_strength=-200.0, collide_padding=5.0)


@dataclass
class LayoutNode:
    """Estado de un átomo dentro de la simulación."""
    id: str
    x: float
    y: float
    radius: float = 35.0
    vx: float = 0.0
    vy: float = 0.0
    fixed: bool = False


@dataclass
class LayoutLink:
    """Resorte entre dos nodos, referenciados por índice."""
    source: int
    target: int
    distance: float
    strength: float
    bias: float = 0.5


def build_nodes(
    molecule: Molecule,
    width: float,
    height: float,
    params: LayoutParams,
    rng: random.Random,
    keep_positions: bool = False,
) -> List[LayoutNode]:
    """Coloca cada átomo en el centro del lienzo con una pequeña perturbación.

    La perturbación rompe la simetría y evita separaciones exactamente nulas.
    Con `keep_positions` se parte de las coordenadas actuales de los átomos
    (modo en vivo); los solapes exactos los resuelve luego la fuerza.
    """
    if keep_positions:
        return [
            LayoutNode(
                id=atom.id,
                x=atom.x,
                y=atom.y,
                radius=atom_radius(atom.element) + params.collide_padding,
            )
            for atom in molecule.atoms
        ]
    cx = width / 2
    cy = height / 2
    return [
        LayoutNode(
            id=atom.id,
            x=cx + (rng.random() - 0.5) * params.jitter,
            y=cy + (rng.random() - 0.5) * params.jitter,
            radius=atom_radius(atom.element) + params.collide_padding,
        )
        for atom in molecule.atoms
    ]


def build_links(
    molecule: Molecule,
    nodes: Sequence[LayoutNode],
    params: LayoutParams,
) -> List[LayoutLink]:
    """Convierte los enlaces en resortes descartando los colgantes.

    Un enlace cuyo extremo no está en el conjunto de nodos se ignora antes
    de empezar; el sesgo de cada resorte reparte la corrección según el
    grado de los extremos, como hace la fuerza de enlace de d3.
    """
    index = {node.id: i for i, node in enumerate(nodes)}
    pairs: List[Tuple[int, int]] = []
    for bond in molecule.bonds:
        source = index.get(bond.source_atom_id)
        target = index.get(bond.target_atom_id)
        if source is None or target is None or source == target:
            continue
        pairs.append((source, target))

    degree = [0] * len(nodes)
    for source, target in pairs:
        degree[source] += 1
        degree[target] += 1

    return [
        LayoutLink(
            source=source,
            target=target,
            distance=params.link_distance,
            strength=params.link_strength,
            bias=degree[source] / (degree[source] + degree[target]),
        )
        for source, target in pairs
    ]


def _apply_many_body(
    nodes: Sequence[LayoutNode],
    params: LayoutParams,
    alpha: float,
    rng: random.Random,
) -> None:
    strength = params.charge_strength
    if len(nodes) > params.barnes_hut_threshold:
        tree = QuadTree([n.x for n in nodes], [n.y for n in nodes])
        deltas = [tree.repulsion(i, strength, alpha, params.theta, rng) for i in range(len(nodes))]
        for node, (dvx, dvy) in zip(nodes, deltas):
            node.vx += dvx
            node.vy += dvy
        return

    for i, node in enumerate(nodes):
        for j, other in enumerate(nodes):
            if i == j:
                continue
            dx, dy, l = separation(other.x - node.x, other.y - node.y, rng)
            w = strength * alpha / l
            node.vx += dx * w
            node.vy += dy * w


def _apply_links(
    nodes: Sequence[LayoutNode],
    links: Iterable[LayoutLink],
    alpha: float,
    rng: random.Random,
) -> None:
    for link in links:
        source = nodes[link.source]
        target = nodes[link.target]
        dx = target.x + target.vx - source.x - source.vx or jiggle(rng)
        dy = target.y + target.vy - source.y - source.vy or jiggle(rng)
        length = math.sqrt(dx * dx + dy * dy)
        if length == 0:
            continue
        k = (length - link.distance) / length * alpha * link.strength
        dx *= k
        dy *= k
        target.vx -= dx * link.bias
        target.vy -= dy * link.bias
        source.vx += dx * (1 - link.bias)
        source.vy += dy * (1 - link.bias)


def _apply_center(
    nodes: Sequence[LayoutNode],
    center: Tuple[float, float],
    strength: float,
) -> None:
    if not nodes:
        return
    sx = (sum(n.x for n in nodes) / len(nodes) - center[0]) * strength
    sy = (sum(n.y for n in nodes) / len(nodes) - center[1]) * strength
    for node in nodes:
        if node.fixed:
            continue
        node.x -= sx
        node.y -= sy


def _apply_collide(
    nodes: Sequence[LayoutNode],
    params: LayoutParams,
    rng: random.Random,
) -> None:
    count = len(nodes)
    for _ in range(max(0, params.collide_iterations)):
        for i in range(count):
            node = nodes[i]
            xi = node.x + node.vx
            yi = node.y + node.vy
            ri = node.radius
            for j in range(i + 1, count):
                other = nodes[j]
                if node.fixed and other.fixed:
                    continue
                rj = other.radius
                r = ri + rj
                dx = xi - other.x - other.vx
                dy = yi - other.y - other.vy
                l = dx * dx + dy * dy
                if l >= r * r:
                    continue
                if dx == 0:
                    dx = jiggle(rng)
                    l += dx * dx
                if dy == 0:
                    dy = jiggle(rng)
                    l += dy * dy
                l = max(math.sqrt(l), 1e-12)
                k = (r - l) / l * params.collide_strength
                dx *= k
                dy *= k
                share = (rj * rj) / (ri * ri + rj * rj)
                if node.fixed:
                    share = 0.0
                elif other.fixed:
                    share = 1.0
                node.vx += dx * share
                node.vy += dy * share
                other.vx -= dx * (1 - share)
                other.vy -= dy * (1 - share)


def _integrate(
    nodes: Sequence[LayoutNode],
    params: LayoutParams,
    center: Tuple[float, float],
    rng: random.Random,
) -> None:
    keep = 1 - params.velocity_decay
    for node in nodes:
        if node.fixed:
            node.vx = 0.0
            node.vy = 0.0
            continue
        node.vx *= keep
        node.vy *= keep
        x = node.x + node.vx
        y = node.y + node.vy
        if not (math.isfinite(x) and math.isfinite(y)):
            x = center[0] + (rng.random() - 0.5) * params.jitter
            y = center[1] + (rng.random() - 0.5) * params.jitter
            node.vx = 0.0
            node.vy = 0.0
        node.x = x
        node.y = y


def step(
    nodes: List[LayoutNode],
    links: Sequence[LayoutLink],
    params: LayoutParams,
    alpha: float,
    center: Tuple[float, float],
    rng: Optional[random.Random] = None,
) -> List[LayoutNode]:
    """Ejecuta un paso de simulación sobre los nodos.

    Args:
        nodes: Nodos de la simulación; se actualizan en el sitio.
        links: Resortes entre nodos.
        params: Configuración de fuerzas.
        alpha: Temperatura del paso (escala las fuerzas).
        center: Centro del lienzo hacia el que se atrae el centroide.
        rng: Generador usado para desempatar puntos coincidentes.

    Returns:
        La misma lista de nodos, ya actualizada.
    """
    rng = rng or random.Random()
    _apply_many_body(nodes, params, alpha, rng)
    _apply_links(nodes, links, alpha, rng)
    _apply_center(nodes, center, params.center_strength)
    _apply_collide(nodes, params, rng)
    _integrate(nodes, params, center, rng)
    return nodes


class Simulation:
    """Simulación de fuerzas con enfriamiento y nodos fijables.

    Args:
        molecule: Molécula cuya topología se simula.
        width: Ancho del lienzo.
        height: Alto del lienzo.
        params: Parámetros; por defecto `LayoutParams()`.
        seed: Semilla de la perturbación inicial.
        keep_positions: Partir de las posiciones actuales de los átomos.
    """

    def __init__(
        self,
        molecule: Molecule,
        width: float,
        height: float,
        params: Optional[LayoutParams] = None,
        seed: Optional[int] = None,
        keep_positions: bool = False,
    ) -> None:
        self.params = params or LayoutParams()
        self.width = float(width)
        self.height = float(height)
        self.center = (self.width / 2, self.height / 2)
        self._rng = random.Random(seed)
        self.nodes = build_nodes(
            molecule, self.width, self.height, self.params, self._rng, keep_positions
        )
        self.links = build_links(molecule, self.nodes, self.params)
        self._index = {node.id: i for i, node in enumerate(self.nodes)}
        self.alpha = self.params.alpha
        self.alpha_target = 0.0
        self.ticks = 0
        self.stopped = False

    @property
    def converged(self) -> bool:
        return self.alpha < self.params.alpha_min

    def tick(self, count: int = 1) -> None:
        """Avanza `count` pasos; no hace nada si la simulación está detenida."""
        if self.stopped:
            return
        for _ in range(count):
            self.alpha += (self.alpha_target - self.alpha) * self.params.alpha_decay
            step(self.nodes, self.links, self.params, self.alpha, self.center, self._rng)
            self.ticks += 1

    def stop(self) -> None:
        self.stopped = True

    def pin(self, atom_id: str, x: float, y: float) -> None:
        """Fija un nodo en la posición dada, excluyéndolo de las fuerzas.

        Mientras haya nodos fijados la simulación se mantiene templada para
        que el resto reaccione al arrastre.
        """
        index = self._index.get(atom_id)
        if index is None:
            return
        node = self.nodes[index]
        node.fixed = True
        node.x = float(x)
        node.y = float(y)
        node.vx = 0.0
        node.vy = 0.0
        self.alpha_target = self.params.drag_alpha_target
        self.alpha = max(self.alpha, self.params.drag_alpha_target)

    def unpin(self, atom_id: str) -> None:
        index = self._index.get(atom_id)
        if index is None:
            return
        self.nodes[index].fixed = False
        if not any(node.fixed for node in self.nodes):
            self.alpha_target = 0.0

    def positions(self) -> Dict[str, Tuple[float, float]]:
        return {node.id: (node.x, node.y) for node in self.nodes}

    def apply_to(self, molecule: Molecule) -> Molecule:
        """Copia las posiciones actuales sobre la molécula (sin tocar enlaces)."""
        return with_positions(molecule, self.positions())


def _fit_axis(values: List[float], size: float, margin: float) -> Tuple[List[float], float, float]:
    """Encaja una coordenada en `[margen, tamaño - margen]`.

    Si el lienzo es más estrecho que dos márgenes la franja desaparece;
    entonces se usa `[0, tamaño]` y los valores se escalan en lugar de
    recortarse, para que los átomos no acaben todos en el mismo punto.
    """
    low, high = margin, size - margin
    if high > low:
        return [min(high, max(low, v)) for v in values], low, high
    low, high = 0.0, max(size, 0.0)
    if not values:
        return [], low, high
    v_min, v_max = min(values), max(values)
    span = v_max - v_min
    if span <= high - low:
        offset = (low + high) / 2 - (v_min + v_max) / 2
        return [v + offset for v in values], low, high
    scale = (high - low) / span
    return [low + (v - v_min) * scale for v in values], low, high


def clamp_positions(
    positions: Dict[str, Tuple[float, float]],
    width: float,
    height: float,
    margin: float,
) -> Dict[str, Tuple[float, float]]:
    """Limita cada coordenada a `[margen, dimensión - margen]`.

    Si dos átomos terminan en el mismo punto (por ejemplo, ambos empujados
    a la misma esquina) se separan un poco dentro de los límites.
    """
    ids = list(positions)
    xs, x_lo, x_hi = _fit_axis([positions[i][0] for i in ids], width, margin)
    ys, y_lo, y_hi = _fit_axis([positions[i][1] for i in ids], height, margin)
    clamped: Dict[str, Tuple[float, float]] = {}
    taken: set[Tuple[float, float]] = set()
    for atom_id, x, y in zip(ids, xs, ys):
        attempt = 0
        while (x, y) in taken and attempt < 64:
            attempt += 1
            angle = attempt * 2.399963
            radius = 1.0 + attempt * 0.5
            x = min(x_hi, max(x_lo, x + radius * math.cos(angle)))
            y = min(y_hi, max(y_lo, y + radius * math.sin(angle)))
        taken.add((x, y))
        clamped[atom_id] = (x, y)
    return clamped


def auto_layout(
    molecule: Molecule,
    width: float,
    height: float,
    params: Optional[LayoutParams] = None,
    seed: Optional[int] = None,
) -> Molecule:
    """Disposición por lotes: simula de forma síncrona y devuelve la molécula.

    Args:
        molecule: Molécula a disponer; sus enlaces no se modifican.
        width: Ancho del lienzo.
        height: Alto del lienzo.
        params: Parámetros de simulación.
        seed: Semilla de la perturbación inicial (determinismo en pruebas).

    Returns:
        Nueva molécula con cada átomo dentro de
        `[margen, ancho - margen] x [margen, alto - margen]`.
    """
    if not molecule.atoms:
        return molecule
    simulation = Simulation(molecule, width, height, params=params, seed=seed)
    simulation.tick(simulation.params.batch_steps)
    positions = clamp_positions(
        simulation.positions(), width, height, simulation.params.margin
    )
    return with_positions(molecule, positions)
