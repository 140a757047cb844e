"""Modelos de datos base del laboratorio molecular AtomLab.

Este módulo concentra las estructuras que representan el grafo molecular
(átomos y enlaces) y las primitivas de edición sobre él. Todas las
operaciones son funciones puras: reciben una `Molecule` y devuelven una
nueva, nunca modifican la original. Así el historial de deshacer puede
guardar instantáneas completas sin copiar nada en profundidad.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


class ElementType(str, Enum):
    """Símbolos de elementos disponibles en la paleta del constructor."""
    H = "H"
    C = "C"
    O = "O"
    N = "N"
    Cl = "Cl"
    Na = "Na"
    S = "S"
    F = "F"
    P = "P"
    Mg = "Mg"
    K = "K"
    Ca = "Ca"
    Fe = "Fe"
    Br = "Br"
    I = "I"


@dataclass(frozen=True)
class ElementStyle:
    """Colores y radio con que se dibuja un elemento."""
    bg: str
    border: str
    text: str
    radius: float


ELEMENT_STYLES: Dict[ElementType, ElementStyle] = {
    ElementType.H: ElementStyle("#FFFFFF", "#94a3b8", "#334155", 20.0),
    ElementType.C: ElementStyle("#334155", "#1e293b", "#FFFFFF", 25.0),
    ElementType.O: ElementStyle("#ef4444", "#b91c1c", "#FFFFFF", 24.0),
    ElementType.N: ElementStyle("#3b82f6", "#1d4ed8", "#FFFFFF", 24.0),
    ElementType.Cl: ElementStyle("#22c55e", "#15803d", "#FFFFFF", 26.0),
    ElementType.Na: ElementStyle("#a855f7", "#7e22ce", "#FFFFFF", 28.0),
    ElementType.S: ElementStyle("#eab308", "#a16207", "#FFFFFF", 26.0),
    ElementType.F: ElementStyle("#14b8a6", "#0f766e", "#FFFFFF", 22.0),
    ElementType.P: ElementStyle("#f97316", "#c2410c", "#FFFFFF", 26.0),
    ElementType.Mg: ElementStyle("#84cc16", "#4d7c0f", "#FFFFFF", 27.0),
    ElementType.K: ElementStyle("#8b5cf6", "#6d28d9", "#FFFFFF", 29.0),
    ElementType.Ca: ElementStyle("#64748b", "#334155", "#FFFFFF", 28.0),
    ElementType.Fe: ElementStyle("#b45309", "#78350f", "#FFFFFF", 27.0),
    ElementType.Br: ElementStyle("#991b1b", "#7f1d1d", "#FFFFFF", 27.0),
    ElementType.I: ElementStyle("#6d28d9", "#4c1d95", "#FFFFFF", 28.0),
}

# Valencias máximas (suma de órdenes de enlace) antes de marcar el átomo.
# Umbral permisivo: se admiten hipervalentes comunes de P, S y halógenos.
MAX_VALENCE_MAP: Dict[ElementType, int] = {
    ElementType.H: 1,
    ElementType.C: 4,
    ElementType.N: 4,
    ElementType.O: 3,
    ElementType.F: 1,
    ElementType.Cl: 7,
    ElementType.Br: 7,
    ElementType.I: 7,
    ElementType.P: 6,
    ElementType.S: 6,
    ElementType.Na: 1,
    ElementType.K: 1,
    ElementType.Mg: 2,
    ElementType.Ca: 2,
    ElementType.Fe: 6,
}

BOND_ORDERS = (1, 2, 3)

ATOM_ID_PREFIX = "a"
BOND_ID_PREFIX = "b"


def element_style(element: ElementType) -> ElementStyle:
    """Devuelve el estilo del elemento, con el del carbono como respaldo."""
    return ELEMENT_STYLES.get(element, ELEMENT_STYLES[ElementType.C])


def atom_radius(element: ElementType) -> float:
    return element_style(element).radius


@dataclass(frozen=True)
class Atom:
    """Representa un átomo en el grafo molecular."""
    id: str
    element: ElementType
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Bond:
    """Representa un enlace químico entre dos átomos.

    La identidad del enlace es no dirigida (el par de átomos no ordenado),
    pero se conserva el orden origen/destino para el dibujado.
    """
    id: str
    source_atom_id: str
    target_atom_id: str
    order: int = 1

    def connects(self, atom_id: str) -> bool:
        return self.source_atom_id == atom_id or self.target_atom_id == atom_id

    def joins(self, a_id: str, b_id: str) -> bool:
        return {self.source_atom_id, self.target_atom_id} == {a_id, b_id}

    def other(self, atom_id: str) -> str:
        if self.source_atom_id == atom_id:
            return self.target_atom_id
        return self.source_atom_id


@dataclass(frozen=True)
class Molecule:
    """Grafo molecular inmutable por convención.

    Attributes:
        id: Identificador de la molécula (unidad de guardado y deshacer).
        name: Nombre visible.
        atoms: Secuencia ordenada de átomos; el orden es estable.
        bonds: Secuencia ordenada de enlaces.
        formula: Fórmula calculada al guardar, si existe.
    """
    id: str
    name: str = ""
    atoms: Tuple[Atom, ...] = ()
    bonds: Tuple[Bond, ...] = ()
    formula: Optional[str] = None

    def atom_ids(self) -> set[str]:
        return {atom.id for atom in self.atoms}

    def get_atom(self, atom_id: str) -> Optional[Atom]:
        for atom in self.atoms:
            if atom.id == atom_id:
                return atom
        return None

    def get_bond(self, bond_id: str) -> Optional[Bond]:
        for bond in self.bonds:
            if bond.id == bond_id:
                return bond
        return None

    def has_atom(self, atom_id: str) -> bool:
        return self.get_atom(atom_id) is not None


def new_molecule(name: str = "New Molecule", molecule_id: Optional[str] = None) -> Molecule:
    """Crea una molécula vacía con un ID nuevo."""
    if molecule_id is None:
        molecule_id = f"mol-{uuid.uuid4().hex[:12]}"
    return Molecule(id=molecule_id, name=name)


def _next_id(existing: Iterable[str], prefix: str) -> str:
    """Genera el siguiente ID libre con el prefijo dado.

    Args:
        existing: IDs ya presentes en la molécula.
        prefix: Prefijo del tipo de registro (`"a"` o `"b"`).

    Returns:
        Un ID `prefijo + n` mayor que cualquier sufijo numérico existente.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    for value in existing:
        match = pattern.match(value)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{highest + 1}"


def next_order(order: int) -> int:
    """Avanza el orden de enlace de forma cíclica 1→2→3→1."""
    return 1 if order >= 3 else order + 1


def add_atom(
    molecule: Molecule,
    element: ElementType | str,
    position: Tuple[float, float],
) -> Molecule:
    """Añade un átomo al final de la secuencia con un ID nuevo.

    Args:
        molecule: Molécula de partida.
        element: Elemento del átomo (enum o símbolo).
        position: Coordenadas `(x, y)` en espacio de modelo.

    Returns:
        Nueva molécula; el átomo creado es `atoms[-1]`.

    Raises:
        ValueError: Si el símbolo no pertenece a `ElementType`.
    """
    element = ElementType(element)
    atom_id = _next_id((atom.id for atom in molecule.atoms), ATOM_ID_PREFIX)
    atom = Atom(id=atom_id, element=element, x=float(position[0]), y=float(position[1]))
    return replace(molecule, atoms=molecule.atoms + (atom,), formula=None)


def remove_atom(molecule: Molecule, atom_id: str) -> Molecule:
    """Elimina un átomo y todos los enlaces conectados.

    Si el ID no existe devuelve la misma molécula sin cambios.
    """
    if not molecule.has_atom(atom_id):
        return molecule
    atoms = tuple(atom for atom in molecule.atoms if atom.id != atom_id)
    bonds = tuple(bond for bond in molecule.bonds if not bond.connects(atom_id))
    return replace(molecule, atoms=atoms, bonds=bonds, formula=None)


def find_bond_between(molecule: Molecule, a_id: str, b_id: str) -> Optional[Bond]:
    """Busca un enlace existente entre dos átomos, sin importar el sentido."""
    for bond in molecule.bonds:
        if bond.joins(a_id, b_id):
            return bond
    return None


def add_or_cycle_bond(molecule: Molecule, a_id: str, b_id: str) -> Molecule:
    """Crea un enlace simple o avanza el orden del existente.

    Args:
        molecule: Molécula de partida.
        a_id: Átomo origen (se conserva como `source_atom_id` si se crea).
        b_id: Átomo destino.

    Returns:
        Nueva molécula. Si `a_id == b_id` o algún ID no existe, devuelve la
        molécula recibida sin cambios.
    """
    if a_id == b_id or not molecule.has_atom(a_id) or not molecule.has_atom(b_id):
        return molecule
    existing = find_bond_between(molecule, a_id, b_id)
    if existing is None:
        bond_id = _next_id((bond.id for bond in molecule.bonds), BOND_ID_PREFIX)
        bond = Bond(id=bond_id, source_atom_id=a_id, target_atom_id=b_id, order=1)
        return replace(molecule, bonds=molecule.bonds + (bond,), formula=None)
    cycled = replace(existing, order=next_order(existing.order))
    bonds = tuple(cycled if bond.id == existing.id else bond for bond in molecule.bonds)
    return replace(molecule, bonds=bonds)


def remove_bond(molecule: Molecule, bond_id: str) -> Molecule:
    if molecule.get_bond(bond_id) is None:
        return molecule
    bonds = tuple(bond for bond in molecule.bonds if bond.id != bond_id)
    return replace(molecule, bonds=bonds, formula=None)


def rename(molecule: Molecule, name: str) -> Molecule:
    return replace(molecule, name=name)


def move_atom(molecule: Molecule, atom_id: str, x: float, y: float) -> Molecule:
    """Actualiza la posición de un átomo; no altera la topología."""
    if not molecule.has_atom(atom_id):
        return molecule
    atoms = tuple(
        replace(atom, x=float(x), y=float(y)) if atom.id == atom_id else atom
        for atom in molecule.atoms
    )
    return replace(molecule, atoms=atoms)


def with_positions(
    molecule: Molecule,
    positions: Mapping[str, Tuple[float, float]],
) -> Molecule:
    """Aplica un lote de posiciones `id -> (x, y)`; ignora IDs desconocidos."""
    if not positions:
        return molecule
    atoms = tuple(
        replace(atom, x=float(positions[atom.id][0]), y=float(positions[atom.id][1]))
        if atom.id in positions
        else atom
        for atom in molecule.atoms
    )
    return replace(molecule, atoms=atoms)


def integrity_errors(molecule: Molecule) -> List[str]:
    """Comprueba los invariantes estructurales del grafo.

    Returns:
        Lista de descripciones de los problemas encontrados; vacía si el
        grafo es consistente.
    """
    errors: List[str] = []
    atom_ids: set[str] = set()
    for atom in molecule.atoms:
        if atom.id in atom_ids:
            errors.append(f"duplicate atom id {atom.id}")
        atom_ids.add(atom.id)
        if not isinstance(atom.element, ElementType):
            errors.append(f"unknown element {atom.element!r} on atom {atom.id}")

    bond_ids: set[str] = set()
    pairs: set[frozenset[str]] = set()
    for bond in molecule.bonds:
        if bond.id in bond_ids:
            errors.append(f"duplicate bond id {bond.id}")
        bond_ids.add(bond.id)
        if bond.source_atom_id not in atom_ids or bond.target_atom_id not in atom_ids:
            errors.append(f"dangling bond {bond.id}")
        if bond.source_atom_id == bond.target_atom_id:
            errors.append(f"self bond {bond.id}")
        pair = frozenset((bond.source_atom_id, bond.target_atom_id))
        if pair in pairs:
            errors.append(f"duplicate bond between {sorted(pair)}")
        pairs.add(pair)
        if bond.order not in BOND_ORDERS:
            errors.append(f"invalid order {bond.order} on bond {bond.id}")
    return errors


def overvalent_atoms(molecule: Molecule) -> List[str]:
    """Valida valencias máximas según `MAX_VALENCE_MAP`.

    Calcula la suma de órdenes de enlace por átomo y reporta aquellos que
    superan la valencia máxima permitida.

    Returns:
        Lista de IDs de átomos que exceden la valencia permitida.
    """
    order_sum: Dict[str, int] = {atom.id: 0 for atom in molecule.atoms}
    for bond in molecule.bonds:
        if bond.source_atom_id in order_sum:
            order_sum[bond.source_atom_id] += bond.order
        if bond.target_atom_id in order_sum:
            order_sum[bond.target_atom_id] += bond.order

    flagged: List[str] = []
    for atom in molecule.atoms:
        limit = MAX_VALENCE_MAP.get(atom.element)
        if limit is None:
            continue
        if order_sum.get(atom.id, 0) > limit:
            flagged.append(atom.id)
    return flagged
