"""Documento molecular: única autoridad que aplica cambios a la molécula.

El controlador de interacción produce intenciones; el documento las aplica,
guarda instantáneas antes de cada cambio estructural y avisa a los
observadores con la molécula resultante.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, List, Optional, Tuple

from core.history import HistorySnapshotter
from core.interaction import (
    CycleBond,
    DragEnded,
    DragStarted,
    Intent,
    MoveAtom,
    PanView,
    RemoveAtom,
    RemoveBond,
    SelectionChanged,
)
from core.model import (
    ElementType,
    Molecule,
    add_atom,
    add_or_cycle_bond,
    move_atom,
    new_molecule,
    remove_atom,
    remove_bond,
    rename,
    with_positions,
)
from core.view import ViewTransform

Listener = Callable[[Molecule], None]


def _structure_changed(before: Molecule, after: Molecule) -> bool:
    return len(before.atoms) != len(after.atoms) or len(before.bonds) != len(after.bonds)


class MoleculeDocument:
    """Molécula de trabajo de un visor junto con su vista e historial.

    Args:
        molecule: Molécula inicial; por defecto una vacía.
        canvas_size: Tamaño `(ancho, alto)` del lienzo en coordenadas de modelo.
        history_limit: Máximo de instantáneas de deshacer.
    """

    def __init__(
        self,
        molecule: Optional[Molecule] = None,
        canvas_size: Tuple[float, float] = (600.0, 400.0),
        history_limit: int = 100,
    ) -> None:
        self.molecule = molecule if molecule is not None else new_molecule()
        self.view = ViewTransform.identity()
        self.history = HistorySnapshotter(limit=history_limit)
        self.canvas_width, self.canvas_height = canvas_size
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.molecule)

    def _commit(self, updated: Molecule) -> bool:
        """Instala `updated`; guarda historial si cambió la topología.

        Solo los cambios que alteran el número de átomos o de enlaces pasan
        por el historial; mover átomos o ciclar el orden de un enlace no.
        """
        if updated is self.molecule:
            return False
        if _structure_changed(self.molecule, updated):
            self.history.push(self.molecule)
        self.molecule = updated
        self._notify()
        return True

    def apply(self, intent: Intent) -> bool:
        """Aplica una intención del controlador.

        Returns:
            `True` si la molécula o la vista cambiaron.
        """
        if isinstance(intent, MoveAtom):
            return self._commit(move_atom(self.molecule, intent.atom_id, intent.x, intent.y))
        if isinstance(intent, CycleBond):
            return self._commit(
                add_or_cycle_bond(self.molecule, intent.source_id, intent.target_id)
            )
        if isinstance(intent, RemoveAtom):
            return self._commit(remove_atom(self.molecule, intent.atom_id))
        if isinstance(intent, RemoveBond):
            return self._commit(remove_bond(self.molecule, intent.bond_id))
        if isinstance(intent, PanView):
            self.view = self.view.panned(intent.dx, intent.dy)
            return True
        if isinstance(intent, (DragStarted, DragEnded, SelectionChanged)):
            return False
        raise TypeError(f"Unsupported intent: {intent!r}")

    def apply_all(self, intents: List[Intent]) -> bool:
        changed = False
        for intent in intents:
            changed = self.apply(intent) or changed
        return changed

    def add_atom(
        self,
        element: ElementType | str,
        rng: Optional[random.Random] = None,
        jitter: float = 60.0,
    ) -> str:
        """Añade un átomo cerca del centro del lienzo con una ligera dispersión.

        La dispersión evita que varios átomos nuevos queden exactamente
        superpuestos antes de ejecutar la disposición.

        Returns:
            ID del átomo creado.
        """
        rng = rng or random.Random()
        x = self.canvas_width / 2 + (rng.random() - 0.5) * jitter
        y = self.canvas_height / 2 + (rng.random() - 0.5) * jitter
        self._commit(add_atom(self.molecule, element, (x, y)))
        return self.molecule.atoms[-1].id

    def rename(self, name: str) -> None:
        self._commit(rename(self.molecule, name))

    def replace_positions(self, positions: Dict[str, Tuple[float, float]]) -> None:
        """Aplica posiciones calculadas por la disposición; sin historial."""
        self._commit(with_positions(self.molecule, positions))

    def replace(self, molecule: Molecule) -> None:
        """Sustituye la molécula guardando la actual en el historial."""
        if molecule is self.molecule:
            return
        self.history.push(self.molecule)
        self.molecule = molecule
        self._notify()

    def undo(self) -> bool:
        previous = self.history.pop()
        if previous is None:
            return False
        self.molecule = previous
        self._notify()
        return True

    def clear(self, name: str = "New Molecule") -> None:
        """Reemplaza la molécula por una vacía; se puede deshacer."""
        self.replace(new_molecule(name))

    def load(self, molecule: Molecule) -> None:
        """Carga otra molécula: reinicia la vista y el historial."""
        self.molecule = molecule
        self.view = ViewTransform.identity()
        self.history.clear()
        self._notify()

    def zoom(self, factor: float, anchor_sx: float, anchor_sy: float) -> None:
        self.view = self.view.zoomed(factor, anchor_sx, anchor_sy)

    def reset_view(self) -> None:
        self.view = ViewTransform.identity()
