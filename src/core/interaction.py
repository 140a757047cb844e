"""Máquina de estados que traduce eventos de puntero en intenciones.

El controlador no modifica la molécula: lee la molécula y la vista actuales
de su documento y devuelve una lista de intenciones (`MoveAtom`,
`CycleBond`, `RemoveAtom`, ...) que `MoleculeDocument.apply` aplica. Así el
flujo de datos es unidireccional y la vista se redibuja siempre a partir del
último estado del documento.

Estados del gesto: inactivo, arrastrando un átomo, desplazando la vista.
Ortogonal a ellos está el átomo seleccionado como origen de enlace
pendiente, y el modo (construir o borrar) decide qué transiciones valen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Tuple, Union

from core.hit_test import atom_at, bond_at
from core.model import Molecule
from core.view import ViewTransform


class EditMode(str, Enum):
    """Modos de edición del lienzo."""
    BUILD = "build"
    ERASE = "erase"


@dataclass
class InteractionState:
    """Estado de interacción de un visor; nunca se persiste."""
    mode: EditMode = EditMode.BUILD
    pending_bond_source_id: Optional[str] = None
    dragged_atom_id: Optional[str] = None
    is_panning: bool = False

    @property
    def phase(self) -> str:
        if self.dragged_atom_id is not None:
            return "dragging"
        if self.is_panning:
            return "panning"
        if self.pending_bond_source_id is not None:
            return "pending_bond"
        return "idle"


@dataclass(frozen=True)
class MoveAtom:
    atom_id: str
    x: float
    y: float


@dataclass(frozen=True)
class CycleBond:
    source_id: str
    target_id: str


@dataclass(frozen=True)
class RemoveAtom:
    atom_id: str


@dataclass(frozen=True)
class RemoveBond:
    bond_id: str


@dataclass(frozen=True)
class PanView:
    dx: float
    dy: float


@dataclass(frozen=True)
class DragStarted:
    atom_id: str


@dataclass(frozen=True)
class DragEnded:
    atom_id: str
    moved: bool


@dataclass(frozen=True)
class SelectionChanged:
    atom_id: Optional[str]


Intent = Union[
    MoveAtom,
    CycleBond,
    RemoveAtom,
    RemoveBond,
    PanView,
    DragStarted,
    DragEnded,
    SelectionChanged,
]


class DocumentView(Protocol):
    molecule: Molecule
    view: ViewTransform


class InteractionController:
    """Clasifica gestos (toque, arrastre, desplazamiento) y emite intenciones.

    Args:
        document: Fuente de la molécula y la vista actuales (solo lectura).
        drag_threshold: Distancia en píxeles de pantalla a partir de la cual
            un movimiento cuenta como arrastre. Con 0 cualquier movimiento
            entre pulsar y soltar es arrastre y suprime el clic.
    """

    def __init__(self, document: DocumentView, drag_threshold: float = 0.0) -> None:
        self.document = document
        self.drag_threshold = drag_threshold
        self.state = InteractionState()
        self._pointer_id: Optional[int] = None
        self._press_target: Optional[Tuple[str, str]] = None
        self._press_screen: Tuple[float, float] = (0.0, 0.0)
        self._last_screen: Tuple[float, float] = (0.0, 0.0)
        self._was_drag = False

    @property
    def mode(self) -> EditMode:
        return self.state.mode

    @property
    def pending_bond_source_id(self) -> Optional[str]:
        return self.state.pending_bond_source_id

    @property
    def has_capture(self) -> bool:
        return self._pointer_id is not None

    def set_mode(self, mode: EditMode) -> List[Intent]:
        """Cambia de modo; cancela el gesto activo y la selección pendiente."""
        mode = EditMode(mode)
        intents: List[Intent] = []
        if self.state.dragged_atom_id is not None:
            intents.append(DragEnded(self.state.dragged_atom_id, moved=self._was_drag))
        self._release()
        self.state.mode = mode
        intents.extend(self.clear_selection())
        return intents

    def clear_selection(self) -> List[Intent]:
        if self.state.pending_bond_source_id is None:
            return []
        self.state.pending_bond_source_id = None
        return [SelectionChanged(None)]

    def pointer_down(self, sx: float, sy: float, pointer_id: int = 0) -> List[Intent]:
        """Inicia un gesto y captura el puntero.

        Sobre un átomo en modo construir empieza un arrastre; sobre un
        átomo o enlace en modo borrar solo se recuerda el objetivo para el
        clic; sobre lienzo vacío se empieza a desplazar la vista.
        """
        if self._pointer_id is not None:
            return []
        intents = self._drop_stale_selection()
        self._pointer_id = pointer_id
        self._press_screen = (sx, sy)
        self._last_screen = (sx, sy)
        self._was_drag = False

        molecule = self.document.molecule
        mx, my = self.document.view.to_model(sx, sy)
        atom_id = atom_at(molecule, mx, my)
        if atom_id is not None:
            self._press_target = ("atom", atom_id)
            if self.state.mode == EditMode.BUILD:
                self.state.dragged_atom_id = atom_id
                intents.append(DragStarted(atom_id))
            return intents

        bond_id = bond_at(molecule, mx, my)
        if bond_id is not None:
            self._press_target = ("bond", bond_id)
            return intents

        self._press_target = None
        self.state.is_panning = True
        return intents

    def pointer_move(self, sx: float, sy: float, pointer_id: int = 0) -> List[Intent]:
        if self._pointer_id is None or pointer_id != self._pointer_id:
            return []
        px, py = self._press_screen
        if math.hypot(sx - px, sy - py) >= self.drag_threshold:
            self._was_drag = True

        intents: List[Intent] = []
        if self.state.dragged_atom_id is not None and self._was_drag:
            mx, my = self.document.view.to_model(sx, sy)
            intents.append(MoveAtom(self.state.dragged_atom_id, mx, my))
        elif self.state.is_panning:
            lx, ly = self._last_screen
            if sx != lx or sy != ly:
                intents.append(PanView(sx - lx, sy - ly))
        self._last_screen = (sx, sy)
        return intents

    def pointer_up(self, sx: float, sy: float, pointer_id: int = 0) -> List[Intent]:
        """Termina el gesto; si no hubo arrastre se clasifica como clic."""
        if self._pointer_id is None or pointer_id != self._pointer_id:
            return []
        intents: List[Intent] = []
        if self.state.dragged_atom_id is not None:
            intents.append(DragEnded(self.state.dragged_atom_id, moved=self._was_drag))
        target = self._press_target
        was_drag = self._was_drag
        self._release()
        if not was_drag:
            intents.extend(self._click(target))
        return intents

    def _release(self) -> None:
        self._pointer_id = None
        self._press_target = None
        self.state.dragged_atom_id = None
        self.state.is_panning = False

    def _drop_stale_selection(self) -> List[Intent]:
        pending = self.state.pending_bond_source_id
        if pending is not None and not self.document.molecule.has_atom(pending):
            return self.clear_selection()
        return []

    def _click(self, target: Optional[Tuple[str, str]]) -> List[Intent]:
        if target is None:
            return []
        kind, target_id = target

        if self.state.mode == EditMode.ERASE:
            if kind == "bond":
                return [RemoveBond(target_id)]
            intents: List[Intent] = []
            if self.state.pending_bond_source_id == target_id:
                intents.extend(self.clear_selection())
            intents.append(RemoveAtom(target_id))
            return intents

        if kind == "bond":
            bond = self.document.molecule.get_bond(target_id)
            if bond is None:
                return []
            return [CycleBond(bond.source_atom_id, bond.target_atom_id)]

        pending = self.state.pending_bond_source_id
        if pending is None:
            self.state.pending_bond_source_id = target_id
            return [SelectionChanged(target_id)]
        if pending == target_id:
            return self.clear_selection()
        # El origen sigue pendiente: clics repetidos sobre el mismo destino
        # recorren simple, doble y triple.
        return [CycleBond(pending, target_id)]
