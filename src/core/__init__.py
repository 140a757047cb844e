"""API pública del núcleo de AtomLab.

Reexpone el modelo molecular, la disposición por fuerzas, la vista y el
controlador de interacción para facilitar importaciones.
"""

from core.document import MoleculeDocument
from core.history import HistorySnapshotter
from core.interaction import EditMode, InteractionController, InteractionState
from core.layout import LayoutParams, Simulation, auto_layout
from core.model import (
    Atom,
    Bond,
    ElementType,
    Molecule,
    add_atom,
    add_or_cycle_bond,
    new_molecule,
    remove_atom,
    remove_bond,
    rename,
)
from core.sanitize import sanitize_product
from core.view import ViewTransform

__all__ = [
    "Atom",
    "Bond",
    "EditMode",
    "ElementType",
    "HistorySnapshotter",
    "InteractionController",
    "InteractionState",
    "LayoutParams",
    "Molecule",
    "MoleculeDocument",
    "Simulation",
    "ViewTransform",
    "add_atom",
    "add_or_cycle_bond",
    "auto_layout",
    "new_molecule",
    "remove_atom",
    "remove_bond",
    "rename",
    "sanitize_product",
]
