"""
AtomLab Canvas
Widget that paints a MoleculeDocument and routes pointer events through the
InteractionController.
"""
from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

from PyQt6.QtWidgets import QWidget
from PyQt6.QtGui import QBrush, QColor, QFont, QPainter, QPen, QTransform, QWheelEvent
from PyQt6.QtCore import QPointF, QRectF, Qt, pyqtSignal

from core.document import MoleculeDocument
from core.interaction import (
    CycleBond,
    DragEnded,
    DragStarted,
    EditMode,
    Intent,
    InteractionController,
    MoveAtom,
    RemoveAtom,
    RemoveBond,
    SelectionChanged,
)
from core.layout import LayoutParams
from core.model import Molecule, element_style, overvalent_atoms
from gui.live_layout import LiveLayoutTask
from gui.styles import (
    CANVAS_BG,
    CANVAS_BOND,
    CANVAS_EMPTY_TEXT,
    CANVAS_OVERVALENT,
    CANVAS_SELECTED,
)

BOND_LINE_WIDTH = 3.0
BOND_SPACING = 6.0
ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9


def _topology_key(molecule: Molecule) -> Tuple:
    return (
        tuple(atom.id for atom in molecule.atoms),
        tuple((b.id, b.source_atom_id, b.target_atom_id) for b in molecule.bonds),
    )


class MoleculeCanvas(QWidget):
    """
    Draws one molecule. In interactive mode mouse gestures become intents
    applied by the document; a non-editable canvas only lets atoms be
    dragged and the view panned. In live mode a force simulation keeps
    repositioning atoms whenever the topology changes.
    """

    moleculeChanged = pyqtSignal(object)
    selectionChanged = pyqtSignal(object)

    def __init__(
        self,
        document: Optional[MoleculeDocument] = None,
        interactive: bool = True,
        editable: bool = True,
        live_layout: bool = False,
        live_keep_positions: bool = False,
        drag_threshold: float = 0.0,
        layout_params: Optional[LayoutParams] = None,
        empty_text: str = "Añade átomos desde la paleta",
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.document = document or MoleculeDocument()
        self.controller = InteractionController(self.document, drag_threshold=drag_threshold)
        self.interactive = interactive
        self.editable = editable
        self.empty_text = empty_text

        self._live = LiveLayoutTask(
            params=layout_params, keep_positions=live_keep_positions, parent=self
        )
        self._live.tick.connect(self._on_live_tick)
        self._live_enabled = False
        self._topology = _topology_key(self.document.molecule)

        self.document.subscribe(self._on_document_changed)

        self.setMinimumSize(int(self.document.canvas_width), int(self.document.canvas_height))
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.set_live_layout(live_layout)

    @property
    def molecule(self) -> Molecule:
        return self.document.molecule

    @property
    def live_layout(self) -> LiveLayoutTask:
        return self._live

    def set_mode(self, mode: EditMode) -> None:
        self._dispatch(self.controller.set_mode(mode))
        self.update()

    def set_live_layout(self, enabled: bool) -> None:
        self._live_enabled = enabled
        if enabled:
            self._restart_live()
        else:
            self._live.cancel()

    def apply_layout(self, positions: Dict[str, Tuple[float, float]]) -> None:
        """Aplica una disposición calculada fuera del lienzo.

        La simulación en vivo se detiene antes de escribir las posiciones
        para que su siguiente paso no las sobrescriba; vuelve a arrancar con
        la siguiente edición o arrastre.
        """
        self._live.cancel()
        self.document.replace_positions(positions)

    def clear_selection(self) -> None:
        self._dispatch(self.controller.clear_selection())
        self.update()

    def _restart_live(self, keep_positions: Optional[bool] = None) -> None:
        self._live.start(
            self.document.molecule,
            self.document.canvas_width,
            self.document.canvas_height,
            keep_positions=keep_positions,
        )

    # ------------------------------------------------------------------
    # Document plumbing
    # ------------------------------------------------------------------

    def _on_document_changed(self, molecule: Molecule) -> None:
        topology = _topology_key(molecule)
        if topology != self._topology:
            self._topology = topology
            if self._live_enabled:
                self._restart_live()
        else:
            self._live.sync_topology(molecule)
        self.moleculeChanged.emit(molecule)
        self.update()

    def _on_live_tick(self, molecule: Molecule) -> None:
        self.document.replace_positions({atom.id: (atom.x, atom.y) for atom in molecule.atoms})

    def _dispatch(self, intents: List[Intent]) -> None:
        for intent in intents:
            if not self.editable and isinstance(intent, (CycleBond, RemoveAtom, RemoveBond)):
                continue
            if isinstance(intent, SelectionChanged):
                self.selectionChanged.emit(intent.atom_id)
            elif isinstance(intent, DragStarted) and self._live.running:
                atom = self.document.molecule.get_atom(intent.atom_id)
                if atom is not None:
                    self._live.pin(atom.id, atom.x, atom.y)
            elif isinstance(intent, DragEnded) and self._live_enabled:
                self._live.unpin(intent.atom_id)
            self.document.apply(intent)
            if isinstance(intent, MoveAtom) and self._live_enabled:
                if not self._live.running:
                    # A tap never wakes the simulation; the first real move does.
                    self._restart_live(keep_positions=True)
                self._live.pin(intent.atom_id, intent.x, intent.y)

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(CANVAS_BG))

        molecule = self.document.molecule
        if not molecule.atoms:
            painter.setPen(QColor(CANVAS_EMPTY_TEXT))
            painter.drawText(QRectF(self.rect()), Qt.AlignmentFlag.AlignCenter, self.empty_text)
            return

        view = self.document.view
        transform = QTransform()
        transform.translate(view.offset_x, view.offset_y)
        transform.scale(view.scale, view.scale)
        painter.setTransform(transform)

        self._paint_bonds(painter, molecule)
        self._paint_atoms(painter, molecule)

    def _paint_bonds(self, painter: QPainter, molecule: Molecule) -> None:
        pen = QPen(QColor(CANVAS_BOND), BOND_LINE_WIDTH)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        painter.setPen(pen)
        for bond in molecule.bonds:
            a1 = molecule.get_atom(bond.source_atom_id)
            a2 = molecule.get_atom(bond.target_atom_id)
            if a1 is None or a2 is None:
                continue
            dx = a2.x - a1.x
            dy = a2.y - a1.y
            length = math.hypot(dx, dy)
            if length < 1e-6:
                continue
            # Normal unitaria para separar las líneas paralelas.
            nx = -dy / length
            ny = dx / length
            for i in range(bond.order):
                shift = (i - (bond.order - 1) / 2) * BOND_SPACING
                painter.drawLine(
                    QPointF(a1.x + nx * shift, a1.y + ny * shift),
                    QPointF(a2.x + nx * shift, a2.y + ny * shift),
                )

    def _paint_atoms(self, painter: QPainter, molecule: Molecule) -> None:
        flagged = set(overvalent_atoms(molecule))
        selected = self.controller.pending_bond_source_id
        font = QFont("Segoe UI", 11)
        font.setBold(True)
        painter.setFont(font)

        for atom in molecule.atoms:
            style = element_style(atom.element)
            r = style.radius
            rect = QRectF(atom.x - r, atom.y - r, 2 * r, 2 * r)

            if atom.id == selected:
                painter.setPen(QPen(QColor(CANVAS_SELECTED), 3, Qt.PenStyle.DashLine))
                painter.setBrush(Qt.BrushStyle.NoBrush)
                painter.drawEllipse(rect.adjusted(-6, -6, 6, 6))

            border = CANVAS_OVERVALENT if atom.id in flagged else style.border
            painter.setPen(QPen(QColor(border), 2))
            painter.setBrush(QBrush(QColor(style.bg)))
            painter.drawEllipse(rect)

            painter.setPen(QColor(style.text))
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, atom.element.value)

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    @staticmethod
    def _pointer_id(event) -> int:
        if event.pointCount():
            return event.point(0).id()
        return 0

    def mousePressEvent(self, event) -> None:
        if not self.interactive or event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        pos = event.position()
        self._dispatch(self.controller.pointer_down(pos.x(), pos.y(), self._pointer_id(event)))
        if self.controller.state.is_panning:
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
        self.update()

    def mouseMoveEvent(self, event) -> None:
        if not self.interactive or not self.controller.has_capture:
            super().mouseMoveEvent(event)
            return
        pos = event.position()
        self._dispatch(self.controller.pointer_move(pos.x(), pos.y(), self._pointer_id(event)))
        self.update()

    def mouseReleaseEvent(self, event) -> None:
        if not self.interactive or event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return
        pos = event.position()
        self._dispatch(self.controller.pointer_up(pos.x(), pos.y(), self._pointer_id(event)))
        self.setCursor(Qt.CursorShape.ArrowCursor)
        self.update()

    def wheelEvent(self, event: QWheelEvent) -> None:
        if not self.interactive:
            super().wheelEvent(event)
            return
        factor = ZOOM_IN_FACTOR if event.angleDelta().y() > 0 else ZOOM_OUT_FACTOR
        pos = event.position()
        self.document.zoom(factor, pos.x(), pos.y())
        self.update()

    def keyPressEvent(self, event) -> None:
        if event.key() == Qt.Key.Key_Escape:
            self.clear_selection()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event) -> None:
        self._live.cancel()
        self.document.unsubscribe(self._on_document_changed)
        super().closeEvent(event)
