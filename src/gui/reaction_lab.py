"""
AtomLab Reaction Lab
Inventory of saved molecules, reactant selection and product previews.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from chemcalc.formula import molecular_formula
from chemio.persistence import MoleculeLibrary
from chemio.prediction import ReactionPredictor, ReactionResult
from core.config import AppConfig
from core.document import MoleculeDocument
from core.model import Molecule
from gui.canvas import MoleculeCanvas
from gui.workers import PredictionWorker

logger = logging.getLogger(__name__)

EMPTY_INVENTORY_TEXT = "Aún no hay moléculas. ¡Construye alguna en el editor!"


class ProductCard(QWidget):
    """Vista previa de un producto con disposición en vivo y botón para guardarlo."""

    saveRequested = pyqtSignal(object)

    def __init__(self, product: Molecule, config: AppConfig, parent=None) -> None:
        super().__init__(parent)
        self.product = product
        document = MoleculeDocument(
            product,
            canvas_size=(config.product_width, config.product_height),
            history_limit=1,
        )
        self.canvas = MoleculeCanvas(
            document,
            interactive=True,
            editable=False,
            live_layout=True,
            drag_threshold=config.drag_threshold,
            empty_text="Producto sin estructura",
        )

        layout = QVBoxLayout(self)
        layout.addWidget(self.canvas)
        name = QLabel(product.name)
        name.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(name)
        save_btn = QPushButton("Guardar en inventario")
        save_btn.setProperty("flat", True)
        save_btn.clicked.connect(lambda: self.saveRequested.emit(self.canvas.molecule))
        layout.addWidget(save_btn)


class ReactionLab(QWidget):
    """
    Second tab: pick reactants from the library and ask the predictor for
    products. A failed prediction shows one error message and no products.
    """

    productSaved = pyqtSignal(object)
    loadRequested = pyqtSignal(object)
    libraryChanged = pyqtSignal()

    def __init__(
        self,
        library: MoleculeLibrary,
        predictor: ReactionPredictor,
        config: Optional[AppConfig] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.library = library
        self.predictor = predictor
        self.config = config or predictor.config
        self.worker: Optional[PredictionWorker] = None
        self._pending = False
        self.result: Optional[ReactionResult] = None
        self._cards: List[ProductCard] = []

        self._build_ui()
        self.refresh_inventory()

    def _build_ui(self) -> None:
        root = QHBoxLayout(self)

        # Inventario
        left = QVBoxLayout()
        left.addWidget(QLabel("Inventario"))
        self.inventory = QListWidget()
        self.inventory.itemChanged.connect(self._on_item_changed)
        left.addWidget(self.inventory, 1)
        self.empty_label = QLabel(EMPTY_INVENTORY_TEXT)
        self.empty_label.setWordWrap(True)
        left.addWidget(self.empty_label)

        inv_buttons = QHBoxLayout()
        self.load_btn = QPushButton("Editar")
        self.load_btn.setProperty("flat", True)
        self.load_btn.clicked.connect(self._on_load_clicked)
        inv_buttons.addWidget(self.load_btn)
        self.remove_btn = QPushButton("Eliminar")
        self.remove_btn.setProperty("flat", True)
        self.remove_btn.clicked.connect(self._on_remove_clicked)
        inv_buttons.addWidget(self.remove_btn)
        left.addLayout(inv_buttons)
        root.addLayout(left, 1)

        # Cámara de reacción
        right = QVBoxLayout()
        self.reactants_label = QLabel("Selecciona reactivos del inventario...")
        self.reactants_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        right.addWidget(self.reactants_label)

        buttons = QHBoxLayout()
        self.react_btn = QPushButton("Simular reacción")
        self.react_btn.clicked.connect(self.run_reaction)
        buttons.addWidget(self.react_btn)
        self.reset_btn = QPushButton("Nueva reacción")
        self.reset_btn.setProperty("flat", True)
        self.reset_btn.clicked.connect(self.reset)
        buttons.addWidget(self.reset_btn)
        right.addLayout(buttons)

        self.status_label = QLabel("")
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        right.addWidget(self.status_label)

        self.error_label = QLabel("")
        self.error_label.setObjectName("errorLabel")
        self.error_label.setWordWrap(True)
        self.error_label.hide()
        right.addWidget(self.error_label)

        self.equation_label = QLabel("")
        self.equation_label.setObjectName("equationLabel")
        self.equation_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        right.addWidget(self.equation_label)

        self.explanation_label = QLabel("")
        self.explanation_label.setObjectName("explanationLabel")
        self.explanation_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.explanation_label.setWordWrap(True)
        right.addWidget(self.explanation_label)

        self.products_host = QWidget()
        self.products_layout = QHBoxLayout(self.products_host)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.products_host)
        right.addWidget(scroll, 1)
        root.addLayout(right, 3)

        self._update_buttons()

    # ------------------------------------------------------------------
    # Inventario
    # ------------------------------------------------------------------

    def refresh_inventory(self) -> None:
        """Reconstruye la lista conservando los reactivos marcados que sigan existiendo."""
        checked = set(self.selected_ids())
        self.inventory.blockSignals(True)
        self.inventory.clear()
        for molecule in self.library:
            formula = molecule.formula or molecular_formula(molecule)
            item = QListWidgetItem(f"{molecule.name or 'Sin nombre'} ({formula})")
            item.setData(Qt.ItemDataRole.UserRole, molecule.id)
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            state = Qt.CheckState.Checked if molecule.id in checked else Qt.CheckState.Unchecked
            item.setCheckState(state)
            self.inventory.addItem(item)
        self.inventory.blockSignals(False)
        self.empty_label.setVisible(len(self.library) == 0)
        self._on_item_changed()

    def selected_ids(self) -> List[str]:
        ids = []
        for row in range(self.inventory.count()):
            item = self.inventory.item(row)
            if item.checkState() == Qt.CheckState.Checked:
                ids.append(item.data(Qt.ItemDataRole.UserRole))
        return ids

    def reactants(self) -> List[Molecule]:
        reactants = []
        for molecule_id in self.selected_ids():
            molecule = self.library.get(molecule_id)
            if molecule is not None:
                reactants.append(molecule)
        return reactants

    def _current_id(self) -> Optional[str]:
        item = self.inventory.currentItem()
        return item.data(Qt.ItemDataRole.UserRole) if item is not None else None

    def _on_item_changed(self, *_args) -> None:
        names = [m.name or "Sin nombre" for m in self.reactants()]
        if names:
            self.reactants_label.setText("  +  ".join(names))
        else:
            self.reactants_label.setText("Selecciona reactivos del inventario...")
        self._update_buttons()

    def _on_load_clicked(self) -> None:
        molecule_id = self._current_id()
        molecule = self.library.get(molecule_id) if molecule_id else None
        if molecule is not None:
            self.loadRequested.emit(molecule)

    def _on_remove_clicked(self) -> None:
        molecule_id = self._current_id()
        if molecule_id and self.library.remove(molecule_id):
            self.refresh_inventory()
            self.libraryChanged.emit()

    # ------------------------------------------------------------------
    # Reacción
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._pending

    def _update_buttons(self) -> None:
        self.react_btn.setEnabled(bool(self.selected_ids()) and not self.busy)
        self.reset_btn.setEnabled(self.result is not None or self.error_label.isVisible())

    def run_reaction(self) -> None:
        reactants = self.reactants()
        if not reactants or self.busy:
            return
        self._clear_result()
        self.status_label.setText("Consultando al químico virtual...")
        self._pending = True
        self.worker = PredictionWorker(self.predictor, reactants, parent=self)
        self.worker.finished.connect(self.show_result)
        self.worker.error.connect(self.show_error)
        self.worker.start()
        self._update_buttons()

    def show_result(self, result: ReactionResult) -> None:
        self._pending = False
        self.status_label.setText("")
        self.error_label.hide()
        self.result = result
        self.equation_label.setText(result.equation)
        self.explanation_label.setText(result.explanation)
        for product in result.products:
            card = ProductCard(product, self.config)
            card.saveRequested.connect(self.productSaved.emit)
            self.products_layout.addWidget(card)
            self._cards.append(card)
        logger.info("Reaction produced %d products", len(result.products))
        self._update_buttons()

    def show_error(self, message: str) -> None:
        self._pending = False
        self._clear_result()
        self.status_label.setText("")
        self.error_label.setText(message)
        self.error_label.show()
        self._update_buttons()

    def reset(self) -> None:
        """Descarta el resultado y desmarca todos los reactivos."""
        self._clear_result()
        self.inventory.blockSignals(True)
        for row in range(self.inventory.count()):
            self.inventory.item(row).setCheckState(Qt.CheckState.Unchecked)
        self.inventory.blockSignals(False)
        self._on_item_changed()

    def _clear_result(self) -> None:
        self.result = None
        self.error_label.hide()
        self.equation_label.setText("")
        self.explanation_label.setText("")
        for card in self._cards:
            card.canvas.live_layout.cancel()
            self.products_layout.removeWidget(card)
            card.deleteLater()
        self._cards = []
