"""
AtomLab Main Window
Builder tab (element palette + editable canvas) and Reaction Lab tab.
"""
import logging
import random
from typing import Optional

from PyQt6.QtWidgets import (
    QButtonGroup,
    QFileDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)
from PyQt6.QtGui import QAction, QKeySequence

from chemcalc.formula import molecular_formula
from chemcalc.mass import molecular_weight
from chemio.errors import LibraryFormatError
from chemio.persistence import MoleculeLibrary
from chemio.prediction import ReactionPredictor
from chemio.rdkit_io import molecule_to_molfile, molecule_to_smiles, smiles_to_molecule
from core.config import AppConfig
from core.document import MoleculeDocument
from core.interaction import EditMode
from core.layout import auto_layout
from core.model import ElementType, Molecule, element_style, new_molecule, overvalent_atoms
from gui.canvas import MoleculeCanvas
from gui.reaction_lab import ReactionLab
from gui.styles import MAIN_STYLESHEET, element_button_stylesheet
from gui.workers import IdentifyWorker

logger = logging.getLogger(__name__)

DEFAULT_NAME = "New Molecule"


class AtomLabWindow(QMainWindow):
    """
    Main window for AtomLab.
    Builds molecules atom by atom, keeps a saved library and sends
    reactants to the reaction predictor.
    """

    def __init__(self, config: Optional[AppConfig] = None, predictor: Optional[ReactionPredictor] = None) -> None:
        super().__init__()
        self.config = config or AppConfig.from_env()
        self.predictor = predictor or ReactionPredictor(self.config)
        self.library = self._load_library(self.config.library_path)
        self.identify_worker: Optional[IdentifyWorker] = None
        self._save_after_identify = False
        self._identifying = False
        self._rng = random.Random()

        self.setWindowTitle("AtomLab - Laboratorio Molecular")
        self.resize(1100, 760)
        self.setStyleSheet(MAIN_STYLESHEET)

        self.document = MoleculeDocument(
            canvas_size=(self.config.canvas_width, self.config.canvas_height),
            history_limit=self.config.history_limit,
        )

        self._create_actions()
        self._create_menu_bar()

        self.tabs = QTabWidget()
        self.tabs.addTab(self._create_builder_tab(), "Constructor")
        self.reaction_lab = ReactionLab(self.library, self.predictor, self.config)
        self.reaction_lab.productSaved.connect(self._on_product_saved)
        self.reaction_lab.loadRequested.connect(self._on_load_into_builder)
        self.reaction_lab.libraryChanged.connect(self._persist_library)
        self.tabs.addTab(self.reaction_lab, "Laboratorio de reacciones")
        self.setCentralWidget(self.tabs)

        self.document.subscribe(self._on_molecule_changed)
        self._on_molecule_changed(self.document.molecule)
        self.statusBar().showMessage("Listo")

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------
    def _create_actions(self) -> None:
        """Initialize all QActions for menus."""
        self.action_open_library = QAction("Abrir biblioteca...", self)
        self.action_open_library.setShortcut(QKeySequence.StandardKey.Open)
        self.action_open_library.triggered.connect(self._on_open_library)

        self.action_save_library = QAction("Guardar biblioteca como...", self)
        self.action_save_library.setShortcut(QKeySequence.StandardKey.SaveAs)
        self.action_save_library.triggered.connect(self._on_save_library_as)

        self.action_import_smiles = QAction("Importar SMILES...", self)
        self.action_import_smiles.triggered.connect(self._on_import_smiles)

        self.action_export_smiles = QAction("Exportar SMILES", self)
        self.action_export_smiles.triggered.connect(self._on_export_smiles)

        self.action_export_mol = QAction("Exportar MOL...", self)
        self.action_export_mol.triggered.connect(self._on_export_mol)

        self.action_quit = QAction("Salir", self)
        self.action_quit.setShortcut(QKeySequence.StandardKey.Quit)
        self.action_quit.triggered.connect(self.close)

        self.action_undo = QAction("Deshacer", self)
        self.action_undo.setShortcut(QKeySequence.StandardKey.Undo)
        self.action_undo.triggered.connect(self._on_undo)

        self.action_clear = QAction("Limpiar lienzo", self)
        self.action_clear.triggered.connect(self._on_clear)

        self.action_auto_layout = QAction("Auto-disposición", self)
        self.action_auto_layout.setShortcut("Ctrl+L")
        self.action_auto_layout.triggered.connect(self._on_auto_layout)

        self.action_live_layout = QAction("Disposición en vivo", self)
        self.action_live_layout.setCheckable(True)
        self.action_live_layout.toggled.connect(self._on_toggle_live_layout)

        self.action_reset_view = QAction("Restablecer vista", self)
        self.action_reset_view.setShortcut("Ctrl+0")
        self.action_reset_view.triggered.connect(self._on_reset_view)

    def _create_menu_bar(self) -> None:
        menubar = self.menuBar()

        file_menu = menubar.addMenu("Archivo")
        file_menu.addAction(self.action_open_library)
        file_menu.addAction(self.action_save_library)
        file_menu.addSeparator()
        file_menu.addAction(self.action_import_smiles)
        file_menu.addAction(self.action_export_smiles)
        file_menu.addAction(self.action_export_mol)
        file_menu.addSeparator()
        file_menu.addAction(self.action_quit)

        edit_menu = menubar.addMenu("Editar")
        edit_menu.addAction(self.action_undo)
        edit_menu.addAction(self.action_clear)
        edit_menu.addSeparator()
        edit_menu.addAction(self.action_auto_layout)

        view_menu = menubar.addMenu("Ver")
        view_menu.addAction(self.action_live_layout)
        view_menu.addAction(self.action_reset_view)

    def _create_builder_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        # Paleta de elementos y modo
        palette_row = QHBoxLayout()
        palette_row.addWidget(QLabel("Elementos"))
        for element in ElementType:
            style = element_style(element)
            btn = QPushButton(element.value)
            btn.setToolTip(f"Añadir {element.value}")
            btn.setStyleSheet(element_button_stylesheet(style.bg, style.border, style.text))
            btn.clicked.connect(lambda _checked=False, el=element: self.add_atom(el))
            palette_row.addWidget(btn)
        palette_row.addStretch(1)

        self.build_btn = QPushButton("Construir")
        self.build_btn.setCheckable(True)
        self.build_btn.setProperty("flat", True)
        self.erase_btn = QPushButton("Borrar")
        self.erase_btn.setObjectName("eraseButton")
        self.erase_btn.setCheckable(True)
        self.erase_btn.setProperty("flat", True)
        self.mode_group = QButtonGroup(self)
        self.mode_group.setExclusive(True)
        self.mode_group.addButton(self.build_btn)
        self.mode_group.addButton(self.erase_btn)
        self.build_btn.setChecked(True)
        self.build_btn.clicked.connect(lambda: self.set_mode(EditMode.BUILD))
        self.erase_btn.clicked.connect(lambda: self.set_mode(EditMode.ERASE))
        palette_row.addWidget(self.build_btn)
        palette_row.addWidget(self.erase_btn)

        self.undo_btn = QPushButton("Deshacer")
        self.undo_btn.setProperty("flat", True)
        self.undo_btn.clicked.connect(self._on_undo)
        palette_row.addWidget(self.undo_btn)
        layout.addLayout(palette_row)

        hint = QLabel(
            "Clic en un átomo y luego en otro para enlazarlos; repite para doble o triple. "
            "Arrastra para mover, arrastra el fondo para desplazar y usa la rueda para el zoom."
        )
        hint.setWordWrap(True)
        layout.addWidget(hint)

        name_row = QHBoxLayout()
        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText("Nombre de la molécula")
        self.name_edit.editingFinished.connect(self._on_name_edited)
        name_row.addWidget(self.name_edit, 1)
        self.formula_label = QLabel("")
        name_row.addWidget(self.formula_label)
        layout.addLayout(name_row)

        self.canvas = MoleculeCanvas(
            self.document,
            live_keep_positions=True,
            drag_threshold=self.config.drag_threshold,
        )
        layout.addWidget(self.canvas, 1)

        actions_row = QHBoxLayout()
        actions_row.addStretch(1)
        layout_btn = QPushButton("Auto-disposición")
        layout_btn.setProperty("flat", True)
        layout_btn.clicked.connect(self._on_auto_layout)
        actions_row.addWidget(layout_btn)
        identify_btn = QPushButton("Identificar")
        identify_btn.setProperty("flat", True)
        identify_btn.clicked.connect(self._on_identify)
        actions_row.addWidget(identify_btn)
        clear_btn = QPushButton("Limpiar")
        clear_btn.setProperty("flat", True)
        clear_btn.clicked.connect(self._on_clear)
        actions_row.addWidget(clear_btn)
        self.save_btn = QPushButton("Guardar molécula")
        self.save_btn.clicked.connect(self._on_save_molecule)
        actions_row.addWidget(self.save_btn)
        layout.addLayout(actions_row)
        return tab

    # -------------------------------------------------------------------------
    # Builder
    # -------------------------------------------------------------------------
    def add_atom(self, element: ElementType) -> None:
        """Añade un átomo; si se estaba borrando, vuelve al modo construir."""
        if self.canvas.controller.mode == EditMode.ERASE:
            self.set_mode(EditMode.BUILD)
        self.document.add_atom(element, rng=self._rng, jitter=self.config.add_atom_jitter)

    def set_mode(self, mode: EditMode) -> None:
        self.canvas.set_mode(mode)
        self.build_btn.setChecked(mode == EditMode.BUILD)
        self.erase_btn.setChecked(mode == EditMode.ERASE)
        self.statusBar().showMessage(
            "Modo borrar: clic en un átomo o enlace para eliminarlo"
            if mode == EditMode.ERASE
            else "Modo construir"
        )

    def _on_molecule_changed(self, molecule: Molecule) -> None:
        if self.name_edit.text() != molecule.name:
            self.name_edit.setText(molecule.name)
        if molecule.atoms:
            text = f"{molecular_formula(molecule)}  ·  {molecular_weight(molecule):.2f} g/mol"
            flagged = overvalent_atoms(molecule)
            if flagged:
                text += f"  ·  {len(flagged)} átomo(s) con valencia excedida"
            self.formula_label.setText(text)
        else:
            self.formula_label.setText("")
        self.undo_btn.setEnabled(self.document.history.can_undo)
        self.action_undo.setEnabled(self.document.history.can_undo)
        self.save_btn.setEnabled(bool(molecule.atoms))

    def _on_name_edited(self) -> None:
        self.document.rename(self.name_edit.text())

    def _on_undo(self) -> None:
        if self.document.undo():
            self.statusBar().showMessage("Deshecho")

    def _on_clear(self) -> None:
        self.document.clear(DEFAULT_NAME)
        self.statusBar().showMessage("Lienzo limpio")

    def _on_auto_layout(self) -> None:
        molecule = self.document.molecule
        if not molecule.atoms:
            return
        laid_out = auto_layout(
            molecule,
            self.document.canvas_width,
            self.document.canvas_height,
            params=self.config.layout,
        )
        self.canvas.apply_layout({atom.id: (atom.x, atom.y) for atom in laid_out.atoms})
        self.statusBar().showMessage("Disposición aplicada")

    def _on_toggle_live_layout(self, checked: bool) -> None:
        self.canvas.set_live_layout(checked)

    def _on_reset_view(self) -> None:
        self.document.reset_view()
        self.canvas.update()

    def _on_identify(self, save_after: bool = False) -> None:
        molecule = self.document.molecule
        if not molecule.atoms or self._identifying:
            return
        self._save_after_identify = save_after
        self.statusBar().showMessage("Identificando molécula...")
        self._identifying = True
        self.identify_worker = IdentifyWorker(self.predictor, molecule, parent=self)
        self.identify_worker.finished.connect(self._on_identified)
        self.identify_worker.start()

    def _on_identified(self, molecule: Molecule, name: str) -> None:
        self._identifying = False
        save_after = self._save_after_identify
        self._save_after_identify = False
        # Si el lienzo cambió de molécula mientras tanto, se descarta el nombre.
        if self.document.molecule.id != molecule.id:
            return
        self.document.rename(name)
        if save_after:
            self._store_current()
        else:
            self.statusBar().showMessage(f"Identificado: {name}")

    def _on_save_molecule(self) -> None:
        """Guarda la molécula actual; sin nombre propio, primero se identifica."""
        molecule = self.document.molecule
        if not molecule.atoms:
            return
        name = molecule.name.strip()
        if not name or name == DEFAULT_NAME:
            self._on_identify(save_after=True)
            return
        self._store_current()

    def _store_current(self) -> None:
        """Guarda con un ID nuevo en la biblioteca y deja el lienzo vacío."""
        molecule = self.document.molecule
        name = molecule.name.strip() or molecular_formula(molecule)
        saved = self._add_to_library(molecule, name)
        self.document.clear(DEFAULT_NAME)
        self.statusBar().showMessage(f"Guardado en la biblioteca: {saved.name}")

    def _add_to_library(self, molecule: Molecule, name: str) -> Molecule:
        fresh = new_molecule(name)
        saved = self.library.upsert(
            Molecule(id=fresh.id, name=name, atoms=molecule.atoms, bonds=molecule.bonds)
        )
        self._persist_library()
        self.reaction_lab.refresh_inventory()
        return saved

    # -------------------------------------------------------------------------
    # Library
    # -------------------------------------------------------------------------
    def _load_library(self, filepath: str) -> MoleculeLibrary:
        try:
            return MoleculeLibrary.load_from_file(filepath)
        except (LibraryFormatError, OSError) as e:
            logger.warning("Could not load library %s: %s", filepath, e)
            return MoleculeLibrary()

    def _persist_library(self) -> None:
        try:
            self.library.save_to_file(self.config.library_path)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"No se pudo guardar la biblioteca:\n{e}")

    def _on_product_saved(self, product: Molecule) -> None:
        self._add_to_library(product, product.name)
        self.statusBar().showMessage(f"Producto guardado: {product.name}")

    def _on_load_into_builder(self, molecule: Molecule) -> None:
        self.document.load(molecule)
        self.tabs.setCurrentIndex(0)
        self.statusBar().showMessage(f"Editando: {molecule.name}")

    def _on_open_library(self) -> None:
        filepath, _ = QFileDialog.getOpenFileName(
            self,
            "Abrir biblioteca",
            "",
            "Biblioteca AtomLab (*.json);;Todos los archivos (*.*)"
        )
        if not filepath:
            return
        try:
            library = MoleculeLibrary.load_from_file(filepath)
        except (LibraryFormatError, OSError) as e:
            QMessageBox.critical(self, "Error", f"No se pudo abrir la biblioteca:\n{e}")
            return
        for molecule in library:
            self.library.upsert(molecule)
        self._persist_library()
        self.reaction_lab.refresh_inventory()
        self.statusBar().showMessage(f"Abierto: {filepath}")

    def _on_save_library_as(self) -> None:
        filepath, _ = QFileDialog.getSaveFileName(
            self,
            "Guardar biblioteca",
            "",
            "Biblioteca AtomLab (*.json);;Todos los archivos (*.*)"
        )
        if filepath:
            try:
                self.library.save_to_file(filepath)
                self.statusBar().showMessage(f"Guardado: {filepath}")
            except OSError as e:
                QMessageBox.critical(self, "Error", f"No se pudo guardar:\n{e}")

    # -------------------------------------------------------------------------
    # RDKit
    # -------------------------------------------------------------------------
    def _on_import_smiles(self) -> None:
        """Import a molecule from a SMILES string."""
        smiles, ok = QInputDialog.getText(self, "Importar SMILES", "SMILES:")
        if not ok or not smiles.strip():
            return
        try:
            molecule = smiles_to_molecule(
                smiles.strip(),
                self.document.canvas_width,
                self.document.canvas_height,
                params=self.config.layout,
            )
        except (RuntimeError, ValueError) as e:
            QMessageBox.critical(self, "Error", f"No se pudo importar SMILES:\n{e}")
            return
        self.document.replace(molecule)
        self.statusBar().showMessage("SMILES importado")

    def _on_export_smiles(self) -> None:
        """Export the current molecule as SMILES."""
        try:
            smiles = molecule_to_smiles(self.document.molecule)
        except RuntimeError as e:
            QMessageBox.critical(self, "Error", f"No se pudo exportar SMILES:\n{e}")
            return
        QMessageBox.information(self, "SMILES", smiles)

    def _on_export_mol(self) -> None:
        filepath, _ = QFileDialog.getSaveFileName(
            self,
            "Exportar MOL",
            "",
            "Archivo MOL (*.mol);;Todos los archivos (*.*)"
        )
        if not filepath:
            return
        try:
            molfile = molecule_to_molfile(self.document.molecule)
            with open(filepath, "w") as f:
                f.write(molfile)
            self.statusBar().showMessage(f"Exportado: {filepath}")
        except (RuntimeError, OSError) as e:
            QMessageBox.critical(self, "Error", f"No se pudo exportar:\n{e}")

    def closeEvent(self, event) -> None:
        self.canvas.live_layout.cancel()
        super().closeEvent(event)
