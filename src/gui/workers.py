"""Hilos de trabajo para las llamadas al servicio generativo.

La red nunca se consulta desde el hilo de la interfaz: cada petición corre
en un `QThread` y devuelve el resultado mediante señales.
"""

from typing import List

from PyQt6.QtCore import QThread, pyqtSignal

from chemio.errors import PredictionError
from chemio.prediction import PREDICTION_FAILED_MESSAGE, ReactionPredictor
from core.model import Molecule


class PredictionWorker(QThread):
    """Predice una reacción; emite `finished(ReactionResult)` o `error(str)`."""

    finished = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, predictor: ReactionPredictor, reactants: List[Molecule], parent=None):
        super().__init__(parent)
        self.predictor = predictor
        self.reactants = list(reactants)

    def run(self):
        try:
            result = self.predictor.predict_products(self.reactants)
        except PredictionError as e:
            self.error.emit(str(e) or PREDICTION_FAILED_MESSAGE)
            return
        self.finished.emit(result)


class IdentifyWorker(QThread):
    """Identifica el nombre de una molécula; siempre emite un texto."""

    finished = pyqtSignal(object, str)

    def __init__(self, predictor: ReactionPredictor, molecule: Molecule, parent=None):
        super().__init__(parent)
        self.predictor = predictor
        self.molecule = molecule

    def run(self):
        self.finished.emit(self.molecule, self.predictor.identify_name(self.molecule))
