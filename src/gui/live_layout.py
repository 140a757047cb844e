"""
AtomLab Live Layout
Tick-by-tick force layout driven by a QTimer on the UI event loop.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from core.layout import LayoutParams, Simulation
from core.model import Molecule


class LiveLayoutTask(QObject):
    """
    Runs one Simulation per viewer, one step per timer tick.
    Stops on convergence, after `live_duration` seconds, on cancel(),
    or when start() is called again.
    """

    tick = pyqtSignal(object)
    finished = pyqtSignal()

    def __init__(
        self,
        params: Optional[LayoutParams] = None,
        clock: Callable[[], float] = time.monotonic,
        keep_positions: bool = False,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.params = params or LayoutParams.live()
        self.keep_positions = keep_positions
        self._clock = clock
        self._timer = QTimer(self)
        self._timer.setInterval(self.params.tick_interval_ms)
        self._timer.timeout.connect(self._on_timeout)
        self._simulation: Optional[Simulation] = None
        self._molecule: Optional[Molecule] = None
        self._deadline = 0.0

    @property
    def running(self) -> bool:
        return self._simulation is not None and not self._simulation.stopped

    @property
    def simulation(self) -> Optional[Simulation]:
        return self._simulation

    def start(
        self,
        molecule: Molecule,
        width: float,
        height: float,
        seed: Optional[int] = None,
        keep_positions: Optional[bool] = None,
    ) -> None:
        """
        Seeds nodes around the canvas center unless keep_positions (or the
        task default) asks to continue from the current drawing.
        """
        # Only one simulation may write to this viewer's nodes.
        self.cancel()
        if not molecule.atoms:
            return
        if keep_positions is None:
            keep_positions = self.keep_positions
        self._molecule = molecule
        self._simulation = Simulation(
            molecule, width, height, params=self.params, seed=seed, keep_positions=keep_positions
        )
        self._deadline = self._clock() + self.params.live_duration
        self._timer.start()

    def cancel(self) -> None:
        was_running = self.running
        self._timer.stop()
        if self._simulation is not None:
            self._simulation.stop()
        if was_running:
            self.finished.emit()

    def pin(self, atom_id: str, x: float, y: float) -> None:
        if self.running:
            self._simulation.pin(atom_id, x, y)

    def unpin(self, atom_id: str) -> None:
        if self._simulation is not None:
            self._simulation.unpin(atom_id)

    def sync_topology(self, molecule: Molecule) -> None:
        """Keep emitting ticks against the caller's latest molecule value."""
        self._molecule = molecule

    def _on_timeout(self) -> None:
        simulation = self._simulation
        if simulation is None or simulation.stopped or self._molecule is None:
            self._timer.stop()
            return
        simulation.tick()
        self.tick.emit(simulation.apply_to(self._molecule))
        if simulation.converged or self._clock() >= self._deadline:
            self.cancel()
