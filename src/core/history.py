"""Historial de instantáneas para deshacer cambios estructurales."""

from __future__ import annotations

from typing import List, Optional

from core.model import Molecule


class HistorySnapshotter:
    """Pila acotada de moléculas previas a cada mutación estructural.

    Las moléculas son inmutables, así que guardar una instantánea es
    guardar una referencia.
    """

    def __init__(self, limit: int = 100) -> None:
        self.limit = max(1, int(limit))
        self._stack: List[Molecule] = []

    def push(self, molecule: Molecule) -> None:
        self._stack.append(molecule)
        if len(self._stack) > self.limit:
            del self._stack[0]

    def pop(self) -> Optional[Molecule]:
        """Extrae la última instantánea, o `None` si la pila está vacía."""
        if not self._stack:
            return None
        return self._stack.pop()

    def peek(self) -> Optional[Molecule]:
        return self._stack[-1] if self._stack else None

    @property
    def can_undo(self) -> bool:
        return bool(self._stack)

    def clear(self) -> None:
        self._stack.clear()

    def __len__(self) -> int:
        return len(self._stack)
