"""Patience-based early stopping on validation loss."""

from __future__ import annotations

from typing import Optional


class EarlyStopping:
    """Track the best validation loss and count epochs without improvement."""

    def __init__(self) -> None:
        self.best_val_loss: Optional[float] = None
        self.epochs_without_improvement = 0

    def check(self, val_loss: Optional[float], patience: int) -> bool:
        """Record ``val_loss`` and return ``True`` when training should stop."""

        if patience <= 0 or val_loss is None:
            return False
        if self.best_val_loss is None or val_loss < self.best_val_loss:
            self.best_val_loss = val_loss
            self.epochs_without_improvement = 0
            return False
        self.epochs_without_improvement += 1
        return self.epochs_without_improvement >= patience

    def reset(self) -> None:
        self.best_val_loss = None
        self.epochs_without_improvement = 0


__all__ = ["EarlyStopping"]
