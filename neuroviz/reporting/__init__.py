"""Rendering and run reporting."""

from .artifacts import write_manifest
from .summary import compute_auc, summarize_history, write_summary
from .visualizer import MatplotlibVisualizer

__all__ = [
    "MatplotlibVisualizer",
    "compute_auc",
    "summarize_history",
    "write_manifest",
    "write_summary",
]
