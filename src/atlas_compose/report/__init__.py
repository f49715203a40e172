"""
Saídas de diagnóstico de uma passada.
"""

from .diagnostics import build_diagnostics, render_diagnostics_text

__all__ = ["build_diagnostics", "render_diagnostics_text"]
