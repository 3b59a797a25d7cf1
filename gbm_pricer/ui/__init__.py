"""User interface helpers for GBM option pricing."""

from .interactive import run_interactive_wizard

__all__ = ["run_interactive_wizard"]
