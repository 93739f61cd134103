"""Aura doubles tournament core.

Balanced round pairings, Gaussian skill ratings with live win probability,
and a rally-scoring state machine with undo.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
