"""DODGER - pointer-controlled falling-obstacle survival game."""

__version__ = "0.1.0"
