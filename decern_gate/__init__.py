"""decern-gate - high-impact change gate for CI"""

__version__ = "1.0.0"
