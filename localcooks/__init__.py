"""LocalCooks site backend: newsletter and contact double opt-in."""

__version__ = "0.1.0"
