"""factoryline: manifest-driven pipeline orchestration for the code-generation factory."""

__version__ = "0.1.0"
