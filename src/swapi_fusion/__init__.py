"""SWAPI Fusion - Star Wars characters fused with real-world weather."""

__version__ = "1.0.0"
