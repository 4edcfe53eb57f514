"""ICT Lens — Fair Value Gap detection and confluence scoring backend."""

__version__ = "1.0.0"
