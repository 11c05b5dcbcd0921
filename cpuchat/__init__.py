"""A register-machine simulator and a two-party TCP chat relay."""

__version__ = "0.1.0"
__all__ = ["__version__"]