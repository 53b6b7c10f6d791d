"""wRVU Comp - Physician compensation calculation engine."""

__version__ = "0.1.0"
