"""projtrack: unified project records and the legacy migration engine."""

__version__ = "0.1.0"
