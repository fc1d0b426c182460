"""Study builder - define studies as ordered sequences of typed blocks."""

__version__ = "0.1.0"
