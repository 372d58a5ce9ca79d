"""FlexiDesk shared library: models, upstream client and view services."""

__version__ = "0.1.0"
