"""ceilidh — dance reference viewer and calling aid."""

__version__ = "0.1.0"
