"""flightcore - plugin installer for Northstar mods."""

__version__ = "0.1.0"
