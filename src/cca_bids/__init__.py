"""Resolve CCA bid parameters from a TOML config file and command-line overrides."""

__version__ = "0.1.0"
