"""fleetview - dynamic resource access core for a multi-cluster dashboard."""

__version__ = "0.1.0"
