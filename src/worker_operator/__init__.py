"""Operator that builds and deploys worker processes onto a referenced cluster."""

__version__ = "0.3.0"
