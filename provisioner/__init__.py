"""Participant provisioning service for a virtualized EDC control plane."""

__version__ = "0.1.0"
