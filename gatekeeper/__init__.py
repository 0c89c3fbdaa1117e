"""Gatekeeper: policy based authorization service."""

__version__ = "1.0.0"
