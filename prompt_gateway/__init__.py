"""Prompt enhancement gateway: one pipeline, several transports."""

__version__ = "1.0.0"
