"""Service layer exports."""

from . import enhancer, events, normalizer, openrouter, structure, templates

__all__ = ["enhancer", "events", "normalizer", "openrouter", "structure", "templates"]
