"""Observability utilities for the compliance interview service."""
from .logger import log_event

__all__ = ["log_event"]
