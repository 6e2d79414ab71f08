"""Per-request context, handler chains, request input and response rendering."""

__version__ = "0.1.0"

__all__ = ["bytesconv", "context", "debug", "errors", "fs", "inputs", "rendering", "wire"]