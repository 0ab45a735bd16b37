# HTTP surface for the gateway

from .app import create_app, ValueSubmission

__all__ = [
    "create_app",
    "ValueSubmission",
]
