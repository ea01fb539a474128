"""
Test helpers for building API descriptions and generating documents.
"""

from .builders import DOCUMENT_NAME, describe, generate, make_generator, param

__all__ = [
    'DOCUMENT_NAME',
    'describe',
    'generate',
    'make_generator',
    'param',
]
