"""
Scanpy-compatible interface for clustertree.

This module provides scanpy-style functions and interfaces to make clustertree
methods easily accessible to users familiar with scanpy's API.
"""

from . import tl

__all__ = ['tl']
