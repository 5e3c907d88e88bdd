"""
Scanpy-style tools for clustertree.

This module provides scanpy-compatible cluster tree functions following the
same patterns as scanpy.tl for seamless integration.
"""

from .cluster_tree import cluster_tree

__all__ = [
    'cluster_tree'
]
