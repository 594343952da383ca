"""Cluster membership primitives shared by synchronization and monitoring."""

from .bitvector import NodeBitVector

__all__ = ["NodeBitVector"]
