"""Kernel services (write-side infrastructure)."""

from erp_kernel.services.sequence_service import SequenceCounter, SequenceService, Series

__all__ = [
    "SequenceCounter",
    "SequenceService",
    "Series",
]
