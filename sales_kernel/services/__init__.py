"""Kernel services -- imperative shell over the database session."""

from sales_kernel.services.sequence_service import SequenceCounter, SequenceService

__all__ = ["SequenceCounter", "SequenceService"]
