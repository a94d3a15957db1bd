"""Assembly of flat Gmail messages into thread documents."""

from .aggregator import SENT_LABEL, aggregate_thread, is_sent_by

__all__ = ["SENT_LABEL", "aggregate_thread", "is_sent_by"]
