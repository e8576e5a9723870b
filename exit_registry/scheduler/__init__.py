"""Scheduling adapters."""

from .apsched_adapter import INGESTION_JOB_ID, APSchedulerAdapter

__all__ = ["APSchedulerAdapter", "INGESTION_JOB_ID"]
