"""Settings drift detection and reconciliation for a town workspace."""
from .check import CHECK_NAME, SettingsCheck
from .model import Finding, FixOutcome, ReconcileError, Report, ReportStatus, VcsStatus
from .topology import DEFAULT_TOPOLOGY, Scope, TopologyEntry

__all__ = [
    "CHECK_NAME",
    "DEFAULT_TOPOLOGY",
    "Finding",
    "FixOutcome",
    "ReconcileError",
    "Report",
    "ReportStatus",
    "Scope",
    "SettingsCheck",
    "TopologyEntry",
    "VcsStatus",
]
