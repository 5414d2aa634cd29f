"""
Persistence package for the RBAC Service.

The policy lives in a single CSV file holding permission (``p``) and
grouping (``g``) rows. The adapter reads and writes it losslessly and
atomically; the rule store decides what the rows mean.
"""

from .csv_file import CSVPolicyAdapter, PolicyRow

__all__ = ["CSVPolicyAdapter", "PolicyRow"]
