"""Personnel document compliance tracker.

Catalog of required document types, per-employee requirements, the
submit/approve/reject workflow, calendar-aware expiry and the sweep that
expires stale approvals.
"""

__version__ = "0.1.0"
