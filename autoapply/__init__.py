"""Job application autopilot: queue postings, render them, draft the paperwork."""

__version__ = "0.1.0"
