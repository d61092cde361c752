"""
Fake IoT device simulator.
Emits per-user activity metrics to an HTTPS ingestion endpoint and runs
compliance checks against it.
"""

__version__ = "0.1.0"
