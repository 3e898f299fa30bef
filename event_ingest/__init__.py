"""
Event Ingest - HTTP endpoint accepting JSON event envelopes.
"""

__version__ = "0.1.0"
