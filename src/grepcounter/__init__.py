"""
GrepCounter: windowed pattern-match counting for log pipelines.

Counts records matching configured regular expressions per tag over a
tumbling time window and emits a summary record for every window whose
count passes the configured threshold.
"""

__version__ = "0.1.0"
