"""
TraceBrain - fine-tuning datasets from distributed-trace logs

Pulls traces out of the log store, renders each one as a prompt plus a
heuristic analysis, and serializes the examples as JSONL or CSV.
"""

__version__ = "1.0.0"
