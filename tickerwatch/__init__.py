"""Top-level package for the live ticker viewer.

Subpackages mirror the polling pipeline: ``data_feed`` talks to the exchange
REST APIs, ``market`` diffs/joins/sorts snapshots, ``runtime`` owns the per-view
state and the polling scheduler.
"""

__all__: list[str] = []
