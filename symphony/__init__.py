"""Issue-driven agent orchestration: workflows, dispatch, retries, snapshots and dashboard HTML."""

__version__ = "0.1.0"