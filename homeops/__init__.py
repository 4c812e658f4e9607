"""HomeOps calendar engine: recurrence, repeat batches and unified calendar aggregation."""

__version__ = "1.0.0"
