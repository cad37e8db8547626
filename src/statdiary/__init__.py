"""stat-diary — durable wellbeing diary with rollup statistics."""

__version__ = "0.1.0"
