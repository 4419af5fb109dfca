"""Configuration models for safezone."""

from safezone.models.retry import RetryPolicy

__all__ = ["RetryPolicy"]
