from .retry import is_transient, retry

__all__ = ["is_transient", "retry"]
