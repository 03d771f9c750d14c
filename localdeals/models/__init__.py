from localdeals.models.deal import Deal

__all__ = [
    "Deal",
]
