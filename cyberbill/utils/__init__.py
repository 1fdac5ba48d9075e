from .formatting import format_currency

__all__ = ["format_currency"]
