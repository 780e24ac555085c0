from __future__ import annotations

from .mock import MockProvider
from .yahoo import YahooProvider

PROVIDERS = ("yahoo", "mock")


def create_provider(name: str, **kwargs):
    key = (name or "yahoo").strip().lower()
    if key == "yahoo":
        return YahooProvider(**kwargs)
    if key == "mock":
        return MockProvider(**kwargs)
    raise ValueError(f"Unknown data provider: {name!r} (use one of {', '.join(PROVIDERS)})")
