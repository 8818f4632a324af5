"""PriceDrop product extraction engine."""

__version__ = "0.1.0"
