"""Lending-protocol liquidation tracker: values liquidation events and stores them once."""

__version__ = "0.1.0"
