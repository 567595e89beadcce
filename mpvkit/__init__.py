"""Allocation contexts, timers, synchronisation, terminal key decoding and console helpers."""

__version__ = "0.1.0"