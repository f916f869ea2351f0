"""Shared library for the Yamaha volume service: conversions, amplifier client, state."""
