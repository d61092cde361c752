"""Helpers for the fake IoT simulator."""
