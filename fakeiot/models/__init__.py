"""Data models for the fake IoT simulator."""
