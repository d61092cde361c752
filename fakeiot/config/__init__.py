"""Configuration for the fake IoT simulator."""
