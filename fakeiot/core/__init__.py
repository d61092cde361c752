"""Client, simulation driver, compliance harness and runner."""
