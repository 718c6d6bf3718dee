"""Core infrastructure: configuration, logging, row model, export, reference host."""
