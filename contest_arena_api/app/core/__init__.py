"""Core infrastructure: settings, logging, storage, security and wiring."""
