"""Version 1 of the Contest Arena HTTP API."""
