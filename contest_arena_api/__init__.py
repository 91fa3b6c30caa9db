"""
Top‑level package for the Contest Arena API.

This file makes ``contest_arena_api`` a Python package so that
modules within ``app`` can be imported using fully qualified names
like ``contest_arena_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
