"""
Service layer.

Services hold the business rules and depend on repositories and the
payment gateway handed to them at construction time; see
``core.container`` for how a process wires them together.
"""
