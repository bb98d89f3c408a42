"""Game domain services: directory, scoring, phases, broadcasting, reaping.

This package contains pure(ish) domain logic that is driven by the
Socket.IO handlers and the status routes, keeping transport concerns
separated from core game mechanics.
"""
