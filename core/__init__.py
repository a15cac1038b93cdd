"""Core domain logic for the family health assessment.

This package contains the record model and the services built on it (sync
facade, wizard, dashboard), kept apart from storage and transport adapters.
"""
