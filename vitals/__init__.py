"""Personal health-reading tracker.

This package contains the domain models, classification and insight logic,
and the storage and state layers, isolated from any presentation surface.
"""
