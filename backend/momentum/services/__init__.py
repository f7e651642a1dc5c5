"""Session domain services: value clamping, mutations and lifecycle.

This package holds the logic that HTTP routes and socket handlers call
into, keeping transport concerns apart from session state rules.
"""
