"""State layer.

The store is the single source of truth for guests, legs and cars; the
policy module decides how provider answers change a leg's status.
"""
