"""Routing — exact-match route table and prefix-scoped route groups.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""
