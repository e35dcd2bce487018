"""Routing — prefix groups of exact-match routes with middleware chains.

Routes are registered during setup into ordered registries; matching
is exact on ``(path, method)`` with no parameters or wildcards.
"""
