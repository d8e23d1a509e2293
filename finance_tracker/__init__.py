"""
Finance Tracker - Source Package

A personal finance tracker: accounts, categories and a paginated
transaction history, owned by a single signed-in user each.

DESIGN PRINCIPLES:
1. Every action is gated by the caller's identity
2. Cross-owner rows are invisible, never "forbidden"
3. Storage is injected, never a global handle
4. Every action outcome is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
