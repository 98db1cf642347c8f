"""
Expense Tracker - Source Package

A personal expense tracker that keeps a durable, local ledger of
spending and can hand off to a UPI payment app after a QR scan.

DESIGN PRINCIPLES:
1. One ledger per process, passed explicitly to whoever needs it
2. Write to storage first, update memory only on success
3. Fail visibly: typed errors, never silent retries
4. Money is Decimal, never float
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
