"""
ATM Teller Core

Simulated automated-teller session: an immutable account state, a pure
transition function enforcing balance and daily withdrawal limits, and the
session, cache and HTTP plumbing around it. All money uses Decimal.
"""

__version__ = "1.0.0"
