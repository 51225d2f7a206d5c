"""
Invest Kernel - shared foundation for the projection and commission engines.

- Typed, coded exceptions
- Structured JSON logging
- Immutable domain records (investments, withdrawals, policies)
- Injectable clock
"""

__version__ = "0.1.0"
