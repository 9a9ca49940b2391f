"""
Sales Kernel -- shared foundation for the Sales OS deal engine.

Provides:
- Money/Currency value objects
- Typed exceptions with machine-readable codes
- Structured JSON logging
- SQLAlchemy base, engine and the locked-counter sequence services
"""

__version__ = "0.1.0"
