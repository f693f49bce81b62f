"""
Tax Kernel - shared infrastructure for the tax computation engine.

Provides:
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with request-scoped context
- Pure domain value objects (clock, validation results, workflows)
- Repository contracts and the SQLAlchemy persistence adapter
"""

__version__ = "0.1.0"
