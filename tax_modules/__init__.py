"""
Tax Modules.

Stateful orchestration over the pure engines in ``tax_engines``.
Each module contains:
- Domain models (frozen DTOs, the nouns)
- ORM companions for SQLAlchemy persistence
- Workflows (state machines), where the module has a lifecycle
- A service facade that loads, delegates to engines, persists and logs

Modules:
- capital_credit: Capital-investment credit carryforward ledger
- tax_return: Return assembly, documentation checks, filing lifecycle
- computation: Validated calculations, income aggregation, calculation history

Arithmetic lives in the engines; services own persistence and logging.
"""
