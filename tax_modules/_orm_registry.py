"""
Module ORM Registry (``tax_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM companion is imported so that
``Base.metadata`` contains its table definition before
``tax_kernel.db.engine.create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from ``tax_config`` and sibling
``tax_modules`` packages.  MUST NOT be imported at module level by
``tax_kernel``; the kernel imports it lazily inside ``create_tables``.
"""


def import_all_orm_models() -> None:
    """Import every ``*.orm`` module to register its models.

    This function is idempotent -- repeated calls are harmless.
    """
    # fmt: off
    import tax_config.orm  # noqa: F401
    import tax_modules.capital_credit.orm  # noqa: F401
    import tax_modules.computation.orm  # noqa: F401
    import tax_modules.tax_return.orm  # noqa: F401
    # fmt: on
