"""
Capital Credit Module (``tax_modules.capital_credit``).

Responsibility
--------------
Capital-investment tax credits: earned at a configured rate on qualifying
expenditure, carried forward for a bounded number of years and drawn
against company income tax oldest first.
"""

from tax_modules.capital_credit.models import CapitalCredit, CreditAllocation, CreditUsage
from tax_modules.capital_credit.service import CapitalCreditLedger

__all__ = [
    "CapitalCredit",
    "CreditAllocation",
    "CreditUsage",
    "CapitalCreditLedger",
]
