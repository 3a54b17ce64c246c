"""Cost, savings and self-sufficiency accounting."""

from energy_ledger.accounting.autarky import AutarkySummary, autarky_and_savings
from energy_ledger.accounting.costs import DetailedCosts, detailed_costs

__all__ = ["AutarkySummary", "DetailedCosts", "autarky_and_savings", "detailed_costs"]
