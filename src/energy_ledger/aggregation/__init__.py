"""Period aggregation over meter reading snapshots."""

from energy_ledger.aggregation.delta import PeriodTotal, total_for_period
from energy_ledger.aggregation.production import production_for_period

__all__ = ["PeriodTotal", "production_for_period", "total_for_period"]
