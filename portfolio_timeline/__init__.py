"""Portfolio Timeline — brokerage ledger to daily portfolio snapshots."""
__version__ = "1.0.0"
