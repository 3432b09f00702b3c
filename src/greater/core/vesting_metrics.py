"""
Vesting engine metrics for Greater.

Prometheus counters and gauges for schedule creation, releases, revocations
and administrator withdrawals. Each engine gets its own registry by default
so several engines can live in one process.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge


class VestingMetrics:
    """Metrics for vesting engine operations."""

    def __init__(self, registry=None):
        self.registry = registry or CollectorRegistry()

        self.schedules_created = Counter(
            'greater_vesting_schedules_created_total',
            'Total number of vesting schedules created',
            registry=self.registry
        )

        self.released_amount = Counter(
            'greater_vesting_released_amount_total',
            'Total amount released to beneficiaries in base units',
            registry=self.registry
        )

        self.revocations = Counter(
            'greater_vesting_revocations_total',
            'Total number of revoked schedules',
            registry=self.registry
        )

        self.forfeited_amount = Counter(
            'greater_vesting_forfeited_amount_total',
            'Total unvested amount forfeited by revocation',
            registry=self.registry
        )

        self.withdrawn_amount = Counter(
            'greater_vesting_withdrawn_amount_total',
            'Total free amount withdrawn by the administrator',
            registry=self.registry
        )

        self.rejected_operations = Counter(
            'greater_vesting_rejected_operations_total',
            'Operations rejected by the engine',
            ['operation', 'reason'],
            registry=self.registry
        )

        self.committed_amount = Gauge(
            'greater_vesting_committed_amount',
            'Amount still obligated to unrevoked schedules',
            registry=self.registry
        )

        self.total_released = Gauge(
            'greater_vesting_total_released',
            'Cumulative amount released across all schedules',
            registry=self.registry
        )

    def record_created(self, count: int = 1):
        self.schedules_created.inc(count)

    def record_release(self, amount: int):
        if amount > 0:
            self.released_amount.inc(amount)

    def record_revocation(self, forfeited: int):
        self.revocations.inc()
        if forfeited > 0:
            self.forfeited_amount.inc(forfeited)

    def record_withdrawal(self, amount: int):
        if amount > 0:
            self.withdrawn_amount.inc(amount)

    def record_rejection(self, operation: str, reason: str):
        self.rejected_operations.labels(operation=operation, reason=reason).inc()

    def update_totals(self, committed: int, released: int):
        self.committed_amount.set(committed)
        self.total_released.set(released)
