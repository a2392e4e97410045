"""Account balance aggregation service.

Builds the balance summary read model: current and projected balance per
account, a short balance history and low-balance alerts. Summaries are cached
per user and filter set; invalidation bumps a version counter that is part of
every cache key, so stale entries simply stop being addressed.
"""

import hashlib
import json
from collections.abc import Callable
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    AccountBalance,
    BalanceAlert,
    BalanceFilters,
    BalanceHistory,
    BalanceHistoryPoint,
    BalanceSummary,
    FinancialAccount,
)
from ledgerkit.domain.events import AccountBalancesShouldRefresh, EventBus
from ledgerkit.logging_config import get_logger
from ledgerkit.utils.cache import TTLCache

logger = get_logger(__name__)

CACHE_PREFIX = "ledgerkit:account-balances"
CACHE_VERSION_KEY = "ledgerkit:account-balances:version"
CACHE_VERSION_TTL_SECONDS = 180 * 24 * 3600
ALERT_CATEGORY = "finance.balance"
TOP_ACCOUNTS = 3

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _naive(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; compare everything as naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def alert_key(account_id: int) -> str:
    return f"account-balance:{account_id}"


def resolve_alert_threshold(account: FinancialAccount) -> Optional[Decimal]:
    """Explicit low-balance threshold, else the negated credit limit, else None."""
    if account.low_balance_threshold is not None:
        return _money(account.low_balance_threshold)
    if account.credit_limit is not None:
        return _money(-abs(account.credit_limit))
    return None


def summary_status(total: Decimal) -> str:
    if total > 0:
        return "positive"
    if total < 0:
        return "negative"
    return "neutral"


class AccountBalanceService:
    """Service computing the cached account balance summary."""

    def __init__(
        self,
        db: Database,
        cache: Optional[TTLCache] = None,
        ttl_seconds: float = 60.0,
        history_days: int = 7,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize account balance service.

        Args:
            db: Database instance
            cache: Cache holding summaries and the version counter
            ttl_seconds: Lifetime of a cached summary
            history_days: Number of days in the balance history
            today: Clock for the history window
            now: Clock for alert timestamps
        """
        self.db = db
        self.cache = cache if cache is not None else TTLCache()
        self.ttl_seconds = ttl_seconds
        self.history_days = history_days
        self.today = today or date.today
        self.now = now or (lambda: datetime.now(UTC))

    def subscribe(self, bus: EventBus) -> None:
        """Invalidate cached summaries whenever balances may have changed."""
        bus.subscribe(AccountBalancesShouldRefresh, self._on_balances_changed)

    def _on_balances_changed(self, event: AccountBalancesShouldRefresh) -> None:
        self.invalidate_cache(event.account_ids)

    def current_version(self) -> int:
        return int(self.cache.get(CACHE_VERSION_KEY, 1))

    def invalidate_cache(self, account_ids: Optional[tuple[int, ...]] = None) -> None:
        """Invalidate every cached summary by bumping the version counter.

        Account ids are accepted for logging only; any change can affect
        totals of every filter combination.
        """
        stale = self.current_version()
        version = stale + 1
        self.cache.put(CACHE_VERSION_KEY, version, CACHE_VERSION_TTL_SECONDS)
        # Superseded summaries are never read again
        self.cache.forget_prefix(f"{CACHE_PREFIX}:v{stale}:")
        logger.debug("Balance cache invalidated (version %d, accounts %s)", version, account_ids)

    def cache_key(self, user_id: Optional[int], filters: BalanceFilters) -> str:
        digest = hashlib.md5(json.dumps(filters.as_dict(), sort_keys=True).encode("utf-8")).hexdigest()
        return f"{CACHE_PREFIX}:v{self.current_version()}:u{user_id or 0}:{digest}"

    def get_summary(self, user_id: Optional[int] = None, filters: Optional[BalanceFilters] = None) -> BalanceSummary:
        """Return the (cached) balance summary for a user and filter set.

        Args:
            user_id: Requesting user, part of the cache key only
            filters: Summary filters; normalized before use

        Returns:
            Balance summary
        """
        filters = filters or BalanceFilters()
        filters = BalanceFilters.normalize(
            category=filters.category,
            cost_center_id=filters.cost_center_id,
            account_id=filters.account_id,
            include_inactive=filters.include_inactive,
        )
        key = self.cache_key(user_id, filters)
        return self.cache.remember(key, self.ttl_seconds, lambda: self.compute_summary(filters))

    def compute_summary(self, filters: BalanceFilters) -> BalanceSummary:
        """Compute the summary without touching the cache."""
        account_ids: Optional[list[int]] = None
        if filters.account_id is not None:
            account_ids = [filters.account_id]

        if filters.cost_center_id is not None:
            related = self.db.get_account_ids_for_cost_center(filters.cost_center_id)
            if not related:
                return self._empty_summary(filters)
            account_ids = related if account_ids is None else [i for i in account_ids if i in related]

        accounts = self.db.list_accounts(
            category=filters.category,
            account_ids=account_ids,
            include_inactive=filters.include_inactive,
        )
        if not accounts:
            return self._empty_summary(filters)

        ids = [account.id for account in accounts]
        scheduled = self.db.get_scheduled_totals(ids, filters.cost_center_id)
        last_movements = self.db.get_last_movement_dates(ids, filters.cost_center_id)

        balances = []
        for account in accounts:
            totals = scheduled.get(account.id, {})
            incoming = totals.get("incoming", ZERO)
            outgoing = totals.get("outgoing", ZERO)
            current = _money(account.current_balance)
            pending_delta = _money(incoming - outgoing)
            threshold = resolve_alert_threshold(account)

            balances.append(
                AccountBalance(
                    account_id=account.id,
                    name=account.name,
                    category=account.category,
                    currency=account.currency,
                    opening_balance=_money(account.opening_balance),
                    current_balance=current,
                    projected_balance=_money(current + pending_delta),
                    pending_delta=pending_delta,
                    pending_incoming=_money(incoming),
                    pending_outgoing=_money(outgoing),
                    last_movement_date=last_movements.get(account.id),
                    alert_active=threshold is not None and current < threshold,
                    alert_threshold=threshold,
                )
            )

        total_current = sum((b.current_balance for b in balances), ZERO)
        total_projected = sum((b.projected_balance for b in balances), ZERO)
        pending_total = sum((b.pending_delta for b in balances), ZERO)

        top_positive = sorted((b for b in balances if b.current_balance > 0), key=lambda b: -b.current_balance)
        top_negative = sorted((b for b in balances if b.current_balance < 0), key=lambda b: b.current_balance)

        return BalanceSummary(
            total_current=_money(total_current),
            total_projected=_money(total_projected),
            pending_delta=_money(pending_total),
            status=summary_status(total_current),
            applied_filters=filters,
            accounts=tuple(balances),
            top_positive=tuple(top_positive[:TOP_ACCOUNTS]),
            top_negative=tuple(top_negative[:TOP_ACCOUNTS]),
            history=self._build_history(ids, total_current, filters.cost_center_id),
            alerts=self._sync_alerts(balances),
            available_categories=tuple(self.db.list_account_categories()),
        )

    def _empty_summary(self, filters: BalanceFilters) -> BalanceSummary:
        return BalanceSummary(
            total_current=ZERO,
            total_projected=ZERO,
            pending_delta=ZERO,
            status="neutral",
            applied_filters=filters,
            available_categories=tuple(self.db.list_account_categories()),
        )

    def _build_history(self, account_ids: list[int], total_current: Decimal, cost_center_id: Optional[int]) -> BalanceHistory:
        """Walk backward from today's total, undoing each day's settled movement."""
        if not account_ids or self.history_days < 1:
            return BalanceHistory()

        end = self.today()
        start = end - timedelta(days=self.history_days - 1)
        changes = self.db.get_settled_changes(account_ids, start, end, cost_center_id)

        points = []
        running = total_current
        day = end
        while day >= start:
            points.append(BalanceHistoryPoint(date=day, balance=_money(running)))
            running -= changes.get(day, ZERO)
            day -= timedelta(days=1)
        points.reverse()

        values = [point.balance for point in points]
        return BalanceHistory(points=tuple(points), minimum=min(values), maximum=max(values))

    def _sync_alerts(self, balances: list[AccountBalance]) -> tuple[BalanceAlert, ...]:
        """Upsert alerts of accounts below threshold and resolve the others."""
        if not balances:
            return ()

        now = self.now()
        active = []
        for balance in balances:
            if not balance.alert_active:
                continue
            message = (
                f"Account {balance.name} has a balance of {self._format(balance.current_balance, balance.currency)}, "
                f"below the configured limit ({self._format(balance.alert_threshold, balance.currency)})."
            )
            active.append(
                BalanceAlert(
                    account_id=balance.account_id,
                    account_name=balance.name,
                    current_balance=balance.current_balance,
                    threshold=balance.alert_threshold,
                    message=message,
                )
            )

        keys = [alert_key(alert.account_id) for alert in active]
        existing = self.db.get_alerts_by_keys(keys)

        for alert in active:
            key = alert_key(alert.account_id)
            record = existing.get(key)
            occurred_at = now
            if record is not None and _naive(record.occurred_at) < _naive(now):
                occurred_at = record.occurred_at
            self.db.upsert_alert(key, self._alert_values(alert, occurred_at))

        resolved = self.db.resolve_alerts(
            ALERT_CATEGORY,
            [balance.account_id for balance in balances],
            keep_keys=keys,
            resolved_at=now,
        )
        if active or resolved:
            logger.info("Balance alerts: %d active, %d resolved", len(active), resolved)
        return tuple(active)

    @staticmethod
    def _alert_values(alert: BalanceAlert, occurred_at: datetime) -> dict[str, Any]:
        return {
            "category": ALERT_CATEGORY,
            "severity": "danger",
            "title": "Account below limit",
            "message": alert.message,
            "resource_type": "financial_account",
            "resource_id": alert.account_id,
            "payload": {
                "threshold": str(alert.threshold),
                "current_balance": str(alert.current_balance),
            },
            "occurred_at": occurred_at,
            "resolved_at": None,
        }

    @staticmethod
    def _format(value: Decimal, currency: str) -> str:
        return f"{currency} {value:,.2f}"
