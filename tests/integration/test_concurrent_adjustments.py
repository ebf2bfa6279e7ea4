"""Concurrent writers against one part: nothing lost, nothing oversold."""

import asyncio

import aiosqlite
import pytest

from partstock.application.dto.requests import AdjustStockRequest, CreatePartRequest
from partstock.application.use_cases import AdjustStockUseCase, CreatePartUseCase
from partstock.core.entities.alert import AlertPriority, AlertStatus
from partstock.config.settings import LedgerSettings
from partstock.core.exceptions import InsufficientStockError, StorageTimeoutError


@pytest.fixture
async def part_id(ledger_db, ledger_settings) -> int:
    result = await CreatePartUseCase(ledger_settings=ledger_settings).execute(
        CreatePartRequest(
            part_number="WPR-BLD-18",
            name="Wiper blade 18in",
            current_stock=10,
            min_stock_level=3,
            max_stock_level=40,
        ),
        "manager",
    )
    return result.part.id


def _request(part_id: int, kind: str, qty: int, **extra) -> AdjustStockRequest:
    return AdjustStockRequest(part_id=part_id, transaction_type=kind, quantity=qty, **extra)


class TestConcurrentAdjustments:
    async def test_parallel_issues_are_all_counted(
        self, part_id, ledger_settings, part_store, movement_ledger, alert_store
    ):
        use_case = AdjustStockUseCase(ledger_settings=ledger_settings)

        results = await asyncio.gather(
            *(use_case.execute(_request(part_id, "OUT", 1), f"clerk-{i}") for i in range(10))
        )

        assert sorted(r.movement.new_stock for r in results) == list(range(10))
        stored = await part_store.get_part(part_id)
        assert stored.current_stock == 0
        assert stored.version == 10
        assert await movement_ledger.net_change(part_id) == 0
        alerts = await alert_store.list_alerts(part_id=part_id)
        assert len(alerts) == 1
        assert alerts[0].status is AlertStatus.ACTIVE
        assert alerts[0].priority is AlertPriority.CRITICAL

    async def test_oversubscribed_issues_never_go_negative(
        self, part_id, ledger_settings, part_store, movement_ledger
    ):
        use_case = AdjustStockUseCase(ledger_settings=ledger_settings)

        outcomes = await asyncio.gather(
            *(use_case.execute(_request(part_id, "OUT", 3), "clerk") for _ in range(5)),
            return_exceptions=True,
        )

        succeeded = [o for o in outcomes if not isinstance(o, Exception)]
        rejected = [o for o in outcomes if isinstance(o, Exception)]
        assert len(succeeded) == 3
        assert all(isinstance(e, InsufficientStockError) for e in rejected)
        assert (await part_store.get_part(part_id)).current_stock == 1
        assert await movement_ledger.net_change(part_id) == 1

    async def test_mixed_receipts_and_issues(self, part_id, ledger_settings, part_store, movement_ledger):
        use_case = AdjustStockUseCase(ledger_settings=ledger_settings)
        requests = [_request(part_id, "IN", 2) for _ in range(6)] + [
            _request(part_id, "OUT", 1) for _ in range(6)
        ]

        await asyncio.gather(*(use_case.execute(r, "clerk") for r in requests))

        stored = await part_store.get_part(part_id)
        assert stored.current_stock == 16
        assert await movement_ledger.net_change(part_id) == 16
        assert await movement_ledger.count_for_part(part_id) == 13

    async def test_same_idempotency_key_applies_once(self, part_id, ledger_settings, part_store):
        use_case = AdjustStockUseCase(ledger_settings=ledger_settings)

        results = await asyncio.gather(
            *(
                use_case.execute(_request(part_id, "OUT", 4, idempotency_key="pos-sale-77"), "till-1")
                for _ in range(4)
            )
        )

        assert sum(1 for r in results if not r.replayed) == 1
        assert len({r.movement.id for r in results}) == 1
        assert (await part_store.get_part(part_id)).current_stock == 6


class TestTimeoutWhileLocked:
    async def test_timed_out_adjustment_releases_the_lock(self, ledger_db, part_id, ledger_settings, part_store):
        impatient = AdjustStockUseCase(ledger_settings=LedgerSettings(operation_timeout=0.2))
        outsider = await aiosqlite.connect(ledger_db, timeout=0.5)
        try:
            await outsider.execute("BEGIN IMMEDIATE")
            with pytest.raises(StorageTimeoutError):
                await impatient.execute(_request(part_id, "OUT", 1), "clerk")
            await outsider.rollback()

            # more adjustments than pooled connections, so the timed-out one is reused
            use_case = AdjustStockUseCase(ledger_settings=ledger_settings)
            for _ in range(6):
                await use_case.execute(_request(part_id, "IN", 1), "clerk")

            await outsider.execute("BEGIN IMMEDIATE")
            await outsider.rollback()
        finally:
            await outsider.close()

        stored = await part_store.get_part(part_id)
        assert stored.current_stock == 16
        assert stored.version == 6
