"""Unit tests for AdjustStockUseCase."""

import asyncio

import pytest

from partstock.application.dto.requests import AdjustStockRequest, LocationRequest
from partstock.application.use_cases.adjust_stock import AdjustStockUseCase
from partstock.config.settings import LedgerSettings
from partstock.core.entities.alert import AlertPriority, AlertStatus
from partstock.core.entities.movement import MovementType, StockMovement
from partstock.core.exceptions import (
    ConcurrentModificationError,
    DatabaseBusyError,
    InsufficientStockError,
    InvalidOperationTypeError,
    InvalidQuantityError,
    PartInactiveError,
    PartNotFoundError,
    StorageTimeoutError,
    ValidationError,
    VersionConflictError,
)


@pytest.fixture
def fast_settings() -> LedgerSettings:
    return LedgerSettings(max_retries=3, retry_delay=0.001, retry_max_delay=0.005)


@pytest.fixture
def use_case(mock_part_store, mock_ledger, mock_alert_store, transaction_factory, fast_settings):
    return AdjustStockUseCase(
        part_store=mock_part_store,
        movement_ledger=mock_ledger,
        alert_store=mock_alert_store,
        transaction_factory=transaction_factory,
        ledger_settings=fast_settings,
    )


def _request(**overrides) -> AdjustStockRequest:
    data = {"part_id": 7, "transaction_type": "OUT", "quantity": 6}
    data.update(overrides)
    return AdjustStockRequest(**data)


class TestAdjustStockUseCase:
    async def test_out_below_threshold_opens_alert(self, use_case, mock_part_store, mock_ledger):
        result = await use_case.execute(_request(), "clerk-1")

        assert result.part.current_stock == 4
        assert result.part.version == 4
        assert result.replayed is False
        movement = result.movement
        assert movement.id == 100
        assert movement.movement_type is MovementType.OUT
        assert (movement.quantity, movement.previous_stock, movement.new_stock) == (6, 10, 4)
        assert movement.signed_delta == -6
        assert movement.performed_by == "clerk-1"
        assert movement.total_value == 75.0
        assert result.alert is not None
        assert result.alert.status is AlertStatus.ACTIVE
        assert result.alert.priority is AlertPriority.MEDIUM
        assert mock_part_store.write_stock.await_args.kwargs["expected_version"] == 3
        assert mock_ledger.append.await_args.kwargs["conn"] == "tx"

    async def test_in_sets_restock_date(self, use_case):
        result = await use_case.execute(_request(transaction_type="in", quantity=5, unit_price=11.0), "clerk-1")
        assert result.part.current_stock == 15
        assert result.part.last_restock_date is not None
        assert result.movement.unit_price == 11.0
        assert result.alert is None

    async def test_adjustment_records_set_point(self, use_case):
        result = await use_case.execute(_request(transaction_type="ADJUSTMENT", quantity=13.0), "auditor")
        assert result.part.current_stock == 13
        assert result.movement.quantity == 3
        assert result.movement.set_point == 13

    async def test_insufficient_stock_writes_nothing(self, use_case, mock_part_store, mock_ledger):
        with pytest.raises(InsufficientStockError):
            await use_case.execute(_request(quantity=11), "clerk-1")
        mock_part_store.write_stock.assert_not_awaited()
        mock_ledger.append.assert_not_awaited()

    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"quantity": 0}, InvalidQuantityError),
            ({"quantity": -2}, InvalidQuantityError),
            ({"quantity": 1.5}, InvalidQuantityError),
            ({"transaction_type": "SELL"}, InvalidOperationTypeError),
            ({"transaction_type": "TRANSFER", "quantity": 1}, ValidationError),
        ],
    )
    async def test_rejected_before_reading(self, use_case, mock_part_store, overrides, error):
        with pytest.raises(error):
            await use_case.execute(_request(**overrides), "clerk-1")
        mock_part_store.get_part.assert_not_awaited()

    async def test_actor_required(self, use_case):
        with pytest.raises(ValidationError):
            await use_case.execute(_request(), "  ")

    async def test_unknown_part(self, use_case, mock_part_store):
        mock_part_store.get_part.return_value = None
        with pytest.raises(PartNotFoundError):
            await use_case.execute(_request(), "clerk-1")

    async def test_inactive_part(self, use_case, mock_part_store, stored_part):
        mock_part_store.get_part.return_value = stored_part.model_copy(update={"is_active": False})
        with pytest.raises(PartInactiveError):
            await use_case.execute(_request(), "clerk-1")

    async def test_idempotent_replay(self, use_case, mock_part_store, mock_ledger):
        earlier = StockMovement(
            id=42,
            part_id=7,
            movement_type=MovementType.OUT,
            quantity=6,
            previous_stock=16,
            new_stock=10,
            signed_delta=-6,
            performed_by="clerk-1",
            idempotency_key="job-17",
        )
        mock_ledger.get_by_idempotency_key.return_value = earlier

        result = await use_case.execute(_request(idempotency_key="job-17"), "clerk-1")

        assert result.replayed is True
        assert result.movement.id == 42
        assert result.part.current_stock == 10
        mock_part_store.write_stock.assert_not_awaited()
        mock_ledger.append.assert_not_awaited()

    @pytest.mark.parametrize(
        "overrides",
        [{"quantity": 5}, {"transaction_type": "DAMAGE"}, {"transaction_type": "ADJUSTMENT", "quantity": 6}],
    )
    async def test_reused_key_with_different_payload(
        self, use_case, mock_part_store, mock_ledger, overrides
    ):
        mock_ledger.get_by_idempotency_key.return_value = StockMovement(
            id=42,
            part_id=7,
            movement_type=MovementType.OUT,
            quantity=6,
            previous_stock=16,
            new_stock=10,
            signed_delta=-6,
            performed_by="clerk-1",
            idempotency_key="job-17",
        )

        with pytest.raises(ValidationError) as exc_info:
            await use_case.execute(_request(idempotency_key="job-17", **overrides), "clerk-1")

        assert exc_info.value.code == "IDEMPOTENCY_KEY_REUSED"
        mock_part_store.write_stock.assert_not_awaited()

    async def test_adjustment_replay_compares_set_point(self, use_case, mock_ledger):
        mock_ledger.get_by_idempotency_key.return_value = StockMovement(
            id=43,
            part_id=7,
            movement_type=MovementType.ADJUSTMENT,
            quantity=4,
            previous_stock=14,
            new_stock=10,
            signed_delta=-4,
            set_point=10,
            performed_by="auditor",
            idempotency_key="count-3",
        )

        result = await use_case.execute(
            _request(transaction_type="ADJUSTMENT", quantity=10, idempotency_key="count-3"), "auditor"
        )

        assert result.replayed is True
        assert result.movement.id == 43

    async def test_transfer_records_locations(self, use_case, stored_part):
        request = _request(
            transaction_type="TRANSFER", quantity=4, to_location=LocationRequest(section="Z", bin="9")
        )
        result = await use_case.execute(request, "clerk-1")

        assert result.part.current_stock == 10
        assert result.part.location == stored_part.location
        assert result.movement.signed_delta == 0
        assert result.movement.from_location == stored_part.location
        assert result.movement.to_location.section == "Z"
        assert result.movement.to_location.warehouse == stored_part.location.warehouse

    async def test_transfer_to_same_slot_rejected(self, use_case):
        request = _request(transaction_type="TRANSFER", quantity=4, to_location=LocationRequest())
        with pytest.raises(ValidationError):
            await use_case.execute(request, "clerk-1")

    @pytest.mark.parametrize(
        "conflict",
        [VersionConflictError("Part", 7, 3), DatabaseBusyError("begin_immediate", "database is locked")],
    )
    async def test_conflict_is_retried(self, use_case, mock_part_store, conflict):
        original = mock_part_store.write_stock.side_effect
        calls = {"n": 0}

        async def flaky(part, expected_version, conn=None):
            calls["n"] += 1
            if calls["n"] == 1:
                raise conflict
            return await original(part, expected_version, conn=conn)

        mock_part_store.write_stock.side_effect = flaky

        result = await use_case.execute(_request(), "clerk-1")

        assert result.part.current_stock == 4
        assert mock_part_store.get_part.await_count == 2

    async def test_conflicts_exhaust_retries(self, use_case, mock_part_store):
        mock_part_store.write_stock.side_effect = VersionConflictError("Part", 7, 3)

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await use_case.execute(_request(), "clerk-1")

        assert exc_info.value.details["attempts"] == 3
        assert mock_part_store.write_stock.await_count == 3

    async def test_business_errors_not_retried(self, use_case, mock_part_store):
        with pytest.raises(InsufficientStockError):
            await use_case.execute(_request(quantity=50), "clerk-1")
        assert mock_part_store.get_part.await_count == 1

    async def test_slow_attempt_times_out(
        self, mock_part_store, mock_ledger, mock_alert_store, transaction_factory, stored_part
    ):
        async def slow_get(part_id, conn=None):
            await asyncio.sleep(1)
            return stored_part

        mock_part_store.get_part.side_effect = slow_get
        use_case = AdjustStockUseCase(
            part_store=mock_part_store,
            movement_ledger=mock_ledger,
            alert_store=mock_alert_store,
            transaction_factory=transaction_factory,
            ledger_settings=LedgerSettings(operation_timeout=0.05),
        )

        with pytest.raises(StorageTimeoutError):
            await use_case.execute(_request(), "clerk-1")
        mock_ledger.append.assert_not_awaited()

    async def test_to_response(self, use_case):
        result = await use_case.execute(_request(), "clerk-1")
        response = use_case.to_response(result)
        assert response.part.current_stock == 4
        assert response.transaction.movement_type == "OUT"
        assert response.alert.priority == "MEDIUM"
        assert response.replayed is False
