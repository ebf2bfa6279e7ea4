"""Unit tests for the create, update and deactivate part use cases."""

import pytest

from partstock.application.dto.requests import CreatePartRequest, LocationRequest, UpdatePartRequest
from partstock.application.use_cases import (
    CreatePartUseCase,
    DeactivatePartUseCase,
    UpdatePartUseCase,
)
from partstock.config.settings import LedgerSettings
from partstock.core.entities.alert import AlertStatus, ReorderAlert
from partstock.core.entities.movement import OPENING_BALANCE_REFERENCE, MovementType
from partstock.core.exceptions import (
    DuplicatePartNumberError,
    InvalidStockPolicyError,
    PartInactiveError,
    PartNotFoundError,
    ValidationError,
)


@pytest.fixture
def settings() -> LedgerSettings:
    return LedgerSettings(currencies=["USD", "LKR"], default_currency="USD")


class TestCreatePartUseCase:
    @pytest.fixture
    def use_case(self, mock_part_store, mock_ledger, mock_alert_store, transaction_factory, settings):
        return CreatePartUseCase(
            part_store=mock_part_store,
            movement_ledger=mock_ledger,
            alert_store=mock_alert_store,
            transaction_factory=transaction_factory,
            ledger_settings=settings,
        )

    async def test_opening_stock_booked_as_in(self, use_case, mock_ledger):
        request = CreatePartRequest(
            part_number="flt-oil-22", name="Oil filter", current_stock=12, unit_price=4.0
        )

        result = await use_case.execute(request, "manager")

        assert result.part.id == 7
        assert result.part.part_number == "FLT-OIL-22"
        assert result.part.created_by == "manager"
        assert result.part.last_restock_date is not None
        opening = result.opening_movement
        assert opening.movement_type is MovementType.IN
        assert opening.reference == OPENING_BALANCE_REFERENCE
        assert (opening.previous_stock, opening.new_stock, opening.quantity) == (0, 12, 12)
        assert opening.total_value == 48.0
        assert result.alert is None

    async def test_zero_stock_opens_alert_without_movement(self, use_case, mock_ledger):
        result = await use_case.execute(CreatePartRequest(part_number="NEW-1", name="New"), "manager")

        assert result.opening_movement is None
        mock_ledger.append.assert_not_awaited()
        assert result.alert is not None
        assert result.alert.status is AlertStatus.ACTIVE

    async def test_defaults_applied(self, use_case):
        result = await use_case.execute(
            CreatePartRequest(part_number="DEF-1", name="Defaults", current_stock=50), "manager"
        )
        assert result.part.min_stock_level == 5
        assert result.part.max_stock_level == 100
        assert result.part.currency == "USD"
        assert result.part.location.warehouse == "Main Warehouse"

    async def test_partial_location(self, use_case):
        request = CreatePartRequest(
            part_number="LOC-1", name="Located", current_stock=50, location=LocationRequest(shelf="7")
        )
        result = await use_case.execute(request, "manager")
        assert result.part.location.shelf == "7"
        assert result.part.location.section == "A"

    async def test_duplicate_number(self, use_case, mock_part_store, stored_part):
        mock_part_store.get_part_by_number.return_value = stored_part
        with pytest.raises(DuplicatePartNumberError):
            await use_case.execute(CreatePartRequest(part_number="brk-pad-001", name="Dup"), "manager")
        mock_part_store.create_part.assert_not_awaited()

    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"part_number": "has space"}, ValidationError),
            ({"currency": "JPY"}, ValidationError),
            ({"min_stock_level": 10, "max_stock_level": 10}, InvalidStockPolicyError),
        ],
    )
    async def test_rejected(self, use_case, mock_part_store, overrides, error):
        data = {"part_number": "OK-1", "name": "Part"}
        data.update(overrides)
        with pytest.raises(error):
            await use_case.execute(CreatePartRequest(**data), "manager")
        mock_part_store.create_part.assert_not_awaited()

    async def test_currency_case_insensitive(self, use_case):
        result = await use_case.execute(
            CreatePartRequest(part_number="CUR-1", name="Part", currency="lkr", current_stock=20), "manager"
        )
        assert result.part.currency == "LKR"


class TestUpdatePartUseCase:
    @pytest.fixture
    def use_case(self, mock_part_store, mock_alert_store, transaction_factory, settings):
        return UpdatePartUseCase(
            part_store=mock_part_store,
            alert_store=mock_alert_store,
            transaction_factory=transaction_factory,
            ledger_settings=settings,
        )

    async def test_updates_details_only(self, use_case, mock_part_store, mock_alert_store):
        result = await use_case.execute(7, UpdatePartRequest(name="Rear pads", unit_price=14.0), "manager")

        assert result.part.name == "Rear pads"
        assert result.part.unit_price == 14.0
        assert result.part.current_stock == 10
        assert result.part.version == 4
        assert mock_part_store.update_details.await_args.kwargs["expected_version"] == 3
        mock_alert_store.get_open_alert.assert_not_awaited()

    async def test_explicit_null_clears_optional_field(self, use_case, mock_part_store, stored_part):
        mock_part_store.get_part.return_value = stored_part.model_copy(update={"supplier": "Acme"})
        result = await use_case.execute(7, UpdatePartRequest(supplier=None), "manager")
        assert result.part.supplier is None

    async def test_null_required_field_ignored(self, use_case):
        result = await use_case.execute(7, UpdatePartRequest(name=None), "manager")
        assert result.part.name == "Front brake pads"

    async def test_raising_threshold_opens_alert(self, use_case, mock_alert_store):
        result = await use_case.execute(7, UpdatePartRequest(min_stock_level=12), "manager")

        assert result.part.is_reorder_required is True
        assert result.alert is not None
        mock_alert_store.create_alert.assert_awaited_once()

    async def test_lowering_threshold_resolves_alert(self, use_case, mock_part_store, mock_alert_store, stored_part):
        mock_part_store.get_part.return_value = stored_part.model_copy(update={"current_stock": 4})
        mock_alert_store.get_open_alert.return_value = ReorderAlert(
            id=5, part_id=7, current_stock=4, min_stock_level=5
        )

        result = await use_case.execute(7, UpdatePartRequest(min_stock_level=2), "manager")

        assert result.alert.status is AlertStatus.RESOLVED

    async def test_invalid_policy(self, use_case, mock_part_store):
        with pytest.raises(InvalidStockPolicyError):
            await use_case.execute(7, UpdatePartRequest(max_stock_level=5), "manager")
        mock_part_store.update_details.assert_not_awaited()

    async def test_unknown_part(self, use_case, mock_part_store):
        mock_part_store.get_part.return_value = None
        with pytest.raises(PartNotFoundError):
            await use_case.execute(7, UpdatePartRequest(name="x"), "manager")

    async def test_inactive_part(self, use_case, mock_part_store, stored_part):
        mock_part_store.get_part.return_value = stored_part.model_copy(update={"is_active": False})
        with pytest.raises(PartInactiveError):
            await use_case.execute(7, UpdatePartRequest(name="x"), "manager")


class TestDeactivatePartUseCase:
    @pytest.fixture
    def use_case(self, mock_part_store, mock_alert_store, transaction_factory):
        return DeactivatePartUseCase(
            part_store=mock_part_store,
            alert_store=mock_alert_store,
            transaction_factory=transaction_factory,
        )

    async def test_deactivates_and_dismisses_alert(self, use_case, mock_alert_store):
        open_alert = ReorderAlert(id=5, part_id=7, current_stock=4, min_stock_level=5)
        mock_alert_store.get_open_alert.return_value = open_alert
        mock_alert_store.get_alert.return_value = open_alert

        result = await use_case.execute(7, "manager")

        assert result.part.is_active is False
        assert result.dismissed_alert.status is AlertStatus.DISMISSED
        assert result.dismissed_alert.notes == "Part deactivated"

    async def test_second_call_is_noop(self, use_case, mock_part_store, stored_part):
        mock_part_store.get_part.return_value = stored_part.model_copy(update={"is_active": False})

        result = await use_case.execute(7, "manager")

        assert result.part.is_active is False
        mock_part_store.update_details.assert_not_awaited()

    async def test_unknown_part(self, use_case, mock_part_store):
        mock_part_store.get_part.return_value = None
        with pytest.raises(PartNotFoundError):
            await use_case.execute(7, "manager")
