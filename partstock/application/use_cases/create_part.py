"""Create Part Use Case: register a part and book its opening balance."""

from dataclasses import dataclass
from datetime import UTC, datetime

from partstock.application.dto.requests import CreatePartRequest
from partstock.application.dto.responses import PartResponse
from partstock.application.use_cases.adjust_stock import resolve_location
from partstock.config import get_logger, get_settings
from partstock.config.settings import LedgerSettings
from partstock.core.entities.alert import ReorderAlert
from partstock.core.entities.movement import OPENING_BALANCE_REFERENCE, MovementType, StockMovement
from partstock.core.entities.part import Part, StockLocation, normalize_part_number
from partstock.core.exceptions import DuplicatePartNumberError, ValidationError
from partstock.core.interfaces import (
    IMovementLedger,
    IPartStore,
    IReorderAlertStore,
    TransactionFactory,
)
from partstock.core.services.reorder_alerts import AlertAction, ReorderAlertEngine

logger = get_logger(__name__)


@dataclass
class CreatePartResult:
    """Result of creating a part."""

    part: Part
    opening_movement: StockMovement | None = None
    alert: ReorderAlert | None = None


def check_currency(currency: str, settings: LedgerSettings) -> str:
    """Uppercase a currency code and make sure it is configured."""
    code = currency.strip().upper()
    if code not in settings.currencies:
        raise ValidationError(
            "currency", f"must be one of {', '.join(settings.currencies)}", value=currency
        )
    return code


class CreatePartUseCase:
    """Create a part; a non-zero opening stock is booked as an IN movement."""

    def __init__(
        self,
        part_store: IPartStore | None = None,
        movement_ledger: IMovementLedger | None = None,
        alert_store: IReorderAlertStore | None = None,
        transaction_factory: TransactionFactory | None = None,
        ledger_settings: LedgerSettings | None = None,
    ):
        self._part_store = part_store
        self._movement_ledger = movement_ledger
        self._alert_store = alert_store
        self._transaction_factory = transaction_factory
        self._ledger_settings = ledger_settings

    async def _get_part_store(self) -> IPartStore:
        if self._part_store is None:
            from partstock.infrastructure.storage.sqlite import get_part_store

            self._part_store = await get_part_store()
        return self._part_store

    async def _get_movement_ledger(self) -> IMovementLedger:
        if self._movement_ledger is None:
            from partstock.infrastructure.storage.sqlite import get_movement_ledger

            self._movement_ledger = await get_movement_ledger()
        return self._movement_ledger

    async def _get_alert_store(self) -> IReorderAlertStore:
        if self._alert_store is None:
            from partstock.infrastructure.storage.sqlite import get_alert_store

            self._alert_store = await get_alert_store()
        return self._alert_store

    def _transaction(self):
        if self._transaction_factory is None:
            from partstock.infrastructure.storage.sqlite import get_transaction

            return get_transaction(immediate=True)
        return self._transaction_factory()

    def _build_part(self, request: CreatePartRequest, actor_id: str) -> Part:
        settings = self._ledger_settings or get_settings().ledger
        try:
            part_number = normalize_part_number(request.part_number)
        except ValueError as e:
            raise ValidationError("part_number", str(e), value=request.part_number) from e

        default_location = StockLocation(
            warehouse=settings.default_warehouse,
            section=settings.default_section,
            shelf=settings.default_shelf,
            bin=settings.default_bin,
        )
        location = (
            resolve_location(request.location, default_location)
            if request.location
            else default_location
        )

        part = Part(
            part_number=part_number,
            name=request.name.strip(),
            description=request.description,
            category=request.category,
            manufacturer=request.manufacturer,
            supplier=request.supplier,
            current_stock=request.current_stock,
            min_stock_level=(
                request.min_stock_level
                if request.min_stock_level is not None
                else settings.default_min_stock_level
            ),
            max_stock_level=(
                request.max_stock_level
                if request.max_stock_level is not None
                else settings.default_max_stock_level
            ),
            unit_price=request.unit_price,
            currency=check_currency(request.currency or settings.default_currency, settings),
            location=location,
            created_by=actor_id,
            updated_by=actor_id,
        )
        part.ensure_valid_policy()
        return part

    async def execute(self, request: CreatePartRequest, actor_id: str) -> CreatePartResult:
        """Execute create part use case."""
        part = self._build_part(request, actor_id)

        part_store = await self._get_part_store()
        ledger = await self._get_movement_ledger()
        engine = ReorderAlertEngine(await self._get_alert_store())

        async with self._transaction() as conn:
            if await part_store.get_part_by_number(part.part_number, conn=conn) is not None:
                raise DuplicatePartNumberError(part.part_number)

            if part.current_stock > 0:
                part.last_restock_date = datetime.now(UTC)
            part = await part_store.create_part(part, conn=conn)

            opening = None
            if part.current_stock > 0:
                opening = await ledger.append(
                    StockMovement(
                        part_id=part.id,  # type: ignore[arg-type]
                        movement_type=MovementType.IN,
                        quantity=part.current_stock,
                        previous_stock=0,
                        new_stock=part.current_stock,
                        signed_delta=part.current_stock,
                        unit_price=part.unit_price,
                        total_value=round(part.unit_price * part.current_stock, 2),
                        currency=part.currency,
                        reference=OPENING_BALANCE_REFERENCE,
                        notes="Opening stock",
                        performed_by=actor_id,
                        created_at=part.created_at,
                    ),
                    conn=conn,
                )

            decision = await engine.evaluate(part, was_low=False, actor_id=actor_id, conn=conn)

        logger.info(
            "part_registered",
            part_id=part.id,
            part_number=part.part_number,
            opening_stock=part.current_stock,
        )
        return CreatePartResult(
            part=part,
            opening_movement=opening,
            alert=decision.alert if decision.action is AlertAction.OPENED else None,
        )

    def to_response(self, result: CreatePartResult) -> PartResponse:
        """Convert result to API response."""
        return PartResponse.from_entity(result.part)
