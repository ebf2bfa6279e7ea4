"""Adjust Stock Use Case: the single entry point for changing stock on hand."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from partstock.application.dto.requests import AdjustStockRequest, LocationRequest
from partstock.application.dto.responses import (
    AdjustStockResponse,
    AlertResponse,
    PartResponse,
    StockMovementResponse,
)
from partstock.config import get_logger, get_settings, ledger_context
from partstock.config.settings import LedgerSettings
from partstock.core.entities.alert import ReorderAlert
from partstock.core.entities.movement import MovementType, StockMovement
from partstock.core.entities.part import Part, StockLocation
from partstock.core.exceptions import (
    ConcurrentModificationError,
    DatabaseBusyError,
    PartInactiveError,
    PartNotFoundError,
    StorageTimeoutError,
    ValidationError,
    VersionConflictError,
)
from partstock.core.interfaces import (
    IMovementLedger,
    IPartStore,
    IReorderAlertStore,
    TransactionFactory,
)
from partstock.core.services.reorder_alerts import AlertAction, ReorderAlertEngine
from partstock.core.services.stock_transitions import (
    INBOUND_TYPES,
    compute_transition,
    parse_movement_type,
    validate_quantity,
)

logger = get_logger(__name__)

RETRYABLE_CONFLICTS = (VersionConflictError, DatabaseBusyError)


@dataclass
class AdjustStockResult:
    """Result of a stock adjustment."""

    part: Part
    movement: StockMovement
    alert: ReorderAlert | None = None
    replayed: bool = False


def resolve_location(request: LocationRequest, fallback: StockLocation) -> StockLocation:
    """Fill the blanks of a requested location from another location."""
    return StockLocation(
        warehouse=request.warehouse or fallback.warehouse,
        section=request.section or fallback.section,
        shelf=request.shelf or fallback.shelf,
        bin=request.bin or fallback.bin,
    )


def check_replay_matches(existing: StockMovement, movement_type: MovementType, quantity: int) -> None:
    """A reused idempotency key must carry the same type and quantity as its first use."""
    recorded = existing.set_point if existing.set_point is not None else existing.quantity
    if existing.movement_type is not movement_type or recorded != quantity:
        raise ValidationError(
            "idempotency_key",
            f"already used for {existing.movement_type.value} {recorded} "
            f"(movement {existing.id}); got {movement_type.value} {quantity}",
            value=existing.idempotency_key,
            code="IDEMPOTENCY_KEY_REUSED",
        )


class AdjustStockUseCase:
    """
    Apply one movement to a part.

    Each attempt reads the part, writes the new stock under its version
    guard, appends the ledger entry and re-evaluates the reorder alert, all
    in one write transaction. Version conflicts and a busy database restart
    the attempt with exponential backoff; validation and business rule
    errors never do.
    """

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

    @property
    def _settings(self) -> LedgerSettings:
        if self._ledger_settings is None:
            self._ledger_settings = get_settings().ledger
        return self._ledger_settings

    async def execute(self, request: AdjustStockRequest, actor_id: str) -> AdjustStockResult:
        """
        Execute a stock adjustment.

        Raises:
            ValidationError: Bad quantity, operation type, actor or destination.
            PartNotFoundError: Unknown part.
            PartInactiveError: Part has been deactivated.
            InsufficientStockError: OUT, DAMAGE or TRANSFER exceeds stock on hand.
            ConcurrentModificationError: Conflicts outlasted every retry.
            StorageTimeoutError: An attempt did not finish in time.
        """
        if not actor_id or not actor_id.strip():
            raise ValidationError("actor_id", "an authenticated actor is required")
        movement_type = parse_movement_type(request.transaction_type)
        quantity = validate_quantity(request.quantity)
        if movement_type is MovementType.TRANSFER and request.to_location is None:
            raise ValidationError("to_location", "TRANSFER requires a destination location")

        with ledger_context(request.part_id, request.idempotency_key):
            logger.info(
                "stock_adjust_started", type=movement_type.value, quantity=quantity, actor_id=actor_id
            )
            result = await self._run_with_retries(request, movement_type, quantity, actor_id)
            if result.replayed:
                logger.info("stock_adjust_replayed", movement_id=result.movement.id)
            else:
                logger.info(
                    "stock_adjusted",
                    movement_id=result.movement.id,
                    type=movement_type.value,
                    previous_stock=result.movement.previous_stock,
                    new_stock=result.movement.new_stock,
                )
        return result

    async def _run_with_retries(
        self,
        request: AdjustStockRequest,
        movement_type: MovementType,
        quantity: int,
        actor_id: str,
    ) -> AdjustStockResult:
        settings = self._settings
        attempt = retry(
            stop=stop_after_attempt(settings.max_retries),
            wait=wait_exponential(
                multiplier=settings.retry_delay,
                min=settings.retry_delay,
                max=settings.retry_max_delay,
            ),
            retry=retry_if_exception_type(RETRYABLE_CONFLICTS),
            before_sleep=self._log_conflict,
            reraise=True,
        )(self._attempt_with_timeout)

        try:
            return await attempt(request, movement_type, quantity, actor_id)
        except RETRYABLE_CONFLICTS as e:
            logger.warning("stock_adjust_conflict_exhausted", attempts=settings.max_retries, error=e)
            raise ConcurrentModificationError(request.part_id, settings.max_retries) from e

    @staticmethod
    def _log_conflict(retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "stock_adjust_conflict",
            attempt=retry_state.attempt_number,
            error=retry_state.outcome.exception() if retry_state.outcome else None,
        )

    async def _attempt_with_timeout(
        self,
        request: AdjustStockRequest,
        movement_type: MovementType,
        quantity: int,
        actor_id: str,
    ) -> AdjustStockResult:
        timeout = self._settings.operation_timeout
        try:
            return await asyncio.wait_for(
                self._apply(request, movement_type, quantity, actor_id),
                timeout=timeout,
            )
        except TimeoutError as e:
            logger.error("stock_adjust_timeout", timeout=timeout)
            raise StorageTimeoutError("stock adjustment", timeout) from e

    async def _apply(
        self,
        request: AdjustStockRequest,
        movement_type: MovementType,
        quantity: int,
        actor_id: str,
    ) -> AdjustStockResult:
        """One read-modify-write cycle inside a single transaction."""
        part_store = await self._get_part_store()
        ledger = await self._get_movement_ledger()
        engine = ReorderAlertEngine(await self._get_alert_store())

        async with self._transaction() as conn:
            part = await part_store.get_part(request.part_id, conn=conn)
            if part is None:
                raise PartNotFoundError(request.part_id)

            if request.idempotency_key:
                existing = await ledger.get_by_idempotency_key(
                    part.id, request.idempotency_key, conn=conn  # type: ignore[arg-type]
                )
                if existing is not None:
                    check_replay_matches(existing, movement_type, quantity)
                    return AdjustStockResult(part=part, movement=existing, replayed=True)

            if not part.is_active:
                raise PartInactiveError(part.id)  # type: ignore[arg-type]

            transition = compute_transition(
                part.id, part.current_stock, movement_type, quantity  # type: ignore[arg-type]
            )

            from_location = None
            to_location = None
            if movement_type is MovementType.TRANSFER:
                from_location = part.location
                to_location = resolve_location(request.to_location, part.location)  # type: ignore[arg-type]
                if to_location == from_location:
                    raise ValidationError(
                        "to_location",
                        "destination must differ from the current location",
                        value=to_location.code,
                    )

            now = datetime.now(UTC)
            was_low = part.is_reorder_required
            updated = part.model_copy(
                update={
                    "current_stock": transition.new_stock,
                    "updated_by": actor_id,
                    "last_restock_date": (
                        now if movement_type in INBOUND_TYPES else part.last_restock_date
                    ),
                }
            )
            written = await part_store.write_stock(updated, expected_version=part.version, conn=conn)

            unit_price = request.unit_price if request.unit_price is not None else part.unit_price
            movement = StockMovement(
                part_id=part.id,  # type: ignore[arg-type]
                movement_type=movement_type,
                quantity=transition.quantity,
                previous_stock=transition.previous_stock,
                new_stock=transition.new_stock,
                signed_delta=transition.signed_delta,
                set_point=transition.set_point,
                unit_price=unit_price,
                total_value=round(unit_price * transition.quantity, 2),
                currency=part.currency,
                reference=request.reference,
                notes=request.notes,
                from_location=from_location,
                to_location=to_location,
                performed_by=actor_id,
                approved_by=request.approved_by,
                idempotency_key=request.idempotency_key,
                created_at=now,
            )
            movement = await ledger.append(movement, conn=conn)

            decision = await engine.evaluate(written, was_low=was_low, actor_id=actor_id, conn=conn)
            alert = decision.alert if decision.action is not AlertAction.NONE else None

            return AdjustStockResult(part=written, movement=movement, alert=alert)

    def to_response(self, result: AdjustStockResult) -> AdjustStockResponse:
        """Convert result to API response."""
        return AdjustStockResponse(
            part=PartResponse.from_entity(result.part),
            transaction=StockMovementResponse.from_entity(result.movement),
            alert=AlertResponse.from_entity(result.alert) if result.alert else None,
            replayed=result.replayed,
        )
