"""Update Part Use Case: non-quantity attributes, outside the ledger."""

from dataclasses import dataclass

from partstock.application.dto.requests import UpdatePartRequest
from partstock.application.dto.responses import PartResponse
from partstock.application.use_cases.adjust_stock import resolve_location
from partstock.application.use_cases.create_part import check_currency
from partstock.config import get_logger, get_settings
from partstock.config.settings import LedgerSettings
from partstock.core.entities.alert import ReorderAlert
from partstock.core.entities.part import Part
from partstock.core.exceptions import PartInactiveError, PartNotFoundError
from partstock.core.interfaces import IPartStore, IReorderAlertStore, TransactionFactory
from partstock.core.services.reorder_alerts import AlertAction, ReorderAlertEngine

logger = get_logger(__name__)

# Fields that may be cleared with an explicit null
_NULLABLE_FIELDS = ("description", "manufacturer", "supplier")
_REQUIRED_FIELDS = ("name", "category", "min_stock_level", "max_stock_level", "unit_price")


@dataclass
class UpdatePartResult:
    """Result of updating a part."""

    part: Part
    alert: ReorderAlert | None = None


class UpdatePartUseCase:
    """
    Update part details under the version guard.

    Changing a threshold re-evaluates the part's reorder alert in the same
    transaction.
    """

    def __init__(
        self,
        part_store: IPartStore | None = None,
        alert_store: IReorderAlertStore | None = None,
        transaction_factory: TransactionFactory | None = None,
        ledger_settings: LedgerSettings | None = None,
    ):
        self._part_store = part_store
        self._alert_store = alert_store
        self._transaction_factory = transaction_factory
        self._ledger_settings = ledger_settings

    async def _get_part_store(self) -> IPartStore:
        if self._part_store is None:
            from partstock.infrastructure.storage.sqlite import get_part_store

            self._part_store = await get_part_store()
        return self._part_store

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

    async def execute(
        self, part_id: int, request: UpdatePartRequest, actor_id: str
    ) -> UpdatePartResult:
        """Execute update part use case."""
        settings = self._ledger_settings or get_settings().ledger
        part_store = await self._get_part_store()
        engine = ReorderAlertEngine(await self._get_alert_store())

        changes = request.model_dump(exclude_unset=True, exclude={"location", "currency"})
        updates: dict = {}
        for field in _NULLABLE_FIELDS:
            if field in changes:
                updates[field] = changes[field]
        for field in _REQUIRED_FIELDS:
            if changes.get(field) is not None:
                updates[field] = changes[field]
        if request.currency is not None:
            updates["currency"] = check_currency(request.currency, settings)

        async with self._transaction() as conn:
            part = await part_store.get_part(part_id, conn=conn)
            if part is None:
                raise PartNotFoundError(part_id)
            if not part.is_active:
                raise PartInactiveError(part_id)

            if request.location is not None:
                updates["location"] = resolve_location(request.location, part.location)
            updates["updated_by"] = actor_id

            was_low = part.is_reorder_required
            candidate = part.model_copy(update=updates)
            candidate.ensure_valid_policy()
            updated = await part_store.update_details(
                candidate, expected_version=part.version, conn=conn
            )

            alert = None
            if (
                updated.min_stock_level != part.min_stock_level
                or updated.max_stock_level != part.max_stock_level
            ):
                decision = await engine.evaluate(
                    updated, was_low=was_low, actor_id=actor_id, conn=conn
                )
                if decision.action is not AlertAction.NONE:
                    alert = decision.alert

        logger.info(
            "part_details_updated",
            part_id=part_id,
            fields=sorted(k for k in updates if k != "updated_by"),
        )
        return UpdatePartResult(part=updated, alert=alert)

    def to_response(self, result: UpdatePartResult) -> PartResponse:
        """Convert result to API response."""
        return PartResponse.from_entity(result.part)
