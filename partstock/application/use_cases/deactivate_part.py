"""Deactivate Part Use Case: soft delete."""

from dataclasses import dataclass

from partstock.application.dto.responses import PartResponse
from partstock.config import get_logger
from partstock.core.entities.alert import ReorderAlert
from partstock.core.entities.part import Part
from partstock.core.exceptions import PartNotFoundError
from partstock.core.interfaces import IPartStore, IReorderAlertStore, TransactionFactory
from partstock.core.services.reorder_alerts import ReorderAlertEngine

logger = get_logger(__name__)


@dataclass
class DeactivatePartResult:
    """Result of deactivating a part."""

    part: Part
    dismissed_alert: ReorderAlert | None = None


class DeactivatePartUseCase:
    """Mark a part inactive and dismiss its open reorder alert. Rows are never deleted."""

    def __init__(
        self,
        part_store: IPartStore | None = None,
        alert_store: IReorderAlertStore | None = None,
        transaction_factory: TransactionFactory | None = None,
    ):
        self._part_store = part_store
        self._alert_store = alert_store
        self._transaction_factory = transaction_factory

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

    async def execute(self, part_id: int, actor_id: str) -> DeactivatePartResult:
        """Execute deactivate part use case. Deactivating twice is a no-op."""
        part_store = await self._get_part_store()
        engine = ReorderAlertEngine(await self._get_alert_store())

        async with self._transaction() as conn:
            part = await part_store.get_part(part_id, conn=conn)
            if part is None:
                raise PartNotFoundError(part_id)
            if not part.is_active:
                return DeactivatePartResult(part=part)

            candidate = part.model_copy(update={"is_active": False, "updated_by": actor_id})
            updated = await part_store.update_details(
                candidate, expected_version=part.version, conn=conn
            )
            dismissed = await engine.dismiss_open_alert(
                part_id, actor_id, notes="Part deactivated", conn=conn
            )

        logger.info(
            "part_deactivated",
            part_id=part_id,
            dismissed_alert_id=dismissed.id if dismissed else None,
        )
        return DeactivatePartResult(part=updated, dismissed_alert=dismissed)

    def to_response(self, result: DeactivatePartResult) -> PartResponse:
        """Convert result to API response."""
        return PartResponse.from_entity(result.part)
