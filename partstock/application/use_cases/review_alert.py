"""Review Alert Use Case: operator acknowledge / dismiss."""

from partstock.application.dto.requests import AlertActionRequest
from partstock.application.dto.responses import AlertResponse
from partstock.config import get_logger
from partstock.core.entities.alert import ReorderAlert
from partstock.core.interfaces import IReorderAlertStore, TransactionFactory
from partstock.core.services.reorder_alerts import ReorderAlertEngine

logger = get_logger(__name__)


class ReviewAlertUseCase:
    """Move a reorder alert through its operator transitions."""

    def __init__(
        self,
        alert_store: IReorderAlertStore | None = None,
        transaction_factory: TransactionFactory | None = None,
    ):
        self._alert_store = alert_store
        self._transaction_factory = transaction_factory

    async def _get_engine(self) -> ReorderAlertEngine:
        if self._alert_store is None:
            from partstock.infrastructure.storage.sqlite import get_alert_store

            self._alert_store = await get_alert_store()
        return ReorderAlertEngine(self._alert_store)

    def _transaction(self):
        if self._transaction_factory is None:
            from partstock.infrastructure.storage.sqlite import get_transaction

            return get_transaction(immediate=True)
        return self._transaction_factory()

    async def acknowledge(
        self, alert_id: int, request: AlertActionRequest, actor_id: str
    ) -> ReorderAlert:
        """ACTIVE -> ACKNOWLEDGED."""
        engine = await self._get_engine()
        async with self._transaction() as conn:
            return await engine.acknowledge(alert_id, actor_id, notes=request.notes, conn=conn)

    async def dismiss(
        self, alert_id: int, request: AlertActionRequest, actor_id: str
    ) -> ReorderAlert:
        """ACTIVE|ACKNOWLEDGED -> DISMISSED."""
        engine = await self._get_engine()
        async with self._transaction() as conn:
            return await engine.dismiss(alert_id, actor_id, notes=request.notes, conn=conn)

    def to_response(self, alert: ReorderAlert) -> AlertResponse:
        """Convert result to API response."""
        return AlertResponse.from_entity(alert)
