"""
Quantity transition rules for stock movements.

Pure functions: given the stock on hand, a movement type and a requested
quantity, work out the resulting stock and what the ledger entry must record.
Nothing here touches storage.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from partstock.core.entities.movement import MovementType, StockMovement
from partstock.core.exceptions import (
    InsufficientStockError,
    InvalidOperationTypeError,
    InvalidQuantityError,
)

INBOUND_TYPES = frozenset({MovementType.IN, MovementType.RETURN})
OUTBOUND_TYPES = frozenset({MovementType.OUT, MovementType.DAMAGE})

# Upper bound for any quantity or stock level; well inside SQLite's INTEGER range
MAX_QUANTITY = 1_000_000_000


@dataclass(frozen=True)
class StockTransition:
    """Outcome of applying one movement to a stock level."""

    movement_type: MovementType
    previous_stock: int
    new_stock: int
    quantity: int  # magnitude recorded on the ledger entry
    set_point: int | None = None

    @property
    def signed_delta(self) -> int:
        return self.new_stock - self.previous_stock


def parse_movement_type(value: Any) -> MovementType:
    """Coerce a raw operation type into MovementType."""
    if isinstance(value, MovementType):
        return value
    if isinstance(value, str):
        try:
            return MovementType(value.strip().upper())
        except ValueError:
            pass
    raise InvalidOperationTypeError(value, MovementType.values())


def validate_quantity(value: Any) -> int:
    """Return value as int if it is a positive whole number."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidQuantityError(value)
    if isinstance(value, float) and not value.is_integer():
        raise InvalidQuantityError(value)
    quantity = int(value)
    if quantity <= 0:
        raise InvalidQuantityError(value)
    if quantity > MAX_QUANTITY:
        raise InvalidQuantityError(value, reason=f"must not exceed {MAX_QUANTITY}")
    return quantity


def compute_transition(
    part_id: int,
    previous_stock: int,
    movement_type: MovementType,
    quantity: int,
) -> StockTransition:
    """
    Apply a movement to previous_stock.

    IN/RETURN add, OUT/DAMAGE subtract and may not go below zero, ADJUSTMENT
    sets an absolute level and records the distance travelled, TRANSFER keeps
    the total unchanged.

    Raises:
        InsufficientStockError: OUT, DAMAGE or TRANSFER exceeds stock on hand.
        InvalidQuantityError: ADJUSTMENT to the level already on hand, or a
            resulting level above MAX_QUANTITY.
    """
    if movement_type in INBOUND_TYPES:
        if previous_stock + quantity > MAX_QUANTITY:
            raise InvalidQuantityError(
                quantity, reason=f"would raise stock above {MAX_QUANTITY}"
            )
        return StockTransition(
            movement_type=movement_type,
            previous_stock=previous_stock,
            new_stock=previous_stock + quantity,
            quantity=quantity,
        )

    if movement_type in OUTBOUND_TYPES:
        if quantity > previous_stock:
            raise InsufficientStockError(part_id, quantity, previous_stock)
        return StockTransition(
            movement_type=movement_type,
            previous_stock=previous_stock,
            new_stock=previous_stock - quantity,
            quantity=quantity,
        )

    if movement_type is MovementType.ADJUSTMENT:
        if quantity == previous_stock:
            raise InvalidQuantityError(
                quantity, reason=f"stock is already {previous_stock}; nothing to adjust"
            )
        return StockTransition(
            movement_type=movement_type,
            previous_stock=previous_stock,
            new_stock=quantity,
            quantity=abs(quantity - previous_stock),
            set_point=quantity,
        )

    if movement_type is MovementType.TRANSFER:
        if quantity > previous_stock:
            raise InsufficientStockError(part_id, quantity, previous_stock)
        return StockTransition(
            movement_type=movement_type,
            previous_stock=previous_stock,
            new_stock=previous_stock,
            quantity=quantity,
        )

    raise InvalidOperationTypeError(movement_type, MovementType.values())


def replay_movements(movements: Iterable[StockMovement], opening_stock: int = 0) -> int:
    """
    Rebuild a stock level from ledger entries in chronological order.

    ADJUSTMENT entries reset the level to their set-point; the others apply
    their signed effect.
    """
    stock = opening_stock
    for movement in movements:
        if movement.movement_type is MovementType.ADJUSTMENT and movement.set_point is not None:
            stock = movement.set_point
        elif movement.movement_type in INBOUND_TYPES:
            stock += movement.quantity
        elif movement.movement_type in OUTBOUND_TYPES:
            stock -= movement.quantity
    return stock
