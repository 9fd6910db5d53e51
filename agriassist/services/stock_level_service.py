"""Latest known stock per product, fed by ``stockUpdated`` pushes."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from agriassist.infra.logging_config import get_logger
from agriassist.schemas.push import StockUpdate

logger = get_logger("stock")

StockListener = Callable[[StockUpdate], None]


class StockLevelService:
    def __init__(self) -> None:
        self._levels: Dict[str, int] = {}
        self._listeners: List[StockListener] = []

    def subscribe(self, listener: StockListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: StockListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get(self, product_id: str) -> Optional[int]:
        return self._levels.get(product_id)

    def apply(self, payload: Any) -> Optional[StockUpdate]:
        """Record a stock change and notify listeners. Skips malformed payloads."""
        try:
            update = (
                payload
                if isinstance(payload, StockUpdate)
                else StockUpdate.model_validate(payload)
            )
        except ValidationError as e:
            logger.warning("Skipping malformed stock update: %s", e)
            return None

        self._levels[update.product_id] = update.new_stock
        logger.debug("Stock for %s is now %d", update.product_id, update.new_stock)
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                logger.exception("Stock listener %r failed", listener)
        return update

    def reset(self) -> None:
        """Forget levels and listeners; they belong to the ended session."""
        self._levels = {}
        self._listeners = []
