"""
Guided Picking - scan-driven walk through an order's pending items

PickingStateMachine holds the rules and works on plain item objects.
PickingService persists it: one PickingSession row per run, picked counts on
OrderItem.picked_qty. Nothing here writes to the stock ledger.
"""
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from depopro.core import settings
from depopro.core.errors import NotFoundError, ValidationError
from depopro.models import OrderHeader, PickingSession, Product
from depopro.models.base import plain_number, utcnow
from .catalog import CatalogIndex, location_sort_key, normalize

import logging
logger = logging.getLogger(__name__)


class PickState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"
    ABORTED = "ABORTED"


class ScanOutcome(str, Enum):
    UNRECOGNIZED = "UNRECOGNIZED"
    WRONG_ITEM = "WRONG_ITEM"
    CORRECT = "CORRECT"


def pick_sort_key(item: Any) -> tuple:
    """Grouped items first (by group name), then by location, numeric-aware"""
    group = (item.group or "").strip()
    return (0 if group else 1, group.casefold(), location_sort_key(item.location))


def matches_target(product: Any, item: Any) -> bool:
    """Part code decides when the item has one; otherwise the name does"""
    if item.part_code and str(item.part_code).strip():
        return normalize(product.part_code) == normalize(item.part_code)
    return normalize(product.product_name) == normalize(item.product_name)


class PickingStateMachine:
    """
    NOT_STARTED -> IN_PROGRESS -> COMPLETE

    `sequence` holds item positions in pick order, `picked` maps position to
    picked count. Wrong or unknown scans never change state.
    """

    def __init__(
        self,
        items: Iterable[Any],
        picked: Optional[Dict[int, int]] = None,
        sequence: Optional[List[int]] = None,
        index: int = 0,
        state: PickState = PickState.NOT_STARTED,
    ):
        self.items = {item.position: item for item in items}
        self.picked = {pos: 0 for pos in self.items}
        self.picked.update(picked or {})
        self.sequence = list(sequence or [])
        self.index = index
        self.state = PickState(state)

    def start(self) -> None:
        pending = [
            item for item in self.items.values()
            if self.picked[item.position] < item.required_qty
        ]
        pending.sort(key=lambda item: item.position)
        pending.sort(key=pick_sort_key)
        self.sequence = [item.position for item in pending]
        self.index = 0
        self.state = PickState.IN_PROGRESS if self.sequence else PickState.COMPLETE

    @property
    def current_item(self) -> Optional[Any]:
        if self.state != PickState.IN_PROGRESS or self.index >= len(self.sequence):
            return None
        return self.items[self.sequence[self.index]]

    def _require_in_progress(self) -> None:
        if self.state != PickState.IN_PROGRESS:
            raise ValidationError(f"Picking is not in progress (state {self.state.value})")

    def _advance(self) -> None:
        """Move to the next item still short of its requirement, or finish"""
        index = self.index + 1
        while index < len(self.sequence):
            item = self.items[self.sequence[index]]
            if self.picked[item.position] < item.required_qty:
                break
            index += 1
        self.index = index
        if index >= len(self.sequence):
            self.state = PickState.COMPLETE

    def scan(self, code: str, catalog: CatalogIndex) -> dict:
        """Process one scanned code; a correct scan adds exactly one"""
        self._require_in_progress()
        target = self.current_item

        product = catalog.resolve_code(code)
        if product is None:
            return {
                "outcome": ScanOutcome.UNRECOGNIZED,
                "message": f"Unrecognized code '{code}'",
                "product": None,
                "item_complete": False,
                "advanced": False,
            }

        if not matches_target(product, target):
            return {
                "outcome": ScanOutcome.WRONG_ITEM,
                "message": f"Wrong item: scanned {product.product_name}, expected {target.product_name}",
                "product": product,
                "item_complete": False,
                "advanced": False,
            }

        self.picked[target.position] += 1
        count = self.picked[target.position]
        complete = count >= target.required_qty
        if complete:
            self._advance()

        return {
            "outcome": ScanOutcome.CORRECT,
            "message": f"{target.product_name}: {plain_number(count)}/{plain_number(target.required_qty)}",
            "product": product,
            "item_complete": complete,
            "advanced": complete,
        }

    def skip(self) -> None:
        """Move on without touching counts"""
        self._require_in_progress()
        self.index += 1
        if self.index >= len(self.sequence):
            self.state = PickState.COMPLETE


class PickingService:
    """Persisted guided picking sessions"""

    @staticmethod
    def get_session(db: Session, session_id: str) -> PickingSession:
        session = db.query(PickingSession).filter(PickingSession.id == session_id).first()
        if not session:
            raise NotFoundError(f"Picking session '{session_id}' not found")
        return session

    @staticmethod
    def get_active_session(db: Session, order_id: str) -> Optional[PickingSession]:
        return db.query(PickingSession).filter(
            PickingSession.order_id == order_id,
            PickingSession.status == PickState.IN_PROGRESS.value,
        ).first()

    @staticmethod
    def _machine(session: PickingSession) -> PickingStateMachine:
        items = session.order.items
        return PickingStateMachine(
            items,
            picked={item.position: item.picked_qty or 0 for item in items},
            sequence=session.sequence,
            index=session.current_index,
            state=PickState(session.status),
        )

    @staticmethod
    def _store(session: PickingSession, machine: PickingStateMachine) -> None:
        for item in session.order.items:
            item.picked_qty = machine.picked[item.position]
        session.sequence = list(machine.sequence)
        session.current_index = machine.index
        session.status = machine.state.value
        if machine.state != PickState.IN_PROGRESS and session.finished_at is None:
            session.finished_at = utcnow()

    @staticmethod
    def to_state(session: PickingSession) -> dict:
        """PickingStateResponse payload"""
        machine = PickingService._machine(session)

        def item_state(item):
            return {
                "position": item.position,
                "product_name": item.product_name,
                "part_code": item.part_code,
                "group": item.group,
                "location": item.location,
                "required_qty": item.required_qty,
                "picked_qty": machine.picked[item.position],
            }

        current = machine.current_item
        return {
            "session_id": session.id,
            "order_id": session.order_id,
            "state": machine.state.value,
            "current_index": machine.index,
            "total": len(machine.sequence),
            "current_item": item_state(current) if current is not None else None,
            "sequence": [item_state(machine.items[pos]) for pos in machine.sequence],
        }

    @staticmethod
    def start(db: Session, order_id: str) -> PickingSession:
        """
        Begin picking an order.

        An earlier unfinished session for the same order is aborted; the
        picks it recorded carry over.
        """
        order = db.query(OrderHeader).filter(OrderHeader.id == order_id).first()
        if not order:
            raise NotFoundError(f"Order '{order_id}' not found")
        if order.status == "COMPLETED":
            raise ValidationError("Order is already completed")

        previous = PickingService.get_active_session(db, order_id)
        if previous is not None:
            previous.status = PickState.ABORTED.value
            previous.finished_at = utcnow()

        machine = PickingStateMachine(
            order.items, picked={item.position: item.picked_qty or 0 for item in order.items}
        )
        machine.start()

        session = PickingSession(order_id=order.id, started_at=utcnow())
        session.order = order
        PickingService._store(session, machine)
        db.add(session)
        db.commit()
        db.refresh(session)

        logger.info("Picking started for order %s: %d items pending", order.name, len(machine.sequence))
        return session

    @staticmethod
    def scan(db: Session, session_id: str, code: str) -> dict:
        session = PickingService.get_session(db, session_id)
        machine = PickingService._machine(session)
        result = machine.scan(code, CatalogIndex(db.query(Product).all()))

        if result["outcome"] == ScanOutcome.CORRECT:
            PickingService._store(session, machine)
            db.commit()
            db.refresh(session)

        logger.debug("Scan %r on session %s: %s", code, session.id, result["outcome"].value)
        if machine.state == PickState.COMPLETE and result["item_complete"]:
            logger.info("Picking complete for order %s", session.order.name)

        product = result["product"]
        return {
            "outcome": result["outcome"].value,
            "message": result["message"],
            "product_id": product.id if product is not None else None,
            "item_complete": result["item_complete"],
            "advanced": result["advanced"],
            "advance_after_ms": settings.PICK_CONFIRM_DELAY_MS if result["item_complete"] else 0,
            "picking": PickingService.to_state(session),
        }

    @staticmethod
    def skip(db: Session, session_id: str) -> PickingSession:
        session = PickingService.get_session(db, session_id)
        machine = PickingService._machine(session)
        machine.skip()
        PickingService._store(session, machine)
        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def abort(db: Session, session_id: str) -> PickingSession:
        """Stop the session; recorded picks stay on the order items"""
        session = PickingService.get_session(db, session_id)
        if session.status != PickState.IN_PROGRESS.value:
            raise ValidationError(f"Picking is not in progress (state {session.status})")
        session.status = PickState.ABORTED.value
        session.finished_at = utcnow()
        db.commit()
        db.refresh(session)
        logger.info("Picking aborted for order %s", session.order.name)
        return session
