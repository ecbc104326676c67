# havendrip/repositories/orders.py
"""
Order placement: one order document holding the full cart snapshot.

Idempotent on `transaction_id`: a second call for the same checkout returns the
order created by the first one instead of opening a new one.
"""
from __future__ import annotations

import logging
import uuid

from google.cloud import firestore as gcf
from google.cloud.firestore_v1.base_query import FieldFilter

from havendrip.core.results import RemoteResult
from havendrip.repositories.firestore import FirestoreAdapter
from havendrip.schemas.order import OrderPayload

logger = logging.getLogger("havendrip.orders")

ORDERS = "orders"


class FirestoreOrderGateway(FirestoreAdapter):

    def _existing(self, user_id: str, transaction_id: str):
        q = (
            self._col(ORDERS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("transaction_id", "==", transaction_id))
            .limit(1)
        )
        docs = list(q.stream(**self._read_opts()))
        return docs[0].id if docs else None

    def place_complete_order(self, user_id: str, payload: OrderPayload) -> RemoteResult[str]:
        def run():
            existing = self._existing(user_id, payload.transaction_id)
            if existing:
                logger.info("order %s already placed for transaction %s", existing, payload.transaction_id)
                return existing

            order_id = str(uuid.uuid4())
            doc = payload.model_dump(mode="json")
            doc.update({
                "id": order_id,
                "user_id": user_id,
                "status": "pending",
                "created_at": gcf.SERVER_TIMESTAMP,
                "updated_at": gcf.SERVER_TIMESTAMP,
            })
            self._col(ORDERS).document(order_id).set(doc, **self._write_opts())
            return order_id
        return self._guard("place_complete_order", run)
