# havendrip/repositories/coupon_directory.py
from __future__ import annotations

import logging
from typing import Optional

from google.cloud import firestore as gcf
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from havendrip.core.results import RemoteResult
from havendrip.repositories.firestore import FirestoreAdapter
from havendrip.schemas.coupon import Coupon, canonical_code

logger = logging.getLogger("havendrip.coupons")

COUPONS = "coupons"


class FirestoreCouponDirectory(FirestoreAdapter):
    """Coupons live in `coupons`, one document per code, with `code` stored upper-case."""

    def _find(self, code: str):
        q = self._col(COUPONS).where(filter=FieldFilter("code", "==", code)).limit(1)
        docs = list(q.stream(**self._read_opts()))
        return docs[0] if docs else None

    def get_coupon_by_code(self, code: str) -> RemoteResult[Optional[Coupon]]:
        def run():
            snap = self._find(canonical_code(code))
            if snap is None:
                return None
            data = snap.to_dict() or {}
            if data.get("is_active") is False:
                return None
            try:
                return Coupon(**data)
            except ValidationError as exc:
                # A malformed admin entry must not look like a platform outage.
                logger.error("coupon %s (%s) is malformed: %s", data.get("code"), snap.id, exc)
                return None
        return self._guard("get_coupon_by_code", run)

    def increment_coupon_usage(self, code: str) -> RemoteResult[None]:
        def run():
            snap = self._find(canonical_code(code))
            if snap is None:
                logger.warning("usage increment for unknown coupon %s", code)
                return None
            snap.reference.update(
                {"used_count": gcf.Increment(1), "updated_at": gcf.SERVER_TIMESTAMP},
                **self._write_opts(),
            )
        return self._guard("increment_coupon_usage", run)
