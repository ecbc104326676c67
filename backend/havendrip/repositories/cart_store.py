# havendrip/repositories/cart_store.py
"""
Firestore-backed CartStore.

Collections (prefix-aware):
- cart_items : one document per line  {user_id, product_id, quantity, size, color, created_at}
- wishlist   : one document per entry {user_id, product_id, size, color, created_at}
- carts/{uid}: per-user cart metadata  {applied_coupon_code, updated_at}
- products   : catalog, read only     {name, selling_price, mrp, seller_id, shipping_charges,
                                        estimated_delivery | delivery_days, images}
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from google.cloud import firestore as gcf
from google.cloud.firestore_v1.base_query import FieldFilter

from havendrip.core.results import RemoteResult
from havendrip.repositories.firestore import BATCH_LIMIT, FirestoreAdapter, snapshot_dict
from havendrip.schemas.cart import CartLine, WishlistEntry, parse_delivery_days
from havendrip.schemas.common import to_decimal

logger = logging.getLogger("havendrip.cart_store")

CART_ITEMS = "cart_items"
WISHLIST = "wishlist"
CARTS = "carts"
PRODUCTS = "products"


def _first_image(images: Any) -> Optional[str]:
    if isinstance(images, list) and images:
        val = images[0]
        return str(val) if val is not None else None
    return None


def _sort_key(data: Dict[str, Any]):
    # Without a composite index we sort client side; missing timestamps go first.
    ts = data.get("created_at")
    return (ts is not None, str(ts) if ts is not None else "")


def line_from_docs(line_id: str, item: Dict[str, Any], product: Dict[str, Any]) -> CartLine:
    delivery = product.get("delivery_days")
    if delivery is None:
        delivery = product.get("estimated_delivery")
    return CartLine(
        line_id=line_id,
        product_id=str(item.get("product_id")),
        name=product.get("name") or product.get("title") or "",
        image_url=product.get("image_url") or _first_image(product.get("images")),
        selling_price=to_decimal(product.get("selling_price", product.get("price"))),
        mrp=to_decimal(product.get("mrp", product.get("selling_price", product.get("price")))),
        quantity=max(1, int(item.get("quantity", 1) or 1)),
        selected_size=item.get("size"),
        selected_color=item.get("color"),
        seller_id=str(product.get("seller_id") or ""),
        shipping_charge=to_decimal(product.get("shipping_charges", product.get("shipping_charge"))),
        delivery_days=parse_delivery_days(delivery),
    )


def entry_from_docs(entry_id: str, item: Dict[str, Any], product: Dict[str, Any]) -> WishlistEntry:
    return WishlistEntry(
        entry_id=entry_id,
        product_id=str(item.get("product_id")),
        name=product.get("name") or product.get("title") or "",
        image_url=product.get("image_url") or _first_image(product.get("images")),
        selling_price=to_decimal(product["selling_price"]) if product.get("selling_price") is not None else None,
        mrp=to_decimal(product["mrp"]) if product.get("mrp") is not None else None,
        selected_size=item.get("size"),
        selected_color=item.get("color"),
    )


class FirestoreCartStore(FirestoreAdapter):

    # ---------- catalog reads ----------
    def _products_by_id(self, product_ids) -> Dict[str, Dict[str, Any]]:
        ids = sorted({pid for pid in product_ids if pid})
        if not ids:
            return {}
        refs = [self._col(PRODUCTS).document(pid) for pid in ids]
        out: Dict[str, Dict[str, Any]] = {}
        for snap in self.db.get_all(refs, **self._read_opts()):
            if snap.exists:
                out[snap.id] = snap.to_dict() or {}
        return out

    def _product(self, product_id: str) -> Dict[str, Any]:
        return snapshot_dict(self._col(PRODUCTS).document(product_id).get(**self._read_opts()))

    def _user_docs(self, collection: str, user_id: str):
        q = self._col(collection).where(filter=FieldFilter("user_id", "==", user_id))
        docs = [(doc.id, doc.to_dict() or {}) for doc in q.stream(**self._read_opts())]
        docs.sort(key=lambda pair: _sort_key(pair[1]))
        return docs

    # ---------- cart ----------
    def list_cart_lines(self, user_id: str) -> RemoteResult[List[CartLine]]:
        def run():
            docs = self._user_docs(CART_ITEMS, user_id)
            catalog = self._products_by_id(d.get("product_id") for _, d in docs)
            lines: List[CartLine] = []
            for line_id, data in docs:
                product = catalog.get(str(data.get("product_id")))
                if not product:
                    # Delisted product; the row stays until the shopper removes it elsewhere.
                    logger.warning("cart line %s references missing product %s", line_id, data.get("product_id"))
                    continue
                lines.append(line_from_docs(line_id, data, product))
            return lines
        return self._guard("list_cart_lines", run)

    def insert_cart_line(self, user_id, product_id, quantity, size, color) -> RemoteResult[Optional[CartLine]]:
        def run():
            product = self._product(product_id)
            if not product:
                return None
            data = {
                "user_id": user_id,
                "product_id": product_id,
                "quantity": int(quantity),
                "size": size,
                "color": color,
                "created_at": gcf.SERVER_TIMESTAMP,
            }
            ref = self._col(CART_ITEMS).document()
            ref.set(data, **self._write_opts())
            return line_from_docs(ref.id, data, product)
        return self._guard("insert_cart_line", run)

    def update_cart_line_quantity(self, line_id: str, quantity: int) -> RemoteResult[None]:
        def run():
            self._col(CART_ITEMS).document(line_id).update(
                {"quantity": int(quantity), "updated_at": gcf.SERVER_TIMESTAMP},
                **self._write_opts(),
            )
        return self._guard("update_cart_line_quantity", run)

    def delete_cart_line(self, line_id: str) -> RemoteResult[None]:
        def run():
            self._col(CART_ITEMS).document(line_id).delete(**self._write_opts())
        return self._guard("delete_cart_line", run)

    def delete_all_cart_lines(self, user_id: str) -> RemoteResult[None]:
        def run():
            refs = [self._col(CART_ITEMS).document(line_id) for line_id, _ in self._user_docs(CART_ITEMS, user_id)]
            for start in range(0, len(refs), BATCH_LIMIT):
                batch = self.db.batch()
                for ref in refs[start:start + BATCH_LIMIT]:
                    batch.delete(ref)
                batch.commit(**self._write_opts())
        return self._guard("delete_all_cart_lines", run)

    # ---------- wishlist ----------
    def list_wishlist(self, user_id: str) -> RemoteResult[List[WishlistEntry]]:
        def run():
            docs = self._user_docs(WISHLIST, user_id)
            catalog = self._products_by_id(d.get("product_id") for _, d in docs)
            return [
                entry_from_docs(entry_id, data, catalog[str(data.get("product_id"))])
                for entry_id, data in docs
                if str(data.get("product_id")) in catalog
            ]
        return self._guard("list_wishlist", run)

    def insert_wishlist_entry(self, user_id, product_id, size=None, color=None) -> RemoteResult[Optional[WishlistEntry]]:
        def run():
            product = self._product(product_id)
            if not product:
                return None
            data = {
                "user_id": user_id,
                "product_id": product_id,
                "size": size,
                "color": color,
                "created_at": gcf.SERVER_TIMESTAMP,
            }
            ref = self._col(WISHLIST).document()
            ref.set(data, **self._write_opts())
            return entry_from_docs(ref.id, data, product)
        return self._guard("insert_wishlist_entry", run)

    def delete_wishlist_entry(self, entry_id: str) -> RemoteResult[None]:
        def run():
            self._col(WISHLIST).document(entry_id).delete(**self._write_opts())
        return self._guard("delete_wishlist_entry", run)

    # ---------- applied coupon ----------
    def get_applied_coupon_code(self, user_id: str) -> RemoteResult[Optional[str]]:
        def run():
            data = snapshot_dict(self._col(CARTS).document(user_id).get(**self._read_opts()))
            return data.get("applied_coupon_code") or None
        return self._guard("get_applied_coupon_code", run)

    def set_applied_coupon_code(self, user_id: str, code: Optional[str]) -> RemoteResult[None]:
        def run():
            self._col(CARTS).document(user_id).set(
                {"applied_coupon_code": code, "updated_at": gcf.SERVER_TIMESTAMP},
                merge=True,
                **self._write_opts(),
            )
        return self._guard("set_applied_coupon_code", run)
