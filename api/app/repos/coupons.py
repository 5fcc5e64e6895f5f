"""Coupon lookup contract and an in-memory implementation."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import DefaultDict, Dict, Iterable, Tuple

from ..domain.coupons import Coupon, Eligibility, normalize_code
from ..errors import CouponUnavailableError, NotFoundError
from ..pricing.coupons import check_coupon


class CouponRepo(ABC):
    """Contract for resolving coupons and their eligibility."""

    @abstractmethod
    def get_coupon(self, code: str) -> Coupon:
        """Return the coupon for ``code`` or raise ``NotFoundError``."""
        raise NotImplementedError

    @abstractmethod
    def check_eligibility(
        self,
        coupon: Coupon,
        user_id: str | None,
        store_id: str | None,
        subtotal: Decimal,
        *,
        now: datetime | None = None,
    ) -> Eligibility:
        """Return whether ``coupon`` applies, including usage caps."""
        raise NotImplementedError


class InMemoryCoupons(CouponRepo):
    """Coupons and their redemption counts held in process memory.

    ``redeem`` takes a lock so that the cap check and the increment happen as
    one step, giving exactly one increment per placed order.
    """

    def __init__(
        self,
        coupons: Iterable[Coupon] = (),
        user_uses: Dict[Tuple[str, str], int] | None = None,
    ) -> None:
        self._coupons: Dict[str, Coupon] = {c.code: c for c in coupons}
        self._user_uses: DefaultDict[Tuple[str, str], int] = defaultdict(int)
        for key, count in (user_uses or {}).items():
            self._user_uses[(normalize_code(key[0]), key[1])] = count
        self._lock = threading.Lock()

    def get_coupon(self, code: str) -> Coupon:
        try:
            return self._coupons[normalize_code(code)]
        except KeyError:
            raise NotFoundError("coupon", normalize_code(code)) from None

    def user_uses(self, code: str, user_id: str | None) -> int | None:
        if user_id is None:
            return None
        return self._user_uses.get((normalize_code(code), user_id), 0)

    def check_eligibility(
        self,
        coupon: Coupon,
        user_id: str | None,
        store_id: str | None,
        subtotal: Decimal,
        *,
        now: datetime | None = None,
    ) -> Eligibility:
        return check_coupon(
            coupon,
            subtotal=subtotal,
            store_id=store_id,
            now=now,
            user_uses=self.user_uses(coupon.code, user_id),
        )

    def redeem(self, code: str, user_id: str | None = None) -> Coupon:
        """Record one use of ``code`` if its caps allow it."""

        code = normalize_code(code)
        with self._lock:
            coupon = self.get_coupon(code)
            if coupon.max_uses is not None and coupon.uses >= coupon.max_uses:
                raise CouponUnavailableError(
                    "USAGE_CAP", "Coupon usage limit exceeded", details={"code": code}
                )
            if (
                coupon.per_user_limit is not None
                and (user_id is None or self.user_uses(code, user_id) >= coupon.per_user_limit)
            ):
                raise CouponUnavailableError(
                    "USER_CAP", f"Coupon {code} already used", details={"code": code}
                )
            coupon = coupon.model_copy(update={"uses": coupon.uses + 1})
            self._coupons[code] = coupon
            if user_id is not None:
                self._user_uses[(code, user_id)] += 1
            return coupon


__all__ = ["CouponRepo", "InMemoryCoupons"]
