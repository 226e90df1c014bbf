"""User entity: the commerce-side projection (ownership and membership)"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Set

from ..value_objects.entity_ids import ProductId, UserId
from ..enums import EntitlementSource, MembershipStatus, UserRole
from ..exceptions import ForbiddenError, NotFoundError, ValidationError
from ..value_objects.billing_period import add_months, same_calendar_month


@dataclass(frozen=True)
class OwnedProduct:
    product_id: ProductId
    acquired_at: datetime
    source: EntitlementSource = EntitlementSource.ORDER


@dataclass
class Membership:
    plan_key: Optional[str] = None
    status: MembershipStatus = MembershipStatus.NONE
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def is_effective(self, now: datetime) -> bool:
        return (
            self.status == MembershipStatus.ACTIVE
            and bool(self.plan_key)
            and self.expires_at is not None
            and self.expires_at > now
        )


@dataclass
class MembershipUsage:
    period_start: Optional[datetime] = None
    downloads_used: int = 0
    remix_requests_used: int = 0

    def reset(self, now: datetime) -> None:
        self.period_start = now
        self.downloads_used = 0
        self.remix_requests_used = 0

    def roll(self, now: datetime) -> bool:
        """Start a new monthly window if the calendar month changed."""
        if self.period_start is None or not same_calendar_month(self.period_start, now):
            self.reset(now)
            return True
        return False


@dataclass
class User:
    id: UserId
    email: str
    name: Optional[str] = None
    role: UserRole = UserRole.USER
    is_deleted: bool = False
    is_banned: bool = False
    owned_products: List[OwnedProduct] = field(default_factory=list)
    membership: Membership = field(default_factory=Membership)
    membership_usage: MembershipUsage = field(default_factory=MembershipUsage)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def ensure_can_purchase(self) -> None:
        if self.is_deleted:
            raise NotFoundError("User not found")
        if self.is_banned:
            raise ForbiddenError("Account suspended")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def owned_product_ids(self) -> Set[ProductId]:
        return {item.product_id for item in self.owned_products}

    def owns(self, product_id: ProductId) -> bool:
        return product_id in self.owned_product_ids

    def grant_products(
        self,
        product_ids: Iterable[ProductId],
        now: datetime,
        source: EntitlementSource = EntitlementSource.ORDER,
    ) -> List[OwnedProduct]:
        """Add products the user does not own yet. Returns only the new entries."""
        owned = self.owned_product_ids
        granted = []
        for product_id in product_ids:
            if product_id in owned:
                continue
            entry = OwnedProduct(product_id=product_id, acquired_at=now, source=source)
            self.owned_products.append(entry)
            owned.add(product_id)
            granted.append(entry)
        if granted:
            self.updated_at = now
        return granted

    def revoke_products(self, product_ids: Iterable[ProductId]) -> List[ProductId]:
        revoked = set(product_ids) & self.owned_product_ids
        self.owned_products = [p for p in self.owned_products if p.product_id not in revoked]
        return list(revoked)

    def activate_membership(self, plan_key: str, months: int, now: datetime) -> Membership:
        """Grant a paid membership period.

        Renewing the plan that is currently active extends from the current
        expiry so unused time is kept; anything else starts a fresh period
        and resets the monthly usage counters.
        """
        current = self.membership
        renewing = current.is_effective(now) and current.plan_key == plan_key

        if renewing:
            base = current.expires_at
            started_at = current.started_at or now
        else:
            base = now
            started_at = now
            self.membership_usage.reset(now)

        self.membership = Membership(
            plan_key=plan_key,
            status=MembershipStatus.ACTIVE,
            started_at=started_at,
            expires_at=add_months(base, months),
        )
        self.updated_at = now
        return self.membership

    def revoke_membership(self, now: datetime) -> None:
        self.membership.status = MembershipStatus.REFUNDED
        self.membership.expires_at = now
        self.updated_at = now

    def cancel_membership(self, now: datetime) -> None:
        """Stop renewal; access stays until the current expiry."""
        if not self.membership.plan_key:
            raise ValidationError("You do not have an active membership.")
        if self.membership.status != MembershipStatus.ACTIVE:
            raise ValidationError(
                f"Cannot cancel membership with status {self.membership.status.value}."
            )
        self.membership.status = MembershipStatus.CANCELLED
        self.updated_at = now

    def resume_membership(self, now: datetime) -> None:
        if not self.membership.plan_key:
            raise ValidationError("No membership history found to resume.")
        if self.membership.status not in (MembershipStatus.CANCELLED, MembershipStatus.EXPIRED):
            raise ValidationError(
                f"Cannot resume membership from status {self.membership.status.value}."
            )
        if self.membership.expires_at is None or self.membership.expires_at <= now:
            raise ValidationError("Membership period has ended. Please purchase a new plan.")
        self.membership.status = MembershipStatus.ACTIVE
        self.updated_at = now

    def active_membership(self, now: datetime) -> Optional[Membership]:
        """Membership that currently grants access, if any.

        A cancelled membership keeps working until its paid period ends.
        """
        membership = self.membership
        if self.is_deleted or not membership.plan_key or membership.expires_at is None:
            return None
        if membership.status not in (MembershipStatus.ACTIVE, MembershipStatus.CANCELLED):
            return None
        if membership.expires_at <= now:
            return None
        return membership
