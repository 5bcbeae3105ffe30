"""
Studio Pricing Calculator - Project Services to Priced Lines
==============================================================

RULES (NON-NEGOTIABLE):
- Pure projection: same services + catalog + settings → same snapshot
- Unit price resolution: project override → catalog default
  → catalog daily rate → zero (flagged as missing, never an error)
- A missing catalog entry means "no catalog price"
- Line total = quantity × discounted unit price, integer cents only
- Deposit = percent_of(total, deposit_percent), balance = total − deposit
- Lines are ordered by project service position, then id

Price sources:
    PROJECT     - ProjectService.price_cents_override
    DEFAULT     - CatalogService.default_price_cents
    DAILY_RATE  - CatalogService.daily_rate_cents
    MISSING     - nothing configured, unit price 0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from core.money import (
    clamp_percent,
    multiply,
    percent_off_floor,
    split_deposit,
    subtract_clamped,
    sum_cents,
)
from core.primitives.document import LineItem
from core.primitives.project import (
    CatalogService,
    DiscountType,
    Project,
    ProjectService,
)

PRICE_SOURCE_PROJECT = "PROJECT"
PRICE_SOURCE_DEFAULT = "DEFAULT"
PRICE_SOURCE_DAILY_RATE = "DAILY_RATE"
PRICE_SOURCE_MISSING = "MISSING"


# ══════════════════════════════════════════════════════════════
# UNIT PRICE RESOLUTION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PriceResolution:
    unit_price_cents: int
    source: str

    @property
    def missing_price(self) -> bool:
        return self.source == PRICE_SOURCE_MISSING


def resolve_unit_price(
    override_cents: Optional[int],
    catalog: Optional[CatalogService],
) -> PriceResolution:
    if override_cents is not None:
        return PriceResolution(override_cents, PRICE_SOURCE_PROJECT)
    if catalog is not None and catalog.default_price_cents is not None:
        return PriceResolution(catalog.default_price_cents, PRICE_SOURCE_DEFAULT)
    if catalog is not None and catalog.daily_rate_cents is not None:
        return PriceResolution(catalog.daily_rate_cents, PRICE_SOURCE_DAILY_RATE)
    return PriceResolution(0, PRICE_SOURCE_MISSING)


def apply_discount(
    unit_price_cents: int,
    discount_type: DiscountType,
    discount_value: Optional[int],
) -> Tuple[int, Optional[int]]:
    """
    Return (final_unit_price, original_unit_price or None).

    PERCENT floors the discounted price; AMOUNT never goes below zero.
    """
    if discount_type == DiscountType.PERCENT and discount_value is not None:
        bounded = clamp_percent(discount_value)
        return percent_off_floor(unit_price_cents, bounded), unit_price_cents
    if discount_type == DiscountType.AMOUNT and discount_value is not None:
        return subtract_clamped(unit_price_cents, max(0, discount_value)), unit_price_cents
    return unit_price_cents, None


def resolve_label(
    project_service: ProjectService,
    catalog: Optional[CatalogService],
) -> str:
    title = (project_service.title_override or "").strip()
    if title:
        return title
    if catalog is not None and catalog.name:
        return catalog.name
    if catalog is not None and catalog.code:
        return catalog.code
    return f"Service {project_service.service_id}"


# ══════════════════════════════════════════════════════════════
# SNAPSHOT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingLine:
    project_service_id: str
    item: LineItem
    price_source: str

    def to_dict(self) -> dict:
        data = self.item.to_dict()
        data.update(
            project_service_id=self.project_service_id,
            price_source=self.price_source,
        )
        return data


@dataclass(frozen=True)
class PricingSnapshot:
    project_id: str
    client_id: Optional[str]
    currency: str
    deposit_percent: int
    lines: Tuple[PricingLine, ...]
    total_cents: int
    deposit_cents: int
    balance_cents: int

    @property
    def items(self) -> Tuple[LineItem, ...]:
        return tuple(line.item for line in self.lines)

    @property
    def missing_price_services(self) -> Tuple[dict, ...]:
        return tuple(
            {"service_id": line.item.service_id, "label": line.item.label}
            for line in self.lines
            if line.price_source == PRICE_SOURCE_MISSING
        )

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "client_id": self.client_id,
            "currency": self.currency,
            "deposit_percent": self.deposit_percent,
            "total_cents": self.total_cents,
            "deposit_cents": self.deposit_cents,
            "balance_cents": self.balance_cents,
            "items": [line.to_dict() for line in self.lines],
            "missing_price_services": list(self.missing_price_services),
        }


def price_line(
    project_service: ProjectService,
    catalog: Optional[CatalogService],
) -> PricingLine:
    resolution = resolve_unit_price(project_service.price_cents_override, catalog)
    final_unit, original_unit = apply_discount(
        resolution.unit_price_cents,
        project_service.discount_type,
        project_service.discount_value,
    )
    quantity = project_service.quantity if project_service.quantity > 0 else 1
    item = LineItem(
        label=resolve_label(project_service, catalog),
        quantity=quantity,
        unit_price_cents=final_unit,
        total_cents=multiply(final_unit, quantity),
        service_id=project_service.service_id,
        description=project_service.description or project_service.notes,
        discount_type=(
            project_service.discount_type if original_unit is not None
            else DiscountType.NONE
        ),
        discount_value=(
            project_service.discount_value if original_unit is not None else None
        ),
        original_unit_price_cents=original_unit,
    )
    return PricingLine(
        project_service_id=project_service.project_service_id,
        item=item,
        price_source=resolution.source,
    )


def compute_pricing(
    project: Project,
    project_services: Iterable[ProjectService],
    catalog: Dict[str, CatalogService],
    *,
    deposit_percent: int,
    currency: str,
) -> PricingSnapshot:
    """Price every service of `project`; services of other projects are skipped."""
    ordered: List[ProjectService] = sorted(
        (ps for ps in project_services if ps.project_id == project.project_id),
        key=lambda ps: (ps.position, ps.project_service_id),
    )
    lines = tuple(price_line(ps, catalog.get(ps.service_id)) for ps in ordered)
    percent = clamp_percent(deposit_percent)
    total = sum_cents(line.item.total_cents for line in lines)
    deposit, balance = split_deposit(total, percent)
    return PricingSnapshot(
        project_id=project.project_id,
        client_id=project.client_id,
        currency=currency,
        deposit_percent=percent,
        lines=lines,
        total_cents=total,
        deposit_cents=deposit,
        balance_cents=balance,
    )
