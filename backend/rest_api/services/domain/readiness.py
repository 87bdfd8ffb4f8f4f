"""
Kitchen readiness of an order as a tagged variant.

An order cooked by a single station needs one readiness signal; a mixed
order needs one from each station. Persistence keeps the two flags plus
kitchen_type on the Order row; everything that reasons about readiness goes
through ``readiness_of(order)`` and the pure functions below.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Union

from shared.config.constants import KitchenType

if TYPE_CHECKING:
    from rest_api.models import Order


@dataclass(frozen=True)
class SingleReadiness:
    """Order prepared by one station (food or beverage)."""

    kitchen: str
    ready: bool = False


@dataclass(frozen=True)
class MixedReadiness:
    """Order with items from both stations."""

    food_ready: bool = False
    beverage_ready: bool = False


Readiness = Union[SingleReadiness, MixedReadiness]


def classify_kitchen_type(kitchens: Iterable[str]) -> str:
    """
    Kitchen type of an order from the stations of its items.

    One distinct station gives that station, two give mixed, no item
    defaults to food.
    """
    stations = {k for k in kitchens if k in KitchenType.STATIONS}
    if len(stations) > 1:
        return KitchenType.MIXED
    if stations:
        return stations.pop()
    return KitchenType.FOOD


def readiness_of(order: "Order") -> Readiness:
    """Build the readiness variant from an order's stored flags."""
    if order.kitchen_type == KitchenType.MIXED:
        return MixedReadiness(
            food_ready=bool(order.food_ready),
            beverage_ready=bool(order.beverage_ready),
        )
    kitchen = order.kitchen_type if order.kitchen_type in KitchenType.STATIONS else KitchenType.FOOD
    flag = order.beverage_ready if kitchen == KitchenType.BEVERAGE else order.food_ready
    return SingleReadiness(kitchen=kitchen, ready=bool(flag))


def is_complete(readiness: Readiness) -> bool:
    """True once every station involved has finished."""
    if isinstance(readiness, MixedReadiness):
        return readiness.food_ready and readiness.beverage_ready
    return readiness.ready


def pending_kitchens(readiness: Readiness) -> list[str]:
    """Stations that still have to finish, in station order."""
    if isinstance(readiness, MixedReadiness):
        pending = []
        if not readiness.food_ready:
            pending.append(KitchenType.FOOD)
        if not readiness.beverage_ready:
            pending.append(KitchenType.BEVERAGE)
        return pending
    return [] if readiness.ready else [readiness.kitchen]


def mark_station_ready(readiness: Readiness, kitchen: str) -> Readiness:
    """
    Record that `kitchen` finished.

    A single-station order is complete whichever station reports it: the
    order only has one set of items to prepare.
    """
    if isinstance(readiness, MixedReadiness):
        if kitchen == KitchenType.BEVERAGE:
            return replace(readiness, beverage_ready=True)
        return replace(readiness, food_ready=True)
    return replace(readiness, ready=True)


def apply_readiness(order: "Order", readiness: Readiness) -> None:
    """Write a readiness variant back to the order's flags."""
    if isinstance(readiness, MixedReadiness):
        order.food_ready = readiness.food_ready
        order.beverage_ready = readiness.beverage_ready
    elif readiness.kitchen == KitchenType.BEVERAGE:
        order.beverage_ready = readiness.ready
    else:
        order.food_ready = readiness.ready


def force_all_flags(order: "Order") -> None:
    """Set both flags, used when a manager forces an order to ready."""
    order.food_ready = True
    order.beverage_ready = True
