"""
API Entities.

Typed result objects for each kind of data the Cleeng API returns.
"""

from cleeng.core.entity import Collection, Entity
from cleeng.entities.customer import (
    AccessStatus,
    Customer,
    CustomerEmail,
    CustomerRental,
    CustomerSubscription,
    CustomerToken,
    OperationStatus,
    RemoteAuth,
)
from cleeng.entities.offer import (
    BundleOffer,
    EventOffer,
    MultiCurrencyOffer,
    PassOffer,
    RentalOffer,
    SingleOffer,
    SubscriptionOffer,
)
from cleeng.entities.publisher import Associate, Publisher, PublisherEmail

__all__ = [
    "Entity",
    "Collection",
    "AccessStatus",
    "Customer",
    "CustomerEmail",
    "CustomerRental",
    "CustomerSubscription",
    "CustomerToken",
    "OperationStatus",
    "RemoteAuth",
    "BundleOffer",
    "EventOffer",
    "MultiCurrencyOffer",
    "PassOffer",
    "RentalOffer",
    "SingleOffer",
    "SubscriptionOffer",
    "Associate",
    "Publisher",
    "PublisherEmail",
]
