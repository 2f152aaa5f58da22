"""
Offer entities.

Every offer kind shares the common fields below and adds its own.
"""

from cleeng.core.entity import Entity


_OFFER_FIELDS = (
    "id",
    "publisherEmail",
    "url",
    "title",
    "description",
    "price",
    "applicableTaxRate",
    "customerPriceInclTax",
    "customerPriceExclTax",
    "customerCurrency",
    "customerCurrencySymbol",
    "currency",
    "country",
    "tags",
    "active",
    "createdAt",
    "updatedAt",
    "geoRestrictionEnabled",
    "geoRestrictionType",
    "geoRestrictionCountries",
    "averageRating",
    "contentType",
    "contentExternalId",
    "contentExternalData",
    "contentAgeRestriction",
    "socialCommissionRate",
)


class SingleOffer(Entity):
    """Pay-per-item access to a single piece of content."""

    FIELDS = _OFFER_FIELDS + (
        "socialCommissionEnabled",
    )


class RentalOffer(Entity):
    """Time-limited access to a single piece of content."""

    FIELDS = _OFFER_FIELDS + (
        "period",
    )


class EventOffer(Entity):
    """Access to a live event."""

    FIELDS = _OFFER_FIELDS + (
        "startTime",
        "endTime",
        "timezone",
    )


class SubscriptionOffer(Entity):
    """Recurring access to content matching the offer's access rules."""

    FIELDS = _OFFER_FIELDS + (
        "period",
        "freeDays",
        "freePeriods",
        "accessToTags",
    )


class PassOffer(Entity):
    """Non-recurring access for a period or until a fixed date."""

    FIELDS = _OFFER_FIELDS + (
        "period",
        "expiresAt",
        "accessToTags",
    )


class BundleOffer(Entity):
    """Bundle of other offers sold together."""

    FIELDS = _OFFER_FIELDS + (
        "offerIdList",
    )


class MultiCurrencyOffer(Entity):
    """Group of offers with the same content priced in several currencies."""

    FIELDS = (
        "id",
        "offers",
        "localizedData",
    )
