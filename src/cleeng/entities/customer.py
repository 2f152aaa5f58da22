"""
Customer API entities.

Field lists follow the Cleeng Customer API reference.
"""

from cleeng.core.entity import Entity


class Customer(Entity):
    """Provides information about a customer."""

    FIELDS = (
        "id",
        "displayName",
        "firstName",
        "lastName",
        "currency",
        "locale",
        "country",
    )


class CustomerEmail(Entity):
    """E-mail address of a customer."""

    FIELDS = ("email",)


class CustomerToken(Entity):
    """Access token generated for a customer."""

    FIELDS = ("token",)


class CustomerSubscription(Entity):
    """State of a customer's subscription to an offer."""

    FIELDS = (
        "offerId",
        "status",
        "expiresAt",
    )


class CustomerRental(Entity):
    """State of a customer's rental of an offer."""

    FIELDS = (
        "offerId",
        "status",
        "expiresAt",
    )


class AccessStatus(Entity):
    """Defines the relationship between a customer and an offer."""

    FIELDS = (
        "accessGranted",
        "grantType",
        "expiresAt",
        "socialCommissionUrl",
    )


class OperationStatus(Entity):
    FIELDS = ("success",)


class RemoteAuth(Entity):
    """Redirect URL prepared for remote authentication."""

    FIELDS = ("url",)
