"""
Publisher and distributor entities.
"""

from cleeng.core.entity import Entity


class Publisher(Entity):
    FIELDS = (
        "id",
        "name",
        "displayName",
        "siteUrl",
        "currency",
        "country",
        "avatarUrl",
    )


class PublisherEmail(Entity):
    FIELDS = ("publisherEmail",)


class Associate(Entity):
    """Publisher account managed by a distributor."""

    FIELDS = (
        "email",
        "firstName",
        "lastName",
        "country",
        "currency",
        "locale",
    )
