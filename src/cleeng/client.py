"""
Main Cleeng API client.

Wraps the call ledger and the batch dispatcher behind one method per
Cleeng API operation.
"""

from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Type

import structlog

from cleeng.config import (
    SANDBOX_ENDPOINT,
    SANDBOX_JSAPI_URL,
    CleengConfig,
    get_config,
)
from cleeng.core.dispatcher import BatchDispatcher
from cleeng.core.entity import Collection, Entity
from cleeng.core.errors import ArgumentError, PreconditionError
from cleeng.core.ledger import CallLedger
from cleeng.entities import (
    AccessStatus,
    Associate,
    BundleOffer,
    Customer,
    CustomerEmail,
    CustomerRental,
    CustomerSubscription,
    CustomerToken,
    EventOffer,
    MultiCurrencyOffer,
    OperationStatus,
    PassOffer,
    Publisher,
    PublisherEmail,
    RemoteAuth,
    RentalOffer,
    SingleOffer,
    SubscriptionOffer,
)
from cleeng.transport.http import HttpxTransport
from cleeng.transport.interface import Transport

logger = structlog.get_logger(__name__)


class CleengApi:
    """
    Client for the Cleeng JSON-RPC API.

    Every API method returns an entity straight away. Outside batch mode the
    call is sent before the method returns, so the entity is already
    populated. In batch mode calls pile up until ``commit()`` and the
    returned entities stay pending until then.

    A client instance keeps mutable call state and must not be shared
    between threads.

    Usage:
        ```python
        api = CleengApi(CleengConfig(sandbox=True, publisher_token="..."))
        offer = api.get_single_offer("S123456789_US")
        print(offer.title)

        with api.batch():
            customer = api.get_customer()
            status = api.get_access_status("S123456789_US")
        print(customer.displayName, status.accessGranted)
        ```
    """

    def __init__(
        self,
        config: Optional[CleengConfig] = None,
        transport: Optional[Transport] = None,
        cookies: Optional[Mapping] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration. Uses global config if not provided.
            transport: Custom transport (an httpx transport if not provided)
            cookies: Request cookies, used to look up the customer's token
        """
        self.config = config or get_config()

        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport(self.config)

        self._ledger = CallLedger(batch_mode=self.config.batch_mode)
        self._dispatcher = BatchDispatcher(self.transport)

        self.endpoint = self.config.api_endpoint
        self.js_api_url = self.config.js_api_url
        self.publisher_token = self.config.publisher_token
        self.distributor_token = self.config.distributor_token
        self._customer_token = self.config.customer_token
        self.cookies = cookies

    # Configuration

    @property
    def batch_mode(self) -> bool:
        return self._ledger.batch_mode

    @batch_mode.setter
    def batch_mode(self, enabled: bool) -> None:
        self._ledger.set_batch_mode(enabled)

    def set_batch_mode(self, enabled: bool) -> "CleengApi":
        """Toggle batch mode. Returns the client for chaining."""
        self._ledger.set_batch_mode(enabled)
        return self

    def enable_sandbox(self) -> "CleengApi":
        """Point the client at the Cleeng sandbox platform."""
        self.endpoint = SANDBOX_ENDPOINT
        self.js_api_url = SANDBOX_JSAPI_URL
        logger.info("sandbox_enabled", endpoint=self.endpoint)
        return self

    @property
    def customer_token(self) -> str:
        """
        Customer's access token.

        If no token was set, it is read from the access token cookie.
        """
        if not self._customer_token and self.cookies is not None:
            token = self.cookies.get(self.config.customer_token_cookie)
            if token:
                self._customer_token = token
        return self._customer_token or ""

    @customer_token.setter
    def customer_token(self, token: Optional[str]) -> None:
        self._customer_token = token

    @property
    def raw_request(self) -> Optional[str]:
        """Last request body sent to the server."""
        return self._dispatcher.raw_request

    @property
    def raw_response(self) -> Optional[str]:
        """Last response body received from the server."""
        return self._dispatcher.raw_response

    @property
    def pending_calls(self) -> int:
        """Number of calls waiting for commit()."""
        return len(self._ledger)

    # Dispatch

    def call(
        self,
        method: str,
        params: Optional[Mapping] = None,
        entity: Optional[Entity] = None,
    ) -> Entity:
        """
        Send an API call, or queue it in batch mode.

        Args:
            method: JSON-RPC method name
            params: Named parameters
            entity: Entity to populate with the result (a plain Entity if omitted)

        Returns:
            The entity, populated unless batch mode is on
        """
        pending = self._ledger.enqueue(method, params, entity)
        if not self._ledger.batch_mode:
            self.commit()
        return pending.entity

    def commit(self) -> None:
        """
        Send all queued calls in one batch request and populate their entities.

        Raises:
            TransportError: If the server cannot be reached
            ProtocolError: If the response is not a valid JSON-RPC batch
            ApiError: If the server reports an error for any of the calls
        """
        self._dispatcher.flush(self._ledger, self.endpoint)

    @contextmanager
    def batch(self) -> Iterator["CleengApi"]:
        """
        Queue every call made inside the block and commit them on exit.

        Queued calls are discarded if the block raises.
        """
        previous = self._ledger.batch_mode
        self._ledger.set_batch_mode(True)
        try:
            yield self
        except BaseException:
            dropped = self._ledger.clear()
            logger.warning("batch_discarded", calls=dropped)
            raise
        finally:
            self._ledger.set_batch_mode(previous)

        if len(self._ledger):
            self.commit()

    def close(self) -> None:
        """Close the transport if the client created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> "CleengApi":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # Token checks

    def _require_publisher_token(self, operation: str) -> str:
        if not self.publisher_token:
            raise PreconditionError(
                f"Cannot call {operation}: publisher_token must be set first."
            )
        return self.publisher_token

    def _require_distributor_token(self, operation: str) -> str:
        if not self.distributor_token:
            raise PreconditionError(
                f"Cannot call {operation}: distributor_token must be set first."
            )
        return self.distributor_token

    # Customer API

    def get_customer(self) -> Customer:
        """Get the customer identified by the customer token."""
        return self.call(
            "getCustomer",
            {"customerToken": self.customer_token},
            Customer(),
        )

    def get_customer_email(self) -> CustomerEmail:
        return self.call(
            "getCustomerEmail",
            {
                "publisherToken": self.publisher_token,
                "customerToken": self.customer_token,
            },
            CustomerEmail(),
        )

    def track_offer_impression(self, offer_id: str, ip_address: str = "") -> OperationStatus:
        """Register that an offer was shown, for the current customer if known."""
        params = {"offerId": offer_id}
        token = self.customer_token
        if token:
            params["customerToken"] = token
        params["ipAddress"] = ip_address
        return self.call("trackOfferImpression", params, OperationStatus())

    def get_access_status(self, offer_id: str, ip_address: str = "") -> AccessStatus:
        """
        Check whether the current customer has access to an offer.

        Args:
            offer_id: Offer to check
            ip_address: Customer's IP address, used for geo restrictions

        Returns:
            AccessStatus entity
        """
        return self.call(
            "getAccessStatus",
            {
                "customerToken": self.customer_token,
                "offerId": offer_id,
                "ipAddress": ip_address,
            },
            AccessStatus(),
        )

    def is_access_granted(self, offer_id: str, ip_address: str = "") -> bool:
        """
        Shortcut for ``get_access_status(...).accessGranted``.

        Only usable outside batch mode, as it reads the result immediately.
        """
        return self.get_access_status(offer_id, ip_address).accessGranted

    def prepare_remote_auth(self, customer_data: Mapping, flow_description: Mapping) -> RemoteAuth:
        publisher_token = self._require_publisher_token("prepareRemoteAuth")
        if not isinstance(customer_data, Mapping):
            raise ArgumentError("'customer_data' must be a mapping.")
        if not isinstance(flow_description, Mapping):
            raise ArgumentError("'flow_description' must be a mapping.")
        return self.call(
            "prepareRemoteAuth",
            {
                "publisherToken": publisher_token,
                "customerData": dict(customer_data),
                "flowDescription": dict(flow_description),
            },
            RemoteAuth(),
        )

    def generate_customer_token(self, customer_email: str) -> CustomerToken:
        publisher_token = self._require_publisher_token("generateCustomerToken")
        return self.call(
            "generateCustomerToken",
            {"publisherToken": publisher_token, "customerEmail": customer_email},
            CustomerToken(),
        )

    def update_customer_email(self, customer_email: str, new_email: str) -> OperationStatus:
        publisher_token = self._require_publisher_token("updateCustomerEmail")
        return self.call(
            "updateCustomerEmail",
            {
                "publisherToken": publisher_token,
                "customerEmail": customer_email,
                "newEmail": new_email,
            },
            OperationStatus(),
        )

    def update_customer_subscription(
        self,
        customer_email: str,
        offer_id: str,
        subscription_data: Mapping,
    ) -> CustomerSubscription:
        publisher_token = self._require_publisher_token("updateCustomerSubscription")
        return self.call(
            "updateCustomerSubscription",
            {
                "publisherToken": publisher_token,
                "customerEmail": customer_email,
                "offerId": offer_id,
                "subscriptionData": subscription_data,
            },
            CustomerSubscription(),
        )

    def update_customer_rental(
        self,
        customer_email: str,
        offer_id: str,
        rental_data: Mapping,
    ) -> CustomerRental:
        publisher_token = self._require_publisher_token("updateCustomerRental")
        return self.call(
            "updateCustomerRental",
            {
                "publisherToken": publisher_token,
                "customerEmail": customer_email,
                "offerId": offer_id,
                "rentalData": rental_data,
            },
            CustomerRental(),
        )

    def list_customer_subscriptions(
        self,
        customer_email: str,
        offset: int,
        limit: int,
    ) -> Collection:
        publisher_token = self._require_publisher_token("listCustomerSubscriptions")
        return self.call(
            "listCustomerSubscriptions",
            {
                "publisherToken": publisher_token,
                "customerEmail": customer_email,
                "offset": offset,
                "limit": limit,
            },
            Collection(CustomerSubscription),
        )

    # Publisher API

    def get_publisher(self) -> Publisher:
        publisher_token = self._require_publisher_token("getPublisher")
        return self.call("getPublisher", {"publisherToken": publisher_token}, Publisher())

    def get_publisher_email(self, publisher_id: str) -> PublisherEmail:
        """Convert a publisher ID to the publisher's e-mail address."""
        return self.call("getPublisherEmail", {"publisherId": publisher_id}, PublisherEmail())

    # Offer API helpers, shared by all offer kinds

    def _get_offer(self, kind: str, entity_type: Type[Entity], offer_id: str) -> Entity:
        return self.call(f"get{kind}Offer", {"offerId": offer_id}, entity_type())

    def _list_offers(
        self,
        kind: str,
        entity_type: Type[Entity],
        criteria: Optional[Mapping],
        offset: int,
        limit: int,
    ) -> Collection:
        return self.call(
            f"list{kind}Offers",
            {
                "publisherToken": self.publisher_token,
                "criteria": dict(criteria or {}),
                "offset": offset,
                "limit": limit,
            },
            Collection(entity_type),
        )

    def _create_offer(
        self,
        kind: str,
        entity_type: Type[Entity],
        offer_data: Mapping,
    ) -> Entity:
        method = f"create{kind}Offer"
        publisher_token = self._require_publisher_token(method)
        return self.call(
            method,
            {"publisherToken": publisher_token, "offerData": offer_data},
            entity_type(),
        )

    def _update_offer(
        self,
        kind: str,
        entity_type: Type[Entity],
        offer_id: str,
        offer_data: Mapping,
    ) -> Entity:
        method = f"update{kind}Offer"
        publisher_token = self._require_publisher_token(method)
        return self.call(
            method,
            {
                "publisherToken": publisher_token,
                "offerId": offer_id,
                "offerData": offer_data,
            },
            entity_type(),
        )

    def _deactivate_offer(self, kind: str, entity_type: Type[Entity], offer_id: str) -> Entity:
        method = f"deactivate{kind}Offer"
        publisher_token = self._require_publisher_token(method)
        return self.call(
            method,
            {"publisherToken": publisher_token, "offerId": offer_id},
            entity_type(),
        )

    def _create_multi_currency_offer(
        self,
        kind: str,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        method = f"createMultiCurrency{kind}Offer"
        publisher_token = self._require_publisher_token(method)
        return self.call(
            method,
            {
                "publisherToken": publisher_token,
                "offerData": offer_data,
                "localizedData": localized_data,
            },
            MultiCurrencyOffer(),
        )

    def _update_multi_currency_offer(
        self,
        kind: str,
        multi_currency_offer_id: str,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        method = f"updateMultiCurrency{kind}Offer"
        publisher_token = self._require_publisher_token(method)
        return self.call(
            method,
            {
                "publisherToken": publisher_token,
                "multiCurrencyOfferId": multi_currency_offer_id,
                "offerData": offer_data,
                "localizedData": localized_data,
            },
            MultiCurrencyOffer(),
        )

    # Single Offer API

    def get_single_offer(self, offer_id: str) -> SingleOffer:
        return self._get_offer("Single", SingleOffer, offer_id)

    def list_single_offers(
        self,
        criteria: Optional[Mapping] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Collection:
        return self._list_offers("Single", SingleOffer, criteria, offset, limit)

    def create_single_offer(self, offer_data: Mapping) -> SingleOffer:
        return self._create_offer("Single", SingleOffer, offer_data)

    def update_single_offer(self, offer_id: str, offer_data: Mapping) -> SingleOffer:
        return self._update_offer("Single", SingleOffer, offer_id, offer_data)

    def deactivate_single_offer(self, offer_id: str) -> SingleOffer:
        return self._deactivate_offer("Single", SingleOffer, offer_id)

    def create_multi_currency_single_offer(
        self,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._create_multi_currency_offer("Single", offer_data, localized_data)

    def update_multi_currency_single_offer(
        self,
        multi_currency_offer_id: str,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._update_multi_currency_offer(
            "Single", multi_currency_offer_id, offer_data, localized_data
        )

    # Rental Offer API

    def get_rental_offer(self, offer_id: str) -> RentalOffer:
        return self._get_offer("Rental", RentalOffer, offer_id)

    def list_rental_offers(
        self,
        criteria: Optional[Mapping] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Collection:
        return self._list_offers("Rental", RentalOffer, criteria, offset, limit)

    def create_rental_offer(self, offer_data: Mapping) -> RentalOffer:
        return self._create_offer("Rental", RentalOffer, offer_data)

    def update_rental_offer(self, offer_id: str, offer_data: Mapping) -> RentalOffer:
        return self._update_offer("Rental", RentalOffer, offer_id, offer_data)

    def deactivate_rental_offer(self, offer_id: str) -> RentalOffer:
        return self._deactivate_offer("Rental", RentalOffer, offer_id)

    def create_multi_currency_rental_offer(
        self,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._create_multi_currency_offer("Rental", offer_data, localized_data)

    def update_multi_currency_rental_offer(
        self,
        multi_currency_offer_id: str,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._update_multi_currency_offer(
            "Rental", multi_currency_offer_id, offer_data, localized_data
        )

    # Event Offer API

    def get_event_offer(self, offer_id: str) -> EventOffer:
        return self._get_offer("Event", EventOffer, offer_id)

    def list_event_offers(
        self,
        criteria: Optional[Mapping] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Collection:
        return self._list_offers("Event", EventOffer, criteria, offset, limit)

    def create_event_offer(self, offer_data: Mapping) -> EventOffer:
        return self._create_offer("Event", EventOffer, offer_data)

    def update_event_offer(self, offer_id: str, offer_data: Mapping) -> EventOffer:
        return self._update_offer("Event", EventOffer, offer_id, offer_data)

    def deactivate_event_offer(self, offer_id: str) -> EventOffer:
        return self._deactivate_offer("Event", EventOffer, offer_id)

    def create_multi_currency_event_offer(
        self,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._create_multi_currency_offer("Event", offer_data, localized_data)

    def update_multi_currency_event_offer(
        self,
        multi_currency_offer_id: str,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._update_multi_currency_offer(
            "Event", multi_currency_offer_id, offer_data, localized_data
        )

    # Subscription Offer API

    def get_subscription_offer(self, offer_id: str) -> SubscriptionOffer:
        return self._get_offer("Subscription", SubscriptionOffer, offer_id)

    def list_subscription_offers(
        self,
        criteria: Optional[Mapping] = None,
        offset: int = 1,
        limit: int = 20,
    ) -> Collection:
        return self._list_offers("Subscription", SubscriptionOffer, criteria, offset, limit)

    def create_subscription_offer(self, offer_data: Mapping) -> SubscriptionOffer:
        return self._create_offer("Subscription", SubscriptionOffer, offer_data)

    def update_subscription_offer(self, offer_id: str, offer_data: Mapping) -> SubscriptionOffer:
        return self._update_offer("Subscription", SubscriptionOffer, offer_id, offer_data)

    def deactivate_subscription_offer(self, offer_id: str) -> SubscriptionOffer:
        return self._deactivate_offer("Subscription", SubscriptionOffer, offer_id)

    def create_multi_currency_subscription_offer(
        self,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._create_multi_currency_offer("Subscription", offer_data, localized_data)

    # Pass Offer API

    def get_pass_offer(self, offer_id: str) -> PassOffer:
        return self._get_offer("Pass", PassOffer, offer_id)

    def list_pass_offers(
        self,
        criteria: Optional[Mapping] = None,
        offset: int = 1,
        limit: int = 20,
    ) -> Collection:
        return self._list_offers("Pass", PassOffer, criteria, offset, limit)

    def create_pass_offer(self, offer_data: Mapping) -> PassOffer:
        return self._create_offer("Pass", PassOffer, offer_data)

    def update_pass_offer(self, offer_id: str, offer_data: Mapping) -> PassOffer:
        return self._update_offer("Pass", PassOffer, offer_id, offer_data)

    def deactivate_pass_offer(self, offer_id: str) -> PassOffer:
        return self._deactivate_offer("Pass", PassOffer, offer_id)

    def create_multi_currency_pass_offer(
        self,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._create_multi_currency_offer("Pass", offer_data, localized_data)

    # Bundle Offer API

    def get_bundle_offer(self, offer_id: str) -> BundleOffer:
        return self._get_offer("Bundle", BundleOffer, offer_id)

    def list_bundle_offers(
        self,
        criteria: Optional[Mapping] = None,
        offset: int = 1,
        limit: int = 20,
    ) -> Collection:
        return self._list_offers("Bundle", BundleOffer, criteria, offset, limit)

    def create_bundle_offer(self, offer_data: Mapping) -> BundleOffer:
        return self._create_offer("Bundle", BundleOffer, offer_data)

    def update_bundle_offer(self, offer_id: str, offer_data: Mapping) -> BundleOffer:
        return self._update_offer("Bundle", BundleOffer, offer_id, offer_data)

    def deactivate_bundle_offer(self, offer_id: str) -> BundleOffer:
        return self._deactivate_offer("Bundle", BundleOffer, offer_id)

    def create_multi_currency_bundle_offer(
        self,
        offer_data: Mapping,
        localized_data: Any,
    ) -> MultiCurrencyOffer:
        return self._create_multi_currency_offer("Bundle", offer_data, localized_data)

    # Associate API

    def get_associate(self, associate_email: str) -> Associate:
        distributor_token = self._require_distributor_token("getAssociate")
        return self.call(
            "getAssociate",
            {"distributorToken": distributor_token, "associateEmail": associate_email},
            Associate(),
        )

    def create_associate(self, associate_data: Mapping) -> Associate:
        distributor_token = self._require_distributor_token("createAssociate")
        return self.call(
            "createAssociate",
            {"distributorToken": distributor_token, "associateData": associate_data},
            Associate(),
        )

    def update_associate(self, associate_email: str, associate_data: Mapping) -> Associate:
        distributor_token = self._require_distributor_token("updateAssociate")
        return self.call(
            "updateAssociate",
            {
                "distributorToken": distributor_token,
                "associateEmail": associate_email,
                "associateData": associate_data,
            },
            Associate(),
        )
