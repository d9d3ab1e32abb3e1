"""
Battery Smart intent handlers.
Each handler takes the classified entities and returns an IntentResponse.
The orchestrator supplies the session's remembered driver ID in the entities.
"""

import json
import random
from collections.abc import Callable
from typing import Any

import structlog

from swap_voicebot.core.intents.registry import IntentHandlerRegistry
from swap_voicebot.errors import DomainAPIError
from swap_voicebot.models import IntentResponse
from swap_voicebot.services.battery_smart import BatterySmartClient

logger = structlog.get_logger(__name__)

API_CALL_FAILED = "API call failed"
NO_DATA_FOUND = "No data found"

MOCK_STATIONS = [
    "Connaught Place Battery Station - 2.3 km",
    "Karol Bagh Station - 3.5 km",
    "Rohini Station - 5.1 km",
]
MOCK_DSKS = [
    "DSK Connaught Place - 2.8 km",
    "DSK Karol Bagh - 4.2 km",
    "DSK Rohini - 6.5 km",
]
MOCK_ICS = [
    "Information Center CP - 1.9 km",
    "IC Karol Bagh - 3.8 km",
    "IC Rohini - 5.7 km",
]


def _envelope_ok(body: dict[str, Any]) -> bool:
    return bool(body.get("success")) or body.get("status") == "success"


def _json_list(value: Any) -> list:
    """Battery lists arrive JSON-encoded inside a string."""
    if isinstance(value, str):
        parsed = json.loads(value)
        return parsed if isinstance(parsed, list) else [parsed]
    return list(value or [])


class BatterySmartIntentHandlers:
    """Handlers backed by the driver-data API."""

    def __init__(self, client: BatterySmartClient | None = None) -> None:
        self.client = client or BatterySmartClient()

    async def _lookup(
        self,
        intent_name: str,
        endpoint: str,
        entities: dict[str, Any],
        extract: Callable[[Any], dict[str, Any] | None],
        not_found: str = NO_DATA_FOUND,
        needs_driver: bool = True,
    ) -> IntentResponse:
        """Fetch an endpoint for the driver and shape its data."""
        driver_id = entities.get("driver_id")
        if needs_driver and not driver_id:
            logger.info("intent_needs_driver_id", intent=intent_name)
            return IntentResponse.need_driver_id()

        params = {"driverId": driver_id} if driver_id else None
        try:
            body = await self.client.call_domain_api(endpoint, params)
        except DomainAPIError as e:
            logger.warning("intent_api_call_failed", intent=intent_name, endpoint=endpoint, error=str(e))
            return IntentResponse.failed(API_CALL_FAILED)

        if not _envelope_ok(body):
            return IntentResponse.failed(not_found)

        try:
            result = extract(body.get("data"))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("intent_payload_unexpected", intent=intent_name, error=str(e))
            return IntentResponse.failed(not_found)

        if result is None:
            return IntentResponse.failed(not_found)
        return IntentResponse.ok(result)

    # Swap & transaction

    async def swap_count(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            if not data:
                return None
            return {"driver_id": data[0]["id"], "swap_count": data[0]["swapCount"]}

        return await self._lookup("swap_count", "/api/drivers/driverSwapCount", entities, extract)

    async def swap_price(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            return {"swap_price": data["swapPrice"]} if data else None

        return await self._lookup("swap_price", "/api/transactions/lastSwapPrice", entities, extract)

    async def battery_issued(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            if not data or not data.get("batteriesIssued"):
                return None
            batteries = _json_list(data["batteriesIssued"])
            return {"batteries_issued": batteries, "count": len(batteries)}

        return await self._lookup("battery_issued", "/api/transactions/lastBatteryIssued", entities, extract)

    async def last_swap_partner(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            return {"partner_id": data["partnerId"]} if data else None

        return await self._lookup("last_swap_partner", "/api/transactions/lastSwapPartnerId", entities, extract)

    async def swap_history_invoice(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(invoice: Any) -> dict | None:
            if not invoice:
                return None
            return {
                "swap_price": invoice.get("swapPrice"),
                "discount": invoice.get("discount"),
                "penalty": invoice.get("penalty"),
                "points_used": invoice.get("pointsUsed"),
                "service_charge": invoice.get("serviceCharge"),
                "batteries_received": _json_list(invoice.get("batteriesReceived")),
                "batteries_issued": _json_list(invoice.get("batteriesIssued")),
                "vehicle_type": invoice.get("vehicleType"),
                "date": invoice.get("date"),
                "partner_id": invoice.get("partnerId"),
                "status": invoice.get("status"),
            }

        return await self._lookup(
            "swap_history_invoice", "/api/transactions/lastSwapHistoryInvoice", entities, extract,
            not_found="No invoice found",
        )

    # Schemes

    async def available_scheme(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            if not data:
                return None
            return {"schemes": [{"name": s.get("schemeName"), "description": s.get("description")} for s in data]}

        return await self._lookup(
            "available_scheme", "/api/schemes", entities, extract,
            not_found="No schemes available",
        )

    async def driver_scheme(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            if not data:
                return None
            return {"scheme_name": data.get("schemeName"), "description": data.get("description")}

        return await self._lookup(
            "driver_scheme", "/api/schemes/details", entities, extract,
            not_found="No scheme found",
        )

    # Subscriptions

    async def driver_subscription(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            if not data:
                return None
            sub = data[0]
            return {
                "subscription_name": sub.get("subscriptionName"),
                "description": sub.get("description"),
                "start_date": sub.get("startDate"),
                "end_date": sub.get("endDate"),
                "price": sub.get("subscriptionPrice"),
                "status": sub.get("status"),
            }

        return await self._lookup(
            "driver_subscription", "/api/subscriptions", entities, extract,
            not_found="No subscription found",
        )

    async def driver_subscription_end_date(self, entities: dict[str, Any]) -> IntentResponse:
        return await self._lookup(
            "driver_subscription_end_date", "/api/subscriptions/endDate", entities,
            lambda data: {"end_date": data["endDate"]} if data else None,
        )

    async def driver_subscription_start_date(self, entities: dict[str, Any]) -> IntentResponse:
        return await self._lookup(
            "driver_subscription_start_date", "/api/subscriptions/startDate", entities,
            lambda data: {"start_date": data["startDate"]} if data else None,
        )

    async def driver_subscription_price(self, entities: dict[str, Any]) -> IntentResponse:
        return await self._lookup(
            "driver_subscription_price", "/api/subscriptions/price", entities,
            lambda data: {"subscription_price": data["subscriptionPrice"]} if data else None,
        )

    async def driver_subscription_status(self, entities: dict[str, Any]) -> IntentResponse:
        return await self._lookup(
            "driver_subscription_status", "/api/subscriptions/status", entities,
            lambda data: {"status": data["status"]} if data else None,
        )

    # Locations. No location API exists yet, so these answer from a fixed list.

    async def nearest_station(self, entities: dict[str, Any]) -> IntentResponse:
        return IntentResponse.ok({
            "nearest_station": random.choice(MOCK_STATIONS),
            "message": "Nearest station found based on your location",
        })

    async def nearest_dsk(self, entities: dict[str, Any]) -> IntentResponse:
        return IntentResponse.ok({
            "nearest_dsk": random.choice(MOCK_DSKS),
            "message": "Nearest DSK found based on your location",
        })

    async def nearest_ic(self, entities: dict[str, Any]) -> IntentResponse:
        return IntentResponse.ok({
            "nearest_ic": random.choice(MOCK_ICS),
            "message": "Nearest IC found based on your location",
        })

    # Driver info

    async def onboarding_status(self, entities: dict[str, Any]) -> IntentResponse:
        return await self._lookup(
            "onboarding_status", "/api/drivers/onboarding/status", entities,
            lambda data: {"onboarding_status": "completed", "message": "Your onboarding is complete"},
            not_found="Status check failed",
        )

    async def driver_details(self, entities: dict[str, Any]) -> IntentResponse:
        def extract(data: Any) -> dict | None:
            if not data:
                return None
            return {
                "driver_id": data.get("id"),
                "status": data.get("status"),
                "swap_count": data.get("swapCount"),
                "created_at": data.get("createdAt"),
                "updated_at": data.get("updatedAt"),
            }

        return await self._lookup(
            "driver_details", "/api/drivers/details", entities, extract,
            not_found="Driver not found",
        )

    # Support

    async def speak_to_agent(self, entities: dict[str, Any]) -> IntentResponse:
        return IntentResponse.ok({"handoff_required": True, "reason": "user_requested"})

    async def raise_complaint(self, entities: dict[str, Any]) -> IntentResponse:
        return IntentResponse.ok({
            "handoff_required": True,
            "reason": "complaint",
            "issue": entities.get("issue"),
        })

    async def greeting(self, entities: dict[str, Any]) -> IntentResponse:
        return IntentResponse.use_regular_llm()

    def register_all(self, registry: IntentHandlerRegistry) -> None:
        """Register every handler under its intent name."""
        handlers = {
            "swap_count": self.swap_count,
            "swap_price": self.swap_price,
            "last_swap_price": self.swap_price,
            "battery_issued": self.battery_issued,
            "last_battery_issued": self.battery_issued,
            "last_swap_partner": self.last_swap_partner,
            "swap_history_invoice": self.swap_history_invoice,
            "available_scheme": self.available_scheme,
            "driver_scheme": self.driver_scheme,
            "driver_subscription": self.driver_subscription,
            "driver_subscription_end_date": self.driver_subscription_end_date,
            "driver_subscription_start_date": self.driver_subscription_start_date,
            "driver_subscription_price": self.driver_subscription_price,
            "driver_subscription_status": self.driver_subscription_status,
            "nearest_station": self.nearest_station,
            "nearest_dsk": self.nearest_dsk,
            "nearest_ic": self.nearest_ic,
            "onboarding_status": self.onboarding_status,
            "driver_details": self.driver_details,
            "speak_to_agent": self.speak_to_agent,
            "raise_complaint": self.raise_complaint,
            "greeting": self.greeting,
        }
        for name, handler in handlers.items():
            registry.register(name, handler)
        logger.info("intent_handlers_registered", count=len(handlers))


def build_registry(client: BatterySmartClient | None = None) -> IntentHandlerRegistry:
    """Create a registry with every Battery Smart handler registered."""
    registry = IntentHandlerRegistry()
    BatterySmartIntentHandlers(client).register_all(registry)
    return registry
