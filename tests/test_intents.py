"""Tests for the intent handler registry and Battery Smart handlers."""

import asyncio
import json

import httpx
import pytest
from pydantic import ValidationError

from swap_voicebot.core.intents import (
    BATTERY_SMART_INTENTS,
    BatterySmartIntentHandlers,
    IntentHandlerRegistry,
    build_registry,
)
from swap_voicebot.errors import DomainAPIError
from swap_voicebot.models import Intent, IntentOutcome, IntentResponse
from swap_voicebot.services.battery_smart import BatterySmartClient


def domain_client(handler) -> BatterySmartClient:
    """BatterySmartClient backed by an in-process transport."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return BatterySmartClient(base_url="http://test", client=http)


def respond_with(body, status_code: int = 200):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=body)

    return handler, requests


class TestIntentHandlerRegistry:
    @pytest.mark.asyncio
    async def test_dispatch_passes_entities(self):
        registry = IntentHandlerRegistry(confidence_floor=0.5)
        received = {}

        async def handler(entities):
            received.update(entities)
            return IntentResponse.ok({"swap_count": 42})

        registry.register("swap_count", handler)

        response = await registry.dispatch(Intent(name="swap_count", confidence=0.9, entities={"driver_id": "D0015"}))

        assert response.success
        assert response.data == {"swap_count": 42}
        assert received == {"driver_id": "D0015"}

    @pytest.mark.asyncio
    async def test_below_floor_never_runs_handler(self):
        registry = IntentHandlerRegistry(confidence_floor=0.5)
        calls = []

        async def handler(entities):
            calls.append(entities)
            return IntentResponse.ok()

        registry.register("swap_count", handler)

        response = await registry.dispatch(Intent(name="swap_count", confidence=0.4))

        assert not response.success
        assert response.outcome == IntentOutcome.LOW_CONFIDENCE
        assert response.error == "Low confidence for intent: swap_count"
        assert calls == []

    @pytest.mark.asyncio
    async def test_floor_is_inclusive(self):
        registry = IntentHandlerRegistry(confidence_floor=0.5)

        async def handler(entities):
            return IntentResponse.ok()

        registry.register("swap_count", handler)

        response = await registry.dispatch(Intent(name="swap_count", confidence=0.5))

        assert response.success

    @pytest.mark.asyncio
    async def test_missing_handler(self):
        registry = IntentHandlerRegistry(confidence_floor=0.5)

        response = await registry.dispatch(Intent(name="refund", confidence=0.9))

        assert response.outcome == IntentOutcome.NO_HANDLER
        assert response.error == "No handler available for intent: refund"

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_failure(self):
        registry = IntentHandlerRegistry(confidence_floor=0.5)

        async def handler(entities):
            raise RuntimeError("database down")

        registry.register("swap_count", handler)

        response = await registry.dispatch(Intent(name="swap_count", confidence=0.9))

        assert response.outcome == IntentOutcome.FAILED
        assert response.error == "database down"

    @pytest.mark.asyncio
    async def test_handler_timeout(self):
        registry = IntentHandlerRegistry(confidence_floor=0.5, handler_timeout_seconds=0.01)

        async def handler(entities):
            await asyncio.sleep(1)
            return IntentResponse.ok()

        registry.register("swap_count", handler)

        response = await registry.dispatch(Intent(name="swap_count", confidence=0.9))

        assert response.outcome == IntentOutcome.FAILED
        assert "timed out" in response.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", [None, {"success": True, "data": 42}])
    async def test_non_response_result_becomes_failure(self, result):
        registry = IntentHandlerRegistry(confidence_floor=0.5)

        async def handler(entities):
            return result

        registry.register("swap_count", handler)

        response = await registry.dispatch(Intent(name="swap_count", confidence=0.9))

        assert not response.success
        assert response.outcome == IntentOutcome.FAILED
        assert response.error.startswith("Handler for swap_count returned")

    @pytest.mark.asyncio
    async def test_last_registration_wins(self):
        registry = IntentHandlerRegistry(confidence_floor=0.5)

        async def first(entities):
            return IntentResponse.ok("first")

        async def second(entities):
            return IntentResponse.ok("second")

        registry.register("greeting", first)
        registry.register("greeting", second)

        response = await registry.dispatch(Intent(name="greeting", confidence=0.9))

        assert response.data == "second"
        assert registry.registered_intents == ["greeting"]


class TestBatterySmartHandlers:
    def test_every_catalog_intent_has_a_handler(self):
        registry = build_registry(domain_client(respond_with({})[0]))

        for definition in BATTERY_SMART_INTENTS:
            assert registry.has_handler(definition.name), definition.name

    @pytest.mark.asyncio
    async def test_missing_driver_id(self):
        handler, requests = respond_with({"success": True, "data": []})
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.swap_count({})

        assert response.outcome == IntentOutcome.NEED_DRIVER_ID
        assert response.error == "NEED_DRIVER_ID"
        assert requests == []

    @pytest.mark.asyncio
    async def test_swap_count(self):
        handler, requests = respond_with({"success": True, "data": [{"id": "D0015", "swapCount": 42}]})
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.swap_count({"driver_id": "D0015"})

        assert response.success
        assert response.data == {"driver_id": "D0015", "swap_count": 42}
        assert requests[0].url.path == "/api/drivers/driverSwapCount"
        assert requests[0].url.params["driverId"] == "D0015"

    @pytest.mark.asyncio
    async def test_status_envelope_accepted(self):
        handler, _ = respond_with({"status": "success", "data": {"swapPrice": 240}})
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.swap_price({"driver_id": "D0015"})

        assert response.data == {"swap_price": 240}

    @pytest.mark.asyncio
    async def test_batteries_decoded_from_json_string(self):
        handler, _ = respond_with({"success": True, "data": {"batteriesIssued": json.dumps(["B1", "B2"])}})
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.battery_issued({"driver_id": "D0015"})

        assert response.data == {"batteries_issued": ["B1", "B2"], "count": 2}

    @pytest.mark.asyncio
    async def test_empty_data_is_not_found(self):
        handler, _ = respond_with({"success": True, "data": []})
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.driver_subscription({"driver_id": "D0015"})

        assert response.outcome == IntentOutcome.FAILED
        assert response.error == "No subscription found"

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope(self):
        handler, _ = respond_with({"success": False, "message": "Driver not found"})
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.driver_details({"driver_id": "D9999"})

        assert response.error == "Driver not found"

    @pytest.mark.asyncio
    async def test_http_error_is_api_failure(self):
        handler, _ = respond_with({"error": "boom"}, status_code=500)
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.swap_count({"driver_id": "D0015"})

        assert response.outcome == IntentOutcome.FAILED
        assert response.error == "API call failed"

    @pytest.mark.asyncio
    async def test_available_schemes(self):
        handler, requests = respond_with({
            "success": True,
            "data": [{"schemeName": "Refer & Earn", "description": "Free swap per referral"}],
        })
        handlers = BatterySmartIntentHandlers(domain_client(handler))

        response = await handlers.available_scheme({"driver_id": "D0015"})

        assert response.data == {"schemes": [{"name": "Refer & Earn", "description": "Free swap per referral"}]}
        assert requests[0].url.path == "/api/schemes"

    @pytest.mark.asyncio
    async def test_support_intents(self):
        handlers = BatterySmartIntentHandlers(domain_client(respond_with({})[0]))

        agent = await handlers.speak_to_agent({})
        complaint = await handlers.raise_complaint({"issue": "battery kharab hai"})
        greeting = await handlers.greeting({})

        assert agent.handoff_required
        assert complaint.handoff_required
        assert complaint.data["reason"] == "complaint"
        assert complaint.data["issue"] == "battery kharab hai"
        assert greeting.outcome == IntentOutcome.USE_REGULAR_LLM

    @pytest.mark.asyncio
    async def test_nearest_station(self):
        handlers = BatterySmartIntentHandlers(domain_client(respond_with({})[0]))

        response = await handlers.nearest_station({})

        assert response.success
        assert "Station" in response.data["nearest_station"]


class TestBatterySmartClient:
    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = domain_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(DomainAPIError) as exc_info:
            await client.call_domain_api("/api/schemes")

        assert exc_info.value.endpoint == "/api/schemes"

    @pytest.mark.asyncio
    async def test_status_code_preserved(self):
        client = domain_client(lambda request: httpx.Response(404, json={"message": "missing"}))

        with pytest.raises(DomainAPIError) as exc_info:
            await client.call_domain_api("/api/drivers/details", {"driverId": "D1"})

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = domain_client(handler)

        with pytest.raises(DomainAPIError):
            await client.call_domain_api("/api/schemes")


class TestIntentResponse:
    @pytest.mark.parametrize(
        "error,expected",
        [
            ("NEED_DRIVER_ID", IntentOutcome.NEED_DRIVER_ID),
            ("USE_REGULAR_LLM", IntentOutcome.USE_REGULAR_LLM),
            ("API call failed", IntentOutcome.FAILED),
            (None, IntentOutcome.FAILED),
        ],
    )
    def test_failure_outcome_follows_error(self, error, expected):
        assert IntentResponse(success=False, error=error).outcome == expected

    def test_success_outcome(self):
        assert IntentResponse(success=True, data={"swap_count": 42}).outcome == IntentOutcome.SUCCESS

    @pytest.mark.parametrize(
        "success,outcome",
        [(True, IntentOutcome.FAILED), (False, IntentOutcome.SUCCESS)],
    )
    def test_contradicting_outcome_rejected(self, success, outcome):
        with pytest.raises(ValidationError):
            IntentResponse(success=success, outcome=outcome)

    def test_explicit_outcome_kept(self):
        response = IntentResponse(success=False, error="no handler", outcome=IntentOutcome.NO_HANDLER)

        assert response.outcome == IntentOutcome.NO_HANDLER
