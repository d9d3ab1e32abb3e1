"""
Intent catalog for Battery Smart driver support.
Each definition is embedded verbatim in the classification prompt.
"""

from swap_voicebot.models import IntentDefinition

_DRIVER = {"driver_id": "string"}
_LOCATION = {"location": "string"}


def _intent(name: str, description: str, examples: list[str], entity_schema: dict[str, str] | None = None) -> IntentDefinition:
    return IntentDefinition(
        name=name,
        description=description,
        examples=examples,
        entity_schema=entity_schema if entity_schema is not None else dict(_DRIVER),
    )


BATTERY_SMART_INTENTS: list[IntentDefinition] = [
    # Swap & transaction
    _intent("swap_count", "Get total number of battery swaps done by driver", [
        "kitne swap kiye maine",
        "mera swap count batao",
        "total swaps kitne hain",
        "maine kitni baar battery swap ki",
        "how many swaps",
    ]),
    _intent("swap_price", "Get last swap price paid by driver", [
        "last swap ka price kya tha",
        "pichli swap mein kitna paisa laga",
        "swap price batao",
        "battery swap ka rate kya tha",
    ]),
    _intent("last_swap_price", "Get last swap price (same as swap_price)", [
        "last swap price",
        "pichli baar kitna paisa laga",
        "latest swap ka price",
    ]),
    _intent("battery_issued", "Get batteries issued in last swap", [
        "konsi battery mili thi",
        "battery number kya hai",
        "mujhe kaunsi battery di thi",
        "issued battery",
    ]),
    _intent("last_battery_issued", "Get last battery issued (same as battery_issued)", [
        "last battery number",
        "pichli battery ka number",
    ]),
    _intent("last_swap_partner", "Get partner ID where last swap was done", [
        "kahan se swap kiya tha",
        "konse station se battery li",
        "partner ID batao",
    ]),
    _intent("swap_history_invoice", "Get detailed invoice of last swap", [
        "last invoice dikhao",
        "swap ka bill chahiye",
        "bill breakdown chahiye",
        "invoice batao",
    ]),

    # Schemes
    _intent("available_scheme", "Get available schemes for driver", [
        "kya schemes available hain",
        "schemes batao",
        "available schemes",
    ]),
    _intent("driver_scheme", "Get current scheme details of driver", [
        "meri scheme kya hai",
        "scheme details batao",
        "mera kaunsa scheme hai",
    ]),

    # Subscriptions
    _intent("driver_subscription", "Get subscription details of driver", [
        "mera subscription kya hai",
        "subscription details batao",
        "current subscription",
    ]),
    _intent("driver_subscription_end_date", "Get subscription expiry date", [
        "subscription kab khatam hoga",
        "expiry date kya hai",
        "plan kab tak valid hai",
    ]),
    _intent("driver_subscription_start_date", "Get subscription start date", [
        "subscription kab start hua",
        "plan kab se shuru hua",
        "activation date",
    ]),
    _intent("driver_subscription_price", "Get subscription price", [
        "subscription ka price kya hai",
        "plan kitne ka hai",
        "kitne rupees ka plan",
    ]),
    _intent("driver_subscription_status", "Get subscription status (active/inactive)", [
        "subscription active hai kya",
        "plan active hai",
        "subscription status",
    ]),

    # Locations (no driver ID needed)
    _intent("nearest_station", "Find nearest battery swap station", [
        "nearest station kahan hai",
        "paas mein station",
        "kahan se battery lu",
    ], _LOCATION),
    _intent("nearest_dsk", "Find nearest DSK (Driver Service Kendra)", [
        "nearest DSK kahan hai",
        "driver service kendra",
    ], _LOCATION),
    _intent("nearest_ic", "Find nearest IC (Information Center)", [
        "nearest IC kahan hai",
        "information center",
    ], _LOCATION),

    # Driver info
    _intent("onboarding_status", "Get driver onboarding status", [
        "onboarding status",
        "mera registration complete hai kya",
    ]),
    _intent("driver_details", "Get complete driver details", [
        "meri details batao",
        "mera account info",
        "profile dikhao",
    ]),

    # Support
    _intent("speak_to_agent", "User wants to talk to human agent", [
        "agent se baat karni hai",
        "human chahiye",
        "customer care",
        "kisi insaan se baat karo",
    ], {}),
    _intent("raise_complaint", "User wants to file a complaint about service, billing or staff", [
        "complaint karni hai",
        "mujhe shikayat darj karni hai",
        "station wale ne galat charge kiya",
        "I want to file a complaint",
    ], {"driver_id": "string", "issue": "string"}),
    _intent("greeting", "Greetings and small talk", [
        "hello",
        "hi",
        "namaste",
        "hey",
    ], {}),
]
