"""
Prometheus metrics.
"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "voicebot_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "voicebot_request_latency_seconds",
    "Request latency",
    ["method", "endpoint"]
)
HANDOFF_COUNT = Counter(
    "voicebot_handoffs_total",
    "Total handoffs triggered",
    ["reason", "priority"]
)
TURN_COUNT = Counter(
    "voicebot_turns_total",
    "Conversation turns by outcome",
    ["outcome"]
)
