"""
Redaction helpers for order logging.

Customer contact details never reach the logs; order summaries keep only the
fields needed to trace an order through placement and status changes.
"""

import hashlib
import json
from typing import Any, Dict

SENSITIVE_KEYS = (
    "email", "phone", "address", "customer_name", "password", "token", "secret",
)

REDACTED = "[REDACTED]"


def redact_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``data`` with sensitive values replaced.
    Nested dicts and lists of dicts are redacted recursively.
    """
    redacted = {}
    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
            redacted[key] = REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_sensitive_data(value)
        elif isinstance(value, list):
            redacted[key] = [
                redact_sensitive_data(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            redacted[key] = value
    return redacted


def customer_fingerprint(email: str) -> str:
    """Short stable hash of a customer email for correlating log lines."""
    return hashlib.sha256(email.strip().lower().encode()).hexdigest()[:12]


def create_order_summary(request_data: Dict[str, Any]) -> Dict[str, Any]:
    """Redacted summary of an order placement request."""
    redacted = redact_sensitive_data(request_data)
    summary = {}
    for key in ("product_id", "quantity", "coupon_code", "order_method"):
        if redacted.get(key) is not None:
            summary[key] = redacted[key]
    customer = request_data.get("customer") or {}
    if customer.get("email"):
        summary["customer"] = customer_fingerprint(customer["email"])
    return summary


def summary_json(summary: Dict[str, Any]) -> str:
    return json.dumps(summary, sort_keys=True, default=str)
