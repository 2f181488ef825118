"""
Order handoff links.

There is no payment step: after placing an order the customer is sent to
WhatsApp or their mail client with the order details pre-filled, addressed
to the shop.
"""

from __future__ import annotations
from dataclasses import dataclass
import re
from typing import Optional
from urllib.parse import quote

from glowify.core.config import StorefrontConfig, get_config
from glowify.data.models import Order


@dataclass
class Handoff:
    method: str      # "whatsapp" | "email"
    url: str
    subject: str
    body: str


def format_amount(amount: int, symbol: str) -> str:
    """Minor units -> display string, e.g. 125050 -> '₹1,250.50'."""
    return f"{symbol}{amount / 100:,.2f}"


def build_order_message(order: Order, config: Optional[StorefrontConfig] = None) -> tuple[str, str]:
    """Return (subject, body) describing the order for the shop owner."""
    config = config or get_config()
    symbol = config.currency_symbol

    subject = f"New Order Request - {order.product_name}"

    lines = [
        "Order Details:",
        "--------------",
        f"Order ID: {order.id}",
        f"Product: {order.product_name}",
        f"Quantity: {order.quantity}",
        f"Original Amount: {format_amount(order.original_amount, symbol)}",
    ]
    if (order.discount_amount or 0) > 0:
        lines.append(f"Discount: -{format_amount(order.discount_amount, symbol)} ({order.coupon_code})")
    lines += [
        f"Total Amount: {format_amount(order.total_amount, symbol)}",
        "",
        "Customer Details:",
        "-----------------",
        f"Name: {order.customer_name}",
        f"Email: {order.email}",
        f"Phone: {order.phone}",
        f"Address: {order.address}",
        "",
        "Please process this order request.",
        "",
        "Best regards,",
        config.signature,
    ]
    return subject, "\n".join(lines)


def build_email_handoff(order: Order, config: Optional[StorefrontConfig] = None) -> Handoff:
    config = config or get_config()
    subject, body = build_order_message(order, config)
    recipients = ",".join(config.order_emails)
    url = f"mailto:{recipients}?subject={quote(subject, safe='')}&body={quote(body, safe='')}"
    return Handoff(method="email", url=url, subject=subject, body=body)


def build_whatsapp_handoff(order: Order, config: Optional[StorefrontConfig] = None) -> Handoff:
    config = config or get_config()
    subject, body = build_order_message(order, config)
    number = re.sub(r"\D", "", config.whatsapp_number)
    text = f"{subject}\n\n{body}"
    url = f"https://wa.me/{number}?text={quote(text, safe='')}"
    return Handoff(method="whatsapp", url=url, subject=subject, body=body)


def build_handoff(order: Order, config: Optional[StorefrontConfig] = None) -> Handoff:
    if order.order_method == "whatsapp":
        return build_whatsapp_handoff(order, config)
    return build_email_handoff(order, config)
