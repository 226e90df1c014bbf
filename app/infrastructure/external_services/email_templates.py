"""Order confirmation email templates.

Templates use ``{{ KEY }}`` placeholders. Lookup tries the key as written,
then upper-cased; unknown keys render as an empty string.
"""

import re
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from ...domain.entities.order import MembershipPurchase, Order
from ...domain.entities.user import User

_PLACEHOLDER = re.compile(r"{{\s*(\w+)\s*}}")

ORDER_COMPLETE = "ORDER_COMPLETE"
ORDER_COMPLETE_MEMBERSHIP = "ORDER_COMPLETE_MEMBERSHIP"

TEMPLATES: Dict[str, Dict[str, str]] = {
    ORDER_COMPLETE: {
        "subject": "Your order {{ORDER_CODE}} is complete",
        "html": """
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">
            <h2>Thanks for your purchase, {{CUSTOMER_NAME}}!</h2>
            <p>Your order <strong>{{ORDER_CODE}}</strong> placed on {{ORDER_DATE}} has been paid.</p>
            <table style="width: 100%; border-collapse: collapse;">
                <tr><td>Order type</td><td>{{ORDER_TYPE}}</td></tr>
                <tr><td>Subtotal</td><td>{{ORDER_CURRENCY}} {{ORDER_SUBTOTAL}}</td></tr>
                <tr><td>Promo {{ORDER_PROMO_CODE}}</td><td>-{{ORDER_PROMO_DISCOUNT}}</td></tr>
                <tr><td><strong>Total</strong></td><td><strong>{{ORDER_CURRENCY}} {{ORDER_TOTAL}}</strong></td></tr>
            </table>
            <p>Your tracks are now available in your library.</p>
            <p style="color: #666; font-size: 14px;">Questions? Write to {{SUPPORT_EMAIL}}.</p>
        </div>
        """,
    },
    ORDER_COMPLETE_MEMBERSHIP: {
        "subject": "Welcome to {{MEMBERSHIP_PLAN}} ({{ORDER_CODE}})",
        "html": """
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">
            <h2>Hi {{CUSTOMER_NAME}}, your membership is active</h2>
            <p>You purchased <strong>{{MEMBERSHIP_PLAN}}</strong> for {{MEMBERSHIP_MONTHS}} month(s).</p>
            <p>Order <strong>{{ORDER_CODE}}</strong>, total {{ORDER_CURRENCY}} {{ORDER_TOTAL}}, paid on {{ORDER_DATE}}.</p>
            <p style="color: #666; font-size: 14px;">Questions? Write to {{SUPPORT_EMAIL}}.</p>
        </div>
        """,
    },
}


def render_template(template: Optional[str], variables: Mapping[str, Any]) -> str:
    if not template:
        return ""

    def substitute(match: "re.Match") -> str:
        key = match.group(1)
        value = variables.get(key)
        if value is None:
            value = variables.get(key.upper())
        if value is None:
            return ""
        return str(value)

    return _PLACEHOLDER.sub(substitute, template)


def _amount(value) -> str:
    return f"{value:.2f}" if value is not None else ""


def order_complete_variables(
    order: Order,
    user: User,
    plan_name: Optional[str] = None,
    support_email: Optional[str] = None,
) -> Dict[str, Any]:
    order_id = str(order.id)
    moment: Optional[datetime] = order.completed_at or order.created_at
    variables = {
        "CUSTOMER_NAME": user.name or "Customer",
        "CUSTOMER_EMAIL": user.email,
        "ORDER_ID": order_id,
        "ORDER_CODE": f"#{order_id.upper()}",
        "ORDER_TYPE": "Membership" if order.is_membership else "Product Purchase",
        "ORDER_STATUS": order.status.value.upper(),
        "ORDER_CURRENCY": order.currency,
        "ORDER_TOTAL": _amount(order.total),
        "ORDER_SUBTOTAL": _amount(order.subtotal),
        "ORDER_TAX": _amount(order.tax),
        "ORDER_PROMO_CODE": order.promo_code or "",
        "ORDER_PROMO_DISCOUNT": _amount(order.promo_discount),
        "ORDER_CREATED_AT": moment.strftime("%Y-%m-%d %H:%M UTC") if moment else "",
        "ORDER_DATE": moment.strftime("%Y-%m-%d") if moment else "",
        "SUPPORT_EMAIL": support_email or "",
        "MEMBERSHIP_PLAN_KEY": "",
        "MEMBERSHIP_PLAN": "",
        "MEMBERSHIP_MONTHS": "",
    }
    if isinstance(order.payload, MembershipPurchase):
        variables["MEMBERSHIP_PLAN_KEY"] = order.payload.plan_key
        variables["MEMBERSHIP_PLAN"] = plan_name or order.payload.plan_key
        variables["MEMBERSHIP_MONTHS"] = order.payload.months
    return variables


def render_order_complete_email(
    order: Order,
    user: User,
    plan_name: Optional[str] = None,
    support_email: Optional[str] = None,
) -> Tuple[str, str]:
    """Return ``(subject, html)`` for a paid order"""
    key = ORDER_COMPLETE_MEMBERSHIP if order.is_membership else ORDER_COMPLETE
    template = TEMPLATES[key]
    variables = order_complete_variables(order, user, plan_name, support_email)
    return (
        render_template(template["subject"], variables),
        render_template(template["html"], variables),
    )
