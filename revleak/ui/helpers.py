"""Navigation helpers shared by the page templates."""

from collections import OrderedDict
from typing import Optional, Sequence, Tuple

from flask import url_for

NavDefinition = Tuple[str, str, str, dict]

PRIMARY_NAV: Tuple[NavDefinition, ...] = (
    ('home', 'Home', 'revleak_pages.index', {}),
    ('connect', 'Connect Stripe', 'revleak_pages.connect_page', {}),
    ('billing', 'Pricing', 'revleak_pages.billing_page', {}),
)

def build_nav(active: str = 'home', extras: Optional[Sequence[NavDefinition]] = None) -> list:
    """Return navigation items with the requested item marked as active."""
    nav_definitions: OrderedDict[str, NavDefinition] = OrderedDict()
    for definition in (*PRIMARY_NAV, *(extras or ())):
        if not definition:
            continue
        nav_definitions[definition[0]] = definition

    items: list[dict] = []
    for identifier, label, endpoint, params in nav_definitions.values():
        try:
            href = url_for(endpoint, **(params or {}))
        except Exception:
            continue
        items.append({
            'label': label,
            'href': href,
            'active': identifier == active,
        })
    return items
