from __future__ import annotations

from shipquote.core.types import CartLine, Dimensions, ShippableLine, ShippingProfile

DEFAULT_DIMS = Dimensions(length=12, width=9, height=4)

def shippable(identifier="SKU-1", quantity=1, weight=1.0, dims=None, ships_alone=False, shipping_class="", title=None):
    line = CartLine(identifier=identifier, quantity=quantity, sku=identifier, title=title)
    profile = ShippingProfile(
        sku=identifier,
        title=title,
        weight=weight,
        dimensions=Dimensions(*dims) if dims else None,
        ships_alone=ships_alone,
        shipping_class=shipping_class,
    )
    return ShippableLine(line=line, profile=profile)

DESTINATION = {
    "addressLine1": "6161 Riverside Dr",
    "city": "Punta Gorda",
    "state": "fl",
    "postalCode": "33982",
    "country": "us",
}
