"""Shipping quote data model shared by the quote pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Dimensions:
    length: float
    width: float
    height: float

    @property
    def longest(self) -> float:
        return max(self.length, self.width, self.height)

    @property
    def total(self) -> float:
        return self.length + self.width + self.height

    def envelope(self, other: "Dimensions") -> "Dimensions":
        """Component-wise maximum of two boxes."""
        return Dimensions(
            length=max(self.length, other.length),
            width=max(self.width, other.width),
            height=max(self.height, other.height),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"length": self.length, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dimensions":
        return cls(
            length=float(data["length"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


@dataclass(frozen=True)
class CartLine:
    identifier: str
    quantity: int = 1
    sku: Optional[str] = None
    product_id: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class Destination:
    address_line1: str
    city: str
    state: str
    postal_code: str
    country: str = "US"

    def to_dict(self) -> Dict[str, str]:
        return {
            "addressLine1": self.address_line1,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Destination":
        return cls(
            address_line1=str(data.get("addressLine1") or ""),
            city=str(data.get("city") or ""),
            state=str(data.get("state") or ""),
            postal_code=str(data.get("postalCode") or ""),
            country=str(data.get("country") or "US"),
        )


@dataclass(frozen=True)
class ShippingProfile:
    """Shipping attributes of a catalog product."""

    product_id: Optional[str] = None
    sku: Optional[str] = None
    title: Optional[str] = None
    requires_shipping: bool = True
    product_type: str = "physical"
    weight: float = 0.0
    dimensions: Optional[Dimensions] = None
    shipping_class: str = ""
    ships_alone: bool = False


@dataclass(frozen=True)
class ShippableLine:
    line: CartLine
    profile: ShippingProfile

    @property
    def identifier(self) -> str:
        return self.line.identifier

    @property
    def quantity(self) -> int:
        return self.line.quantity

    @property
    def weight(self) -> float:
        return self.profile.weight

    @property
    def total_weight(self) -> float:
        return self.profile.weight * self.line.quantity

    @property
    def dimensions(self) -> Optional[Dimensions]:
        return self.profile.dimensions

    @property
    def ships_alone(self) -> bool:
        return self.profile.ships_alone

    @property
    def shipping_class(self) -> str:
        return self.profile.shipping_class

    @property
    def sku(self) -> Optional[str]:
        return self.profile.sku or self.line.sku

    @property
    def title(self) -> Optional[str]:
        return self.profile.title or self.line.title


@dataclass
class Classification:
    shippable: List[ShippableLine] = field(default_factory=list)
    install_only_skus: List[str] = field(default_factory=list)
    missing_products: List[str] = field(default_factory=list)

    @property
    def install_only(self) -> bool:
        return not self.shippable


@dataclass(frozen=True)
class Package:
    weight_lbs: float
    dimensions: Dimensions
    sku: Optional[str] = None
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"weightLbs": self.weight_lbs, "dimensions": self.dimensions.to_dict()}
        if self.sku:
            out["sku"] = self.sku
        if self.title:
            out["title"] = self.title
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Package":
        return cls(
            weight_lbs=float(data["weightLbs"]),
            dimensions=Dimensions.from_dict(data["dimensions"]),
            sku=data.get("sku"),
            title=data.get("title"),
        )


@dataclass(frozen=True)
class QuoteCacheEntry:
    quote_key: str
    quote_request_id: str
    destination: Destination
    packages: List[Package]
    missing_products: List[str]
    install_only_skus: List[str]
    cart_summary: str
    created_at: str
    expires_at: Optional[str] = None
    rate_count: int = 0
    source: str = "fresh"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "quoteKey": self.quote_key,
            "quoteRequestId": self.quote_request_id,
            "destination": self.destination.to_dict(),
            "packages": [p.to_dict() for p in self.packages],
            "missingProducts": list(self.missing_products),
            "installOnlySkus": list(self.install_only_skus),
            "cartSummary": self.cart_summary,
            "rateCount": self.rate_count,
            "source": self.source,
            "createdAt": self.created_at,
        }
        if self.expires_at:
            out["expiresAt"] = self.expires_at
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuoteCacheEntry":
        return cls(
            quote_key=str(data["quoteKey"]),
            quote_request_id=str(data.get("quoteRequestId") or ""),
            destination=Destination.from_dict(data.get("destination") or {}),
            packages=[Package.from_dict(p) for p in data.get("packages") or []],
            missing_products=list(data.get("missingProducts") or []),
            install_only_skus=list(data.get("installOnlySkus") or []),
            cart_summary=str(data.get("cartSummary") or ""),
            created_at=str(data.get("createdAt") or ""),
            expires_at=data.get("expiresAt") or None,
            rate_count=int(data.get("rateCount") or 0),
            source=str(data.get("source") or "fresh"),
        )
