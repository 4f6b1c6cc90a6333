from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

class QuoteRequest(BaseModel):
    # cart lines and destination are normalized by shipquote.core.normalize
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    cart: List[Any] = Field(default_factory=list)
    destination: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("destination", "to")
    )
    quote_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("quoteKey", "quote_key"))
    quote_request_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("quoteRequestId", "quote_request_id")
    )

class DimensionsOut(BaseModel):
    length: float
    width: float
    height: float

class PackageOut(BaseModel):
    weightLbs: float
    dimensions: DimensionsOut
    sku: Optional[str] = None
    title: Optional[str] = None

class DestinationOut(BaseModel):
    addressLine1: str
    city: str
    state: str
    postalCode: str
    country: str

class InstallOnlyQuoteResp(BaseModel):
    installOnly: bool = True
    message: str
    installOnlySkus: List[str] = Field(default_factory=list)
    missingProducts: List[str] = Field(default_factory=list)

class FreightQuoteResp(BaseModel):
    freight: bool = True
    message: str
    packages: List[PackageOut] = Field(default_factory=list)
    installOnlySkus: List[str] = Field(default_factory=list)
    missingProducts: List[str] = Field(default_factory=list)

class StandardQuoteResp(BaseModel):
    success: bool = True
    freight: bool = False
    packages: List[PackageOut]
    installOnlySkus: List[str] = Field(default_factory=list)
    missingProducts: List[str] = Field(default_factory=list)
    quoteKey: str
    quoteRequestId: str
    source: str
    rateCount: int = 0
    cartSummary: str
    createdAt: str
    expiresAt: Optional[str] = None

class CachedQuoteResp(StandardQuoteResp):
    destination: DestinationOut

class ErrorResp(BaseModel):
    error: str
