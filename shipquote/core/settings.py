from __future__ import annotations

import os
from dataclasses import dataclass

def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) not in ("0", "false", "False")

@dataclass(frozen=True)
class Settings:
    # AWS
    aws_region: str = os.environ.get("AWS_REGION", "us-east-1")

    # DynamoDB tables
    quotes_table_name: str = os.environ.get("QUOTES_TABLE_NAME", "shipping_quotes")
    products_table_name: str = os.environ.get("PRODUCTS_TABLE_NAME", "products")

    # TTL
    ddb_ttl_attr: str = os.environ.get("DDB_TTL_ATTR", "ttl_epoch")

    # Quote cache
    quote_cache_enabled: bool = _flag("QUOTE_CACHE_ENABLED", "1")
    quote_cache_ttl_seconds: int = int(os.environ.get("QUOTE_CACHE_TTL_SECONDS", "1800"))

    # Package defaults (inches / pounds)
    default_package_length_in: float = float(os.environ.get("DEFAULT_PACKAGE_LENGTH_IN", "12"))
    default_package_width_in: float = float(os.environ.get("DEFAULT_PACKAGE_WIDTH_IN", "9"))
    default_package_height_in: float = float(os.environ.get("DEFAULT_PACKAGE_HEIGHT_IN", "4"))
    default_package_weight_lbs: float = float(os.environ.get("DEFAULT_PACKAGE_WEIGHT_LBS", "5"))

    # HTTP
    cors_allow: str = os.environ.get("CORS_ALLOW", "http://localhost:8888,http://localhost:3333")
    metrics_enabled: bool = _flag("METRICS_ENABLED", "1")
    log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow.split(",") if o.strip()]


S = Settings()
