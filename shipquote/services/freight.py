from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from shipquote.core.types import ShippableLine

logger = logging.getLogger(__name__)

# Small-parcel carrier limits.
FREIGHT_WEIGHT_LBS = 150.0
MAX_SINGLE_DIMENSION_IN = 108.0
MAX_DIMENSION_SUM_IN = 165.0


@dataclass
class FreightDecision:
    required: bool = False
    reasons: List[str] = field(default_factory=list)


def line_freight_reason(line: ShippableLine) -> Optional[str]:
    if (line.shipping_class or "").strip().lower() == "freight":
        return f"{line.identifier}: freight shipping class"
    if line.weight >= FREIGHT_WEIGHT_LBS:
        return f"{line.identifier}: unit weight {line.weight:g} lbs"
    if line.total_weight >= FREIGHT_WEIGHT_LBS:
        return f"{line.identifier}: line weight {line.total_weight:g} lbs"
    dims = line.dimensions
    if dims is not None:
        if dims.longest > MAX_SINGLE_DIMENSION_IN:
            return f"{line.identifier}: longest side {dims.longest:g} in"
        if dims.total > MAX_DIMENSION_SUM_IN:
            return f"{line.identifier}: dimensions total {dims.total:g} in"
    return None


def evaluate_freight(lines: Sequence[ShippableLine]) -> FreightDecision:
    decision = FreightDecision()
    for line in lines:
        reason = line_freight_reason(line)
        if reason:
            decision.required = True
            decision.reasons.append(reason)
    if decision.required:
        logger.info("freight required: %s", "; ".join(decision.reasons))
    return decision
