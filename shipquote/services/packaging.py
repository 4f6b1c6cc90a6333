from __future__ import annotations

from typing import List, Optional, Sequence

from shipquote.core.types import Dimensions, Package, ShippableLine


def consolidate(
    lines: Sequence[ShippableLine],
    *,
    default_dimensions: Dimensions,
    default_weight_lbs: float,
) -> List[Package]:
    """Merge shippable lines into one combined package plus one package per ships-alone unit.

    Lines without a positive weight add nothing. The combined box is the
    component-wise max over the non-solo lines that carry dimensions, or the
    default box when none do.
    """
    combined_weight = 0.0
    # seeded from the first dimensioned line, not the default box (DESIGN.md: combined envelope)
    envelope: Optional[Dimensions] = None
    solo: List[Package] = []

    for line in lines:
        if line.weight <= 0:
            continue
        if line.ships_alone:
            dims = line.dimensions or default_dimensions
            for _ in range(line.quantity):
                solo.append(Package(weight_lbs=line.weight, dimensions=dims, sku=line.sku, title=line.title))
            continue
        combined_weight += line.total_weight
        if line.dimensions is not None:
            envelope = line.dimensions if envelope is None else envelope.envelope(line.dimensions)

    if combined_weight == 0 and not solo:
        combined_weight = default_weight_lbs

    packages: List[Package] = []
    if combined_weight > 0:
        packages.append(Package(weight_lbs=combined_weight, dimensions=envelope or default_dimensions))
    packages.extend(solo)
    return packages
