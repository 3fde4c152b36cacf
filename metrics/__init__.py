"""Portfolio metrics computed from a collection of assets.

All functions are pure. Sums use math.fsum so the result does not depend on
the order of the assets.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from models import AssetType

ASSET_TYPES = [t.value for t in AssetType]


def _type_of(asset: Any) -> str:
    asset_type = asset.type
    return asset_type.value if isinstance(asset_type, AssetType) else asset_type


def round_currency(amount: float) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    return int(Decimal(repr(amount)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def calculate_total_value(assets: Iterable[Any]) -> float:
    return math.fsum(asset.value for asset in assets)


def calculate_tokenized_value(assets: Iterable[Any]) -> float:
    return math.fsum(asset.tokenized_value for asset in assets)


def group_assets_by_type(assets: Iterable[Any]) -> Dict[str, List[Any]]:
    """Bucket assets by type; assets of an unknown type are left out."""
    groups: Dict[str, List[Any]] = {asset_type: [] for asset_type in ASSET_TYPES}
    for asset in assets:
        bucket = groups.get(_type_of(asset))
        if bucket is not None:
            bucket.append(asset)
    return groups


def value_by_type(assets: Iterable[Any]) -> Dict[str, float]:
    return {
        asset_type: calculate_total_value(bucket)
        for asset_type, bucket in group_assets_by_type(assets).items()
    }


def percentage(part: float, total: float) -> float:
    """part as a percentage of total, 0 when total is 0."""
    if not total:
        return 0.0
    return part / total * 100


def distribution_percentages(assets: Iterable[Any]) -> Dict[str, float]:
    """Share of the total value held in each asset type."""
    assets = list(assets)
    total = calculate_total_value(assets)
    return {
        asset_type: percentage(value, total)
        for asset_type, value in value_by_type(assets).items()
    }


def tokenized_percentage(assets: Iterable[Any]) -> float:
    assets = list(assets)
    return percentage(calculate_tokenized_value(assets), calculate_total_value(assets))


def portfolio_summary(assets: Iterable[Any]) -> Dict[str, Any]:
    """Dashboard figures for a set of assets.

    Currency amounts and percentages are rounded to whole units.
    """
    assets = list(assets)
    groups = group_assets_by_type(assets)
    by_value = value_by_type(assets)
    distribution = distribution_percentages(assets)
    return {
        'assetCount': len(assets),
        'totalValue': round_currency(calculate_total_value(assets)),
        'tokenizedValue': round_currency(calculate_tokenized_value(assets)),
        'tokenizedPercentage': round_currency(tokenized_percentage(assets)),
        'byType': {
            asset_type: {
                'count': len(groups[asset_type]),
                'value': round_currency(by_value[asset_type]),
                'percentage': round_currency(distribution[asset_type])
            }
            for asset_type in ASSET_TYPES
        }
    }


__all__ = [
    'ASSET_TYPES', 'round_currency', 'calculate_total_value',
    'calculate_tokenized_value', 'group_assets_by_type', 'value_by_type',
    'percentage', 'distribution_percentages', 'tokenized_percentage',
    'portfolio_summary'
]
