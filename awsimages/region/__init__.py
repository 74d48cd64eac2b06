# awsimages/region - 리전 데이터 및 리전 집합 계산
"""
리전 모듈

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    "ALL_REGIONS",
    "REGION_NAMES",
    "expand_region_pattern",
    "parse_patterns",
    "resolve_regions",
]

_DATA_NAMES = ("ALL_REGIONS", "REGION_NAMES")
_FILTER_NAMES = ("expand_region_pattern", "parse_patterns", "resolve_regions")


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _DATA_NAMES:
        from . import data

        return getattr(data, name)

    if name in _FILTER_NAMES:
        from . import filter as region_filter

        return getattr(region_filter, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
