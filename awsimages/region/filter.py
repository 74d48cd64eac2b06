"""
awsimages/region/filter.py - 리전 패턴 파싱 및 리전 집합 계산

포함 패턴과 제외 패턴으로부터 실제 작업 대상 리전 집합을 계산합니다.

Usage:
    from awsimages.region.filter import resolve_regions

    resolve_regions("us-east-1,us-west-2")
    # ('us-east-1', 'us-west-2')

    resolve_regions("all", "us-west-2")
    # 카탈로그 전체 - us-west-2

    resolve_regions("ap-*", "ap-east-*")
    # ap- 리전 중 ap-east- 로 시작하지 않는 리전
"""

from __future__ import annotations

import fnmatch
import logging
import re

from .data import ALL_REGIONS

logger = logging.getLogger(__name__)

# 모든 리전을 의미하는 센티널
ALL_SENTINEL = "all"

_SEPARATOR = re.compile(r"[,\s]+")


def parse_patterns(patterns: str | None) -> list[str]:
    """쉼표/공백으로 구분된 패턴 문자열 파싱

    Args:
        patterns: "us-east-1, us-west-2" 형식 문자열

    Returns:
        공백이 제거된 패턴 리스트 (빈 토큰 제외)
    """
    if not patterns:
        return []
    return [token for token in _SEPARATOR.split(patterns.strip()) if token]


def match_pattern(value: str, pattern: str, case_sensitive: bool = False) -> bool:
    """glob 패턴 매칭 (*, ?, [seq])"""
    if not case_sensitive:
        value = value.lower()
        pattern = pattern.lower()
    return fnmatch.fnmatchcase(value, pattern)


def is_glob(pattern: str) -> bool:
    """와일드카드 문자가 포함된 패턴인지 확인"""
    return any(ch in pattern for ch in "*?[")


def expand_region_pattern(pattern: str) -> list[str]:
    """단일 패턴을 리전 목록으로 확장

    - "all": 카탈로그 전체
    - glob ("ap-*"): 카탈로그에서 매칭되는 리전
    - 그 외: 해당 리전 그대로 (카탈로그에 없어도 유지)

    Args:
        pattern: 리전 코드, glob 패턴 또는 "all"

    Returns:
        리전 코드 리스트
    """
    pattern = pattern.strip()
    if not pattern:
        return []

    if pattern.lower() == ALL_SENTINEL:
        return list(ALL_REGIONS)

    if is_glob(pattern):
        matched = [r for r in ALL_REGIONS if match_pattern(r, pattern)]
        if not matched:
            logger.warning(f"리전 패턴 '{pattern}'에 매칭되는 리전이 없습니다")
        return matched

    return [pattern.lower()]


def _expand_all(patterns: str | None) -> list[str]:
    regions: list[str] = []
    seen: set[str] = set()
    for pattern in parse_patterns(patterns):
        for region in expand_region_pattern(pattern):
            if region not in seen:
                seen.add(region)
                regions.append(region)
    return regions


def resolve_regions(include: str | None, exclude: str | None = None) -> tuple[str, ...]:
    """포함/제외 패턴으로 대상 리전 집합 계산

    결과는 포함 리전 - 제외 리전이며, 처음 등장한 순서를 유지하고 중복이 없습니다.
    제외 패턴에 "all"이 있으면 빈 튜플을 반환합니다 (이 레벨에서는 에러 아님).

    Args:
        include: 포함 패턴 문자열
        exclude: 제외 패턴 문자열

    Returns:
        리전 코드 튜플
    """
    included = _expand_all(include)
    excluded = set(_expand_all(exclude))

    regions = tuple(r for r in included if r not in excluded)
    logger.debug(f"리전 해석: include={include!r} exclude={exclude!r} -> {len(regions)}개")
    return regions
