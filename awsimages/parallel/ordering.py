"""
awsimages/parallel/ordering.py - 리전별 이미지 정렬

리전 하나의 이미지 목록을 생성일 오름차순(오래된 것 먼저)으로 정렬합니다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# CreationDate가 없거나 파싱할 수 없는 이미지는 맨 앞으로
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_creation_date(value: Any) -> datetime:
    """CreationDate 값을 timezone-aware datetime으로 변환

    EC2는 "2024-01-01T00:00:00.000Z" 형식의 문자열을 반환합니다.
    moto 등 일부 경로에서는 datetime 객체가 올 수도 있습니다.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if not value or not isinstance(value, str):
        return _EPOCH

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return _EPOCH

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def creation_key(image: dict[str, Any]) -> datetime:
    return parse_creation_date(image.get("CreationDate"))


def sort_by_creation(images: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """생성일 오름차순 정렬

    2개 이상일 때만 정렬하며, 0~1개 목록은 같은 객체를 그대로 반환합니다.
    안정 정렬이므로 생성일이 같은 이미지는 프로바이더가 반환한 순서를 유지합니다.
    """
    if len(images) <= 1:
        return images
    return sorted(images, key=creation_key)
