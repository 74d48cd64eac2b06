"""
awsimages/parallel/client.py - 리전 EC2 클라이언트 설정

한 리전의 실패는 그 리전의 RegionError로 끝나며 같은 호출을 다시 보내지 않습니다.
botocore도 뒤에서 재시도하지 않도록 standard 모드 + total_max_attempts=1로 고정하고,
모든 리전 클라이언트에 같은 30초 connect/read 타임아웃을 적용합니다.
응답이 없는 리전은 타임아웃 에러로 끝나고 나머지 리전 결과는 그대로 수집됩니다.

Example:
    ec2 = get_client(session, "ec2", region_name="eu-west-1")
    ec2.describe_images(Owners=["self"])  # 실패 시 한 번의 에러로 끝남
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, cast

from botocore.config import Config

if TYPE_CHECKING:
    import boto3

RetryMode = Literal["legacy", "standard", "adaptive"]

DEFAULT_TIMEOUT = 30  # 초, connect/read 공통
DEFAULT_MAX_ATTEMPTS = 1  # total_max_attempts, 최초 호출 포함
DEFAULT_RETRY_MODE: RetryMode = "standard"
DEFAULT_MAX_POOL_CONNECTIONS = 10


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: int = DEFAULT_TIMEOUT,
    read_timeout: int = DEFAULT_TIMEOUT,
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS,
    **kwargs: Any,
) -> Any:
    """리전 하나의 클라이언트 생성 (네트워크 호출 없음)

    Args:
        session: 자격증명이 설정된 boto3 Session
        service_name: AWS 서비스 이름
        region_name: 리전
        max_attempts: 호출당 시도 횟수 (1이면 재시도 없음)
        retry_mode: botocore 재시도 모드
        connect_timeout: 연결 타임아웃 (초)
        read_timeout: 읽기 타임아웃 (초)
        max_pool_connections: HTTP 연결 풀 크기
        **kwargs: session.client()에 그대로 전달 (config는 위 설정 위에 병합)

    Raises:
        botocore.exceptions.InvalidRegionError: 리전 이름 형식이 잘못되었을 때
    """
    config = Config(
        retries={"total_max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        max_pool_connections=max_pool_connections,
    )
    if "config" in kwargs:
        config = config.merge(kwargs.pop("config"))

    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=config,
        **kwargs,
    )
