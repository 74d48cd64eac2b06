"""
awsimages/provider/registry.py - 리전별 EC2 클라이언트 레지스트리

해석된 리전마다 인증된 EC2 클라이언트를 하나씩 만들어 보관합니다.
생성 시점에는 네트워크 호출을 하지 않으며, 클라이언트는 팬아웃 호출 때만 사용됩니다.

Usage:
    session = boto3.Session(aws_access_key_id="AKIA...", aws_secret_access_key="...")
    registry = RegionalClientRegistry.build(("us-east-1", "eu-west-1"), session)

    client = registry["us-east-1"]
    for region, client in registry.items():
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from botocore.exceptions import InvalidRegionError

from awsimages.exceptions import ConfigError
from awsimages.parallel.client import DEFAULT_TIMEOUT, get_client

if TYPE_CHECKING:
    import boto3
    from mypy_boto3_ec2 import EC2Client

logger = logging.getLogger(__name__)


class RegionalClientRegistry(Mapping[str, "EC2Client"]):
    """리전 -> EC2 클라이언트 매핑 (읽기 전용)

    리전 하나당 클라이언트 하나이며, 생성 후 변경되지 않습니다.
    """

    def __init__(self, clients: Mapping[str, EC2Client]):
        if not clients:
            raise ConfigError("region", "No AWS region to operate on")
        self._clients: dict[str, EC2Client] = dict(clients)

    @classmethod
    def build(
        cls,
        regions: Iterable[str],
        session: boto3.Session,
        timeout: int = DEFAULT_TIMEOUT,
        service: str = "ec2",
    ) -> RegionalClientRegistry:
        """세션 하나로 리전별 클라이언트 생성

        Args:
            regions: 해석된 리전 목록 (중복은 한 번만 생성)
            session: 자격증명이 설정된 boto3 Session
            timeout: 모든 클라이언트가 공유하는 connect/read 타임아웃 (초)
            service: AWS 서비스 이름

        Raises:
            ConfigError: 리전 이름 형식이 잘못되어 클라이언트를 만들 수 없을 때
        """
        clients: dict[str, Any] = {}
        for region in regions:
            if region in clients:
                continue
            try:
                clients[region] = get_client(
                    session,
                    service,
                    region_name=region,
                    connect_timeout=timeout,
                    read_timeout=timeout,
                )
            except InvalidRegionError as e:
                raise ConfigError("region", f"Invalid AWS region {region!r}", cause=e) from e

        logger.debug(f"리전 클라이언트 {len(clients)}개 생성: {', '.join(clients)}")
        return cls(clients)

    @property
    def regions(self) -> tuple[str, ...]:
        """등록된 리전 (등록 순서)"""
        return tuple(self._clients)

    def __getitem__(self, region: str) -> EC2Client:
        return self._clients[region]

    def __iter__(self) -> Iterator[str]:
        return iter(self._clients)

    def __len__(self) -> int:
        return len(self._clients)

    def __repr__(self) -> str:
        return f"RegionalClientRegistry({list(self._clients)!r})"
