"""
awsimages/config.py - AWS 설정 로드

리전/자격증명 설정을 세 곳에서 읽어 병합합니다 (뒤쪽이 우선):
    1. 설정 파일 (~/.imagesrc, TOML 또는 JSON)
    2. 환경 변수 (IMAGES_AWS_REGION, IMAGES_AWS_REGION_EXCLUDE,
       IMAGES_AWS_ACCESS_KEY, IMAGES_AWS_SECRET_KEY)
    3. CLI 플래그

설정 파일 예시 (TOML):
    [aws]
    region = "us-east-1,eu-west-1"
    region_exclude = ""
    access_key = "AKIA..."
    secret_key = "..."

Usage:
    from awsimages.config import load_config

    config = load_config(region="all", region_exclude="us-west-2")
    config.validate()
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from awsimages.exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "IMAGES_AWS_"
DEFAULT_CONFIG_PATH = Path.home() / ".imagesrc"

# 필드 -> 환경 변수
ENV_VARS = {
    "region": f"{ENV_PREFIX}REGION",
    "region_exclude": f"{ENV_PREFIX}REGION_EXCLUDE",
    "access_key": f"{ENV_PREFIX}ACCESS_KEY",
    "secret_key": f"{ENV_PREFIX}SECRET_KEY",
}


@dataclass(frozen=True)
class AwsConfig:
    """AWS 프로바이더 설정

    Attributes:
        region: 포함 리전 패턴 ("us-east-1,us-west-2", "ap-*", "all")
        region_exclude: 제외 리전 패턴
        access_key: AWS Access Key
        secret_key: AWS Secret Key
    """

    region: str = ""
    region_exclude: str = ""
    access_key: str = ""
    secret_key: str = ""

    def validate(self) -> None:
        """필수 필드 검증 (리전 -> Access Key -> Secret Key 순)

        Raises:
            ConfigError: 필수 필드가 비어 있을 때
        """
        if not self.region.strip():
            raise ConfigError("region", "AWS Region is not set")
        if not self.access_key.strip():
            raise ConfigError("access_key", "AWS Access Key is not set")
        if not self.secret_key.strip():
            raise ConfigError("secret_key", "AWS Secret Key is not set")

    def merged(self, **overrides: str | None) -> AwsConfig:
        """비어있지 않은 값으로 덮어쓴 새 설정 반환"""
        known = {f.name for f in fields(self)}
        values = {k: v for k, v in overrides.items() if k in known and v}
        return replace(self, **values)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AwsConfig:
        """딕셔너리에서 생성 ([aws] 테이블 또는 최상위 키)"""
        section = data.get("aws", data)
        if not isinstance(section, Mapping):
            raise ConfigError("aws", "The [aws] section must be a table")

        known = {f.name for f in fields(cls)}
        values = {k: str(v) for k, v in section.items() if k in known and v is not None}
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AwsConfig:
        """환경 변수에서 생성"""
        environ = os.environ if environ is None else environ
        return cls(**{name: environ.get(var, "") for name, var in ENV_VARS.items()})

    @classmethod
    def from_file(cls, path: str | Path) -> AwsConfig:
        """TOML/JSON 설정 파일에서 생성

        확장자가 .json이면 JSON, 그 외에는 TOML로 파싱합니다.

        Raises:
            ConfigError: 파일을 읽거나 파싱할 수 없을 때
        """
        path = Path(path).expanduser()
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError("config", f"Cannot read config file {path}", cause=e) from e

        try:
            if path.suffix == ".json":
                data = json.loads(raw)
            else:
                data = tomllib.loads(raw)
        except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigError("config", f"Cannot parse config file {path}", cause=e) from e

        if not isinstance(data, Mapping):
            raise ConfigError("config", f"Config file {path} must contain a table")

        logger.debug(f"설정 파일 로드: {path}")
        return cls.from_mapping(data)


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: str | None,
) -> AwsConfig:
    """설정 파일 -> 환경 변수 -> 오버라이드 순으로 병합

    Args:
        path: 설정 파일 경로 (None이면 ~/.imagesrc가 있을 때만 사용)
        environ: 환경 변수 매핑 (None이면 os.environ)
        **overrides: CLI 플래그 값 (None/빈 문자열은 무시)

    Returns:
        병합된 AwsConfig (검증은 하지 않음)
    """
    config = AwsConfig()

    if path is not None:
        config = AwsConfig.from_file(path)
    elif DEFAULT_CONFIG_PATH.is_file():
        config = AwsConfig.from_file(DEFAULT_CONFIG_PATH)

    env_config = AwsConfig.from_env(environ)
    config = config.merged(**{f.name: getattr(env_config, f.name) for f in fields(env_config)})

    return config.merged(**overrides)
