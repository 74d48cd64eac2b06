#!/usr/bin/env python
"""
AWS 리전 카탈로그 업데이트 스크립트

사용법:
    python -m awsimages.region.update_regions [--dry-run]

필요 권한:
    - AWS 자격증명 (어떤 계정이든 상관없음)
    - ec2:DescribeRegions

동작:
    - AWS API에서 최신 리전 목록 조회
    - awsimages/region/data.py의 ALL_REGIONS 자동 업데이트
    - --dry-run: 변경 내용만 출력 (파일 수정 안함)

Note:
    리전 해석(resolve_regions)은 이 스크립트를 호출하지 않습니다.
    정적 카탈로그를 주기적으로 갱신하기 위한 개발자용 도구입니다.
"""

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

import boto3
import click
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

# data.py 경로
DATA_FILE = Path(__file__).parent / "data.py"

_BLOCK_PATTERN = r"# 전체 AWS 리전 목록.*?ALL_REGIONS\s*=\s*\[.*?\]"


def get_all_regions(session: boto3.Session | None = None) -> list[str]:
    """EC2 API에서 모든 리전 목록 가져오기"""
    session = session or boto3.Session()
    ec2 = session.client("ec2", region_name="us-east-1")
    response = ec2.describe_regions(AllRegions=True)

    return sorted(str(r.get("RegionName", "")) for r in response.get("Regions", []) if r.get("RegionName"))


def read_current_regions(path: Path = DATA_FILE) -> list[str]:
    """data.py에서 현재 리전 목록 읽기"""
    content = path.read_text(encoding="utf-8")

    match = re.search(r"ALL_REGIONS\s*=\s*\[(.*?)\]", content, re.DOTALL)
    if not match:
        return []

    return re.findall(r'"([a-z]{2}-[a-z]+-\d+)"', match.group(1))


def update_data_file(regions: list[str], path: Path = DATA_FILE) -> None:
    """data.py의 ALL_REGIONS 블록 교체"""
    content = path.read_text(encoding="utf-8")

    today = datetime.now().strftime("%Y-%m-%d")
    regions_str = ",\n".join(f'    "{r}"' for r in regions)
    new_block = f"""# 전체 AWS 리전 목록 ({today} 기준)
# 업데이트: awsimages/region/update_regions.py 실행
ALL_REGIONS = [
{regions_str},
]"""

    new_content = re.sub(_BLOCK_PATTERN, lambda _: new_block, content, flags=re.DOTALL)
    path.write_text(new_content, encoding="utf-8")


def diff_regions(current: list[str], latest: list[str]) -> tuple[list[str], list[str]]:
    """(추가된 리전, 제거된 리전)"""
    added = sorted(set(latest) - set(current))
    removed = sorted(set(current) - set(latest))
    return added, removed


@click.command()
@click.option("--dry-run", is_flag=True, help="변경 내용만 출력 (파일 수정 안함)")
def main(dry_run: bool) -> None:
    click.echo(f"# AWS 리전 목록 업데이트 ({datetime.now().strftime('%Y-%m-%d')})")

    current = read_current_regions()
    click.echo(f"현재 등록된 리전: {len(current)}개")

    try:
        latest = get_all_regions()
    except (BotoCoreError, ClientError) as e:
        click.echo(f"[ERROR] 리전 조회 실패: {e}", err=True)
        click.echo("AWS 자격증명을 확인하세요.", err=True)
        sys.exit(1)

    click.echo(f"AWS 최신 리전: {len(latest)}개")

    added, removed = diff_regions(current, latest)
    if not added and not removed:
        click.echo("[OK] 변경 사항 없음")
        return

    for region in added:
        click.echo(f"[+] {region}")
    for region in removed:
        click.echo(f"[-] {region}")

    if dry_run:
        click.echo("(--dry-run 모드: 파일 수정 안함)")
        return

    update_data_file(latest)
    click.echo(f"[OK] {DATA_FILE} 업데이트 완료")


if __name__ == "__main__":
    main()
