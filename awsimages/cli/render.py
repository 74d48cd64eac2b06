"""
awsimages/cli/render.py - 팬아웃 결과 콘솔 출력

리전별 이미지 테이블, JSON 출력, 리전별 에러 출력을 담당합니다.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from awsimages.parallel import FanOutResult
from awsimages.region.data import REGION_NAMES

console = Console()


def _region_title(region: str, count: int) -> str:
    name = REGION_NAMES.get(region)
    label = f"{region} ({name})" if name else region
    return f"{label} - {count} images"


def build_region_table(region: str, images: list[dict[str, Any]]) -> Table:
    """리전 하나의 이미지 테이블"""
    table = Table(title=_region_title(region, len(images)), title_justify="left", show_lines=False)
    table.add_column("Image ID", no_wrap=True)
    table.add_column("Name")
    table.add_column("Creation Date", no_wrap=True)
    table.add_column("State")
    table.add_column("Owner")

    for image in images:
        table.add_row(
            image.get("ImageId") or "-",
            image.get("Name") or "-",
            str(image.get("CreationDate") or "-"),
            image.get("State") or "-",
            image.get("OwnerId") or "-",
        )

    return table


def print_tables(result: FanOutResult) -> None:
    """성공한 리전별 이미지 테이블 출력 (리전 이름순)"""
    if not result.images:
        console.print("[dim]No images found[/dim]")
        return

    for region in sorted(result.images):
        console.print(build_region_table(region, result.images[region]))


def to_json(result: FanOutResult) -> str:
    """결과를 JSON 문자열로 (성공한 리전 + 실패한 리전 에러)"""
    payload: dict[str, Any] = {
        "images": {region: result.images[region] for region in sorted(result.images)},
        "errors": [err.to_dict() for err in result.errors],
    }
    return json.dumps(payload, indent=2, default=str, ensure_ascii=False)


def print_changes(result: FanOutResult, action: str, dry_run: bool = False) -> None:
    """변경 명령(copy/delete/modify) 결과를 이미지당 한 줄로 출력"""
    suffix = " (dry-run)" if dry_run else ""
    changed = 0

    for region in sorted(result.images):
        for image in result.images[region]:
            changed += 1
            image_id = image.get("ImageId") or image.get("SourceImageId") or "-"
            name = image.get("Name") or ""
            console.print(f"{action}{suffix}: {region} {image_id} {name}".rstrip(), markup=False, highlight=False)

    if changed == 0:
        console.print("[dim]No matching images[/dim]")
