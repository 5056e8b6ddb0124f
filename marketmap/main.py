#!/usr/bin/env python3
"""
카테고리 매핑 엔진 CLI
"""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import click
from loguru import logger

from marketmap.config import get_settings
from marketmap.engine import CategoryEngine
from marketmap.errors import CategoryEngineError
from marketmap.factory import build_engine, build_services
from marketmap.monitoring import setup_logging

T = TypeVar("T")


def _run(action: Callable[[CategoryEngine], Awaitable[T]]) -> T:
    """엔진을 만들어 작업 실행 후 HTTP 클라이언트 정리"""
    settings = get_settings()
    if not settings.trendyol.is_configured():
        logger.error("TRENDYOL_API_KEY / TRENDYOL_API_SECRET / TRENDYOL_SUPPLIER_ID 설정이 필요합니다")
        raise click.exceptions.Exit(1)

    async def main() -> T:
        services = build_services(settings)
        try:
            return await action(build_engine(services, config=settings))
        finally:
            await services["client"].close()

    try:
        return asyncio.run(main())
    except CategoryEngineError as e:
        logger.error(f"{e.user_message} ({e.message})")
        raise click.exceptions.Exit(1)


@click.group()
@click.option("--log-level", default=None, help="로그 레벨 (기본값: 설정값)")
def cli(log_level: Optional[str]):
    """마켓플레이스 카테고리 매핑 CLI"""
    settings = get_settings()
    setup_logging(log_level=log_level or settings.log_level, log_file=settings.log_file)


@cli.command()
def warmup():
    """카테고리 캐시 강제 갱신"""

    async def action(engine: CategoryEngine) -> int:
        return await engine.category_source.warmup(engine.account)

    count = _run(action)
    click.echo(f"카테고리 {count}개 캐시됨")


@cli.command()
@click.argument("parent_id", type=int, default=0)
def children(parent_id: int):
    """직계 자식 카테고리 (0 = 루트)"""
    nodes = _run(lambda engine: engine.resolve_children(parent_id))
    for node in nodes:
        click.echo(f"{node.id}\t{node.label()}")
    click.echo(f"총 {len(nodes)}개")


@cli.command()
@click.argument("category_id", type=int)
def path(category_id: int):
    """루트부터의 카테고리 경로"""
    result = _run(lambda engine: engine.get_path(category_id))
    click.echo(result.breadcrumb)


@cli.command("ensure-leaf")
@click.argument("category_id", type=int)
@click.option(
    "--strategy",
    type=click.Choice(["first", "nearest"]),
    default="first",
    help="first: 첫 자식 하향 탐색, nearest: 가장 가까운 leaf 자손",
)
def ensure_leaf(category_id: int, strategy: str):
    """leaf 카테고리 확보"""
    if strategy == "nearest":
        result = _run(lambda engine: engine.ensure_leaf_nearest(category_id))
    else:
        result = _run(lambda engine: engine.ensure_leaf(category_id))
    note = " (이미 leaf)" if result.was_leaf else ""
    click.echo(f"{result.leaf_id}\t{result.path.breadcrumb}{note}")


@cli.command()
@click.argument("root_id", type=int)
@click.option("--limit", type=int, default=None, help="찾을 예시 수 (1~20, 기본값 3)")
def scan(root_id: int, limit: Optional[int]):
    """분기 아래에서 속성이 있는 leaf 예시 탐색"""
    result = _run(lambda engine: engine.find_examples(root_id, limit))
    for match in result.examples:
        click.echo(f"{match.category_id}\t{match.path.breadcrumb}\t속성 {match.attribute_count}개")
    if not result.found:
        click.echo("예시를 찾지 못했습니다. 다른 하위 분기를 시도해 주세요.")
    click.echo(f"방문 {result.visited}개{' (한도 도달)' if result.exhausted else ''}")


@cli.command()
@click.argument("category_id", type=int)
@click.option("--smart", is_flag=True, help="leaf 가 아니면 leaf 를 먼저 확보")
def attributes(category_id: int, smart: bool):
    """카테고리 속성 스키마"""

    async def action(engine: CategoryEngine):
        if smart:
            leaf, attrs = await engine.smart_attributes(category_id)
            return leaf.leaf_id, attrs
        return category_id, await engine.load_attributes(category_id)

    leaf_id, attrs = _run(action)
    click.echo(f"카테고리 {leaf_id} 속성 {len(attrs)}개")
    for attr in attrs:
        flags = []
        if attr.required:
            flags.append("필수")
        if attr.allow_custom:
            flags.append("직접입력")
        if attr.is_variant:
            flags.append("옵션")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"{attr.id}\t{attr.name}{suffix}\t값 {len(attr.values)}개")


@cli.command()
@click.option("--host", default="0.0.0.0", help="바인딩 주소")
@click.option("--port", default=8000, type=int, help="포트")
def serve(host: str, port: int):
    """API 서버 실행"""
    from marketmap.api.main import run

    run(host=host, port=port)


if __name__ == "__main__":
    cli()
