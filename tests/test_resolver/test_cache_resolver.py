"""
CategoryCacheResolver 테스트
"""

import asyncio

import pytest

from marketmap.errors import CategoryNotFoundError, TransportError
from marketmap.monitoring import global_metrics
from marketmap.resolver import CategoryCacheResolver, with_timeout
from tests.fixtures.fake_sources import FakeCategorySource, node, sample_flat


class TestChildrenOf:
    """2단계 자식 조회"""

    @pytest.mark.asyncio
    async def test_cache_tier_answers(self, resolver, category_source):
        children = await resolver.children_of(1)

        assert [n.id for n in children] == [11, 12, 13, 14, 15]
        assert category_source.calls == [("children", 1, True)]

    @pytest.mark.asyncio
    async def test_roots(self, resolver):
        roots = await resolver.children_of(0)

        assert [n.id for n in roots] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_fallback_to_flat_list(self, account, resolver_config):
        source = FakeCategorySource(
            [node(1, "Electronics"), node(11, "Phones", 1, True)], fail_cache=True
        )
        resolver = CategoryCacheResolver(source, account, resolver_config)
        fallbacks = global_metrics.get_value("resolver.fallbacks")

        children = await resolver.children_of(1)

        assert [(n.id, n.is_leaf) for n in children] == [(11, True)]
        assert source.calls == [("children", 1, True), ("flat", False, False)]
        assert global_metrics.get_value("resolver.fallbacks") == fallbacks + 1

    @pytest.mark.asyncio
    async def test_fallback_after_cache_timeout(self, account, resolver_config):
        source = FakeCategorySource(sample_flat())
        source.gates[2] = asyncio.Event()
        resolver_config.children_timeout = 0.01
        resolver = CategoryCacheResolver(source, account, resolver_config)

        children = await resolver.children_of(2)

        assert [n.id for n in children] == [21, 22]
        assert ("flat", False, False) in source.calls

    @pytest.mark.asyncio
    async def test_both_tiers_fail(self, account, resolver_config):
        source = FakeCategorySource(sample_flat(), fail_cache=True, fail_flat=True)
        resolver = CategoryCacheResolver(source, account, resolver_config)

        with pytest.raises(TransportError) as exc_info:
            await resolver.children_of(1)

        assert exc_info.value.reason == "status 503"

    @pytest.mark.asyncio
    async def test_empty_result_is_not_failure(self, resolver, category_source):
        children = await resolver.children_of(3)

        assert children == []
        assert category_source.calls == [("children", 3, True)]

    @pytest.mark.asyncio
    async def test_idempotent(self, resolver):
        first = await resolver.children_of(2)
        second = await resolver.children_of(2)

        assert first == second

    @pytest.mark.asyncio
    async def test_leaf_node_has_no_children_and_no_upstream_call(self, resolver, category_source):
        phones = node(11, "Phones", 1, True)

        assert await resolver.children_of_node(phones) == []
        assert category_source.calls == []


class TestPathOf:
    @pytest.mark.asyncio
    async def test_path(self, resolver):
        path = await resolver.path_of(212)

        assert path.ids == [2, 21, 212]

    @pytest.mark.asyncio
    async def test_unknown(self, resolver):
        with pytest.raises(CategoryNotFoundError):
            await resolver.path_of(999)


@pytest.mark.asyncio
async def test_with_timeout_converts_to_transport_error():
    with pytest.raises(TransportError) as exc_info:
        await with_timeout(asyncio.sleep(1), 0.01, "children")

    assert exc_info.value.reason == "timeout"
    assert exc_info.value.endpoint == "children"
