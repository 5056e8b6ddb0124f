"""
LeafFinder 테스트
"""

import pytest

from marketmap.errors import (
    CategoryNotFoundError,
    LeafNotFoundError,
    TaxonomyInconsistencyError,
    TransportError,
)
from marketmap.resolver import CategoryCacheResolver, LeafFinder
from tests.fixtures.fake_sources import FakeCategorySource, chain_flat, cyclic_flat, node


def make_finder(flat, account, config, **kwargs):
    source = FakeCategorySource(flat, **kwargs)
    return LeafFinder(CategoryCacheResolver(source, account, config)), source


class TestEnsureLeaf:
    """leaf 확보"""

    @pytest.mark.asyncio
    async def test_first_leaf_child(self, account, resolver_config):
        flat = [node(1, "Electronics"), node(11, "Phones", 1, True)]
        finder, _ = make_finder(flat, account, resolver_config)

        result = await finder.ensure_leaf(1)

        assert result.leaf_id == 11
        assert result.path.ids == [1, 11]
        assert result.was_leaf is False

    @pytest.mark.asyncio
    async def test_start_is_leaf(self, resolver, account, resolver_config):
        finder = LeafFinder(resolver)

        result = await finder.ensure_leaf(212)

        assert result.leaf_id == 212
        assert result.path.ids == [2, 21, 212]
        assert result.was_leaf is True

    @pytest.mark.asyncio
    async def test_descends_into_first_child(self, resolver, category_source):
        result = await LeafFinder(resolver).ensure_leaf(2)

        assert result.leaf_id == 211
        assert result.path.ids == [2, 21, 211]
        assert result.path.is_terminal
        result.path.validate_chain()

    @pytest.mark.asyncio
    async def test_picks_first_leaf_among_mixed_children(self, account, resolver_config):
        flat = [
            node(1, "Root"),
            node(10, "Branch", 1),
            node(11, "Leaf A", 1, True),
            node(12, "Leaf B", 1, True),
            node(100, "Deep", 10, True),
        ]
        finder, _ = make_finder(flat, account, resolver_config)

        result = await finder.ensure_leaf(1)

        assert result.leaf_id == 11

    @pytest.mark.asyncio
    async def test_unknown_start(self, resolver):
        with pytest.raises(CategoryNotFoundError):
            await LeafFinder(resolver).ensure_leaf(999)

    @pytest.mark.asyncio
    async def test_non_leaf_without_children(self, resolver):
        with pytest.raises(TaxonomyInconsistencyError) as exc_info:
            await LeafFinder(resolver).ensure_leaf(3)

        assert exc_info.value.reason == "inconsistent"
        assert exc_info.value.node_id == 3
        assert isinstance(exc_info.value, LeafNotFoundError)

    @pytest.mark.asyncio
    async def test_depth_budget(self, account, resolver_config):
        finder, _ = make_finder(chain_flat(15), account, resolver_config)

        with pytest.raises(LeafNotFoundError) as exc_info:
            await finder.ensure_leaf(100)

        assert exc_info.value.reason == "budget"
        assert not isinstance(exc_info.value, TaxonomyInconsistencyError)

    @pytest.mark.asyncio
    async def test_deep_chain_within_budget(self, account, resolver_config):
        resolver_config.max_depth = 20
        finder, _ = make_finder(chain_flat(15), account, resolver_config)

        result = await finder.ensure_leaf(100)

        assert result.leaf_id == 115
        assert len(result.path) == 16

    @pytest.mark.asyncio
    async def test_visit_budget(self, account, resolver_config):
        resolver_config.max_visits = 3
        finder, source = make_finder(chain_flat(15), account, resolver_config)

        with pytest.raises(LeafNotFoundError):
            await finder.ensure_leaf(100)

        assert len(source.upstream_children_calls()) == 3

    @pytest.mark.asyncio
    async def test_cycle_terminates(self, account, resolver_config):
        finder, _ = make_finder(cyclic_flat(), account, resolver_config)

        with pytest.raises(LeafNotFoundError) as exc_info:
            await finder.ensure_leaf(41)

        assert exc_info.value.reason == "budget"

    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self, account, resolver_config):
        flat = [node(1, "Electronics"), node(11, "Phones", 1, True)]
        finder, _ = make_finder(flat, account, resolver_config, fail_cache=True, fail_flat=True)

        with pytest.raises(TransportError):
            await finder.ensure_leaf(1)
