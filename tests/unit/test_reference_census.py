"""Tests for the realm-wide reference census used by deep deletes."""

import pytest

from journeykit.application.services.graph_walker import GraphWalker, RemoteNodeSource
from journeykit.application.services.reference_census import ReferenceCensus
from journeykit.domain.entities import DependencyRef, Journey
from journeykit.domain.enums import DependencyType
from journeykit.domain.exceptions import PlatformRequestException
from tests.conftest import SUCCESS, FakePlatform, make_node, make_tree


async def _census(platform: FakePlatform) -> ReferenceCensus:
    journeys = [Journey.from_dict(t) for t in platform.trees.objects.values()]
    return await ReferenceCensus.build(
        journeys, GraphWalker(RemoteNodeSource(platform.collaborators.nodes))
    )


@pytest.fixture
def two_journeys(platform: FakePlatform) -> FakePlatform:
    platform.add_journey(
        make_tree("A", "a1", {"a1": ("ScriptedDecisionNode", {"true": SUCCESS})}),
        make_node("a1", "ScriptedDecisionNode", script="shared-script"),
    )
    platform.add_journey(
        make_tree(
            "B",
            "b1",
            {
                "b1": ("ScriptedDecisionNode", {"true": "b2"}),
                "b2": ("SocialProviderHandlerNode", {"outcome": SUCCESS}),
            },
        ),
        make_node("b1", "ScriptedDecisionNode", script="shared-script"),
        make_node("b2", "SocialProviderHandlerNode", script="normalize"),
    )
    return platform


@pytest.mark.asyncio
async def test_shared_dependencies_are_detected(two_journeys: FakePlatform) -> None:
    census = await _census(two_journeys)
    script = DependencyRef(DependencyType.SCRIPT, "shared-script")

    assert census.journey_ids == {"A", "B"}
    assert census.dependency_is_shared(script, "A")
    assert not census.dependency_is_shared(
        DependencyRef(DependencyType.SCRIPT, "normalize"), "B"
    )
    assert not census.node_is_shared("a1", "A")


@pytest.mark.asyncio
async def test_wildcard_social_reference_shares_every_provider(
    two_journeys: FakePlatform,
) -> None:
    census = await _census(two_journeys)
    assert census.dependency_is_shared(
        DependencyRef(DependencyType.SOCIAL_IDP, "google"), "A"
    )
    assert not census.dependency_is_shared(
        DependencyRef(DependencyType.SOCIAL_IDP, "google"), "B"
    )


@pytest.mark.asyncio
async def test_forget_releases_references(two_journeys: FakePlatform) -> None:
    census = await _census(two_journeys)
    census.forget("B")
    assert not census.dependency_is_shared(
        DependencyRef(DependencyType.SCRIPT, "shared-script"), "A"
    )
    census.forget("missing")
    assert census.journey_ids == {"A"}


@pytest.mark.asyncio
async def test_unwalkable_journey_still_holds_its_nodes(platform: FakePlatform) -> None:
    platform.add_journey(make_tree("Broken", None, {"x": ("MessageNode", {})}))
    platform.add_journey(
        make_tree("Ok", "x", {"x": ("MessageNode", {"true": SUCCESS})}),
        make_node("x", "MessageNode"),
    )

    census = await _census(platform)

    assert census.journey_ids == {"Broken", "Ok"}
    assert census.node_is_shared("x", "Ok")


@pytest.mark.asyncio
async def test_journeys_with_lost_reads_are_incomplete(two_journeys: FakePlatform) -> None:
    two_journeys.nodes.fail(
        "read", "b2", PlatformRequestException("GET", "b2", 503, {}), always=False
    )

    census = await _census(two_journeys)

    assert set(census.incomplete) == {"B"}
    assert census.incomplete_except("A") == ["B"]
    assert census.incomplete_except("B") == []
    census.forget("B")
    assert census.incomplete == {}


@pytest.mark.asyncio
async def test_unwalkable_journey_is_incomplete(platform: FakePlatform) -> None:
    platform.add_journey(make_tree("Broken", "ghost", {}))

    census = await _census(platform)

    assert census.incomplete_except("Other") == ["Broken"]
