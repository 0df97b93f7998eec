"""Tests for JourneyDeletionService (shallow, deep, shared objects)."""

import pytest

from journeykit.application.dtos import DeleteOptions
from journeykit.application.use_cases.journeys import JourneyDeletionService
from journeykit.domain.enums import DeletionStatus, ObjectKind, SamlLocation
from journeykit.domain.exceptions import JourneyNotFoundException, PlatformRequestException
from tests.conftest import SUCCESS, FakePlatform, make_node, make_tree

DEEP = DeleteOptions(deep=True)


def _seed(platform: FakePlatform) -> None:
    """Login and Register share the script 'shared' and the node 'common'."""
    platform.add_journey(
        make_tree(
            "Login",
            "page",
            {
                "page": ("PageNode", {"outcome": "mine"}),
                "mine": ("ScriptedDecisionNode", {"true": "common"}),
                "common": ("ScriptedDecisionNode", {"true": SUCCESS}),
                "loose": ("MessageNode", {}),
            },
        ),
        make_node("page", "PageNode", nodes=[{"_id": "user", "nodeType": "UsernameCollectorNode"}]),
        make_node("user", "UsernameCollectorNode"),
        make_node("mine", "ScriptedDecisionNode", script="only-login"),
        make_node("common", "ScriptedDecisionNode", script="shared"),
        make_node("loose", "MessageNode"),
    )
    platform.add_journey(
        make_tree(
            "Register",
            "reg",
            {
                "reg": ("ScriptedDecisionNode", {"true": "common"}),
                "common": ("ScriptedDecisionNode", {"true": SUCCESS}),
            },
        ),
        make_node("reg", "ScriptedDecisionNode", script="shared"),
    )
    platform.scripts.objects.update({"only-login": {"_id": "only-login"}, "shared": {"_id": "shared"}})


def _service(platform: FakePlatform, settings) -> JourneyDeletionService:
    return JourneyDeletionService(platform.collaborators, settings)


@pytest.mark.asyncio
async def test_shallow_delete_removes_only_the_tree(platform: FakePlatform, settings) -> None:
    _seed(platform)
    result = await _service(platform, settings).delete_journey("Login")
    assert "Login" not in platform.trees.objects
    assert "mine" in platform.nodes.objects
    assert [(e.object_type, e.object_id, e.status) for e in result.entries] == [
        (ObjectKind.TREE, "Login", DeletionStatus.DELETED)
    ]


@pytest.mark.asyncio
async def test_deep_delete_keeps_objects_other_journeys_use(platform: FakePlatform, settings) -> None:
    _seed(platform)

    result = await _service(platform, settings).delete_journey("Login", DEEP)

    assert result.ok, result.errors
    assert set(platform.nodes.objects) == {"common", "reg"}
    assert set(platform.scripts.objects) == {"shared"}
    assert result.status_of(ObjectKind.NODE, "common") == DeletionStatus.SKIPPED_SHARED
    assert result.status_of(ObjectKind.SCRIPT, "shared") == DeletionStatus.SKIPPED_SHARED
    assert result.status_of(ObjectKind.SCRIPT, "only-login") == DeletionStatus.DELETED
    assert result.status_of(ObjectKind.INNER_NODE, "user") == DeletionStatus.DELETED
    assert result.status_of(ObjectKind.NODE, "loose") == DeletionStatus.DELETED
    assert "2 skipped (shared)" in result.summary()


@pytest.mark.asyncio
async def test_inner_nodes_are_deleted_before_their_container(platform: FakePlatform, settings) -> None:
    _seed(platform)
    await _service(platform, settings).delete_journey("Login", DEEP)
    deletes = [oid for name, op, oid in platform.log if name == "nodes" and op == "delete"]
    assert deletes.index("user") < deletes.index("page")


@pytest.mark.asyncio
async def test_failed_tree_delete_leaves_everything_in_place(platform: FakePlatform, settings) -> None:
    _seed(platform)
    platform.trees.fail("delete", "Login", PlatformRequestException("DELETE", "Login", 500, {}))

    result = await _service(platform, settings).delete_journey("Login", DEEP)

    assert result.status_of(ObjectKind.TREE, "Login") == DeletionStatus.FAILED
    assert "mine" in platform.nodes.objects
    assert "only-login" in platform.scripts.objects
    assert not [c for c in platform.nodes.calls if c[0] == "delete"]


@pytest.mark.asyncio
async def test_node_already_gone_counts_as_deleted(platform: FakePlatform, settings) -> None:
    _seed(platform)
    platform.nodes.fail(
        "delete",
        "page",
        PlatformRequestException("DELETE", "page", 500, {"message": "Unable to read SMS config: Node did not exist"}),
    )
    result = await _service(platform, settings).delete_journey("Login", DEEP)
    assert result.status_of(ObjectKind.NODE, "page") == DeletionStatus.DELETED
    assert result.ok


@pytest.mark.asyncio
async def test_failed_dependency_delete_is_reported(platform: FakePlatform, settings) -> None:
    _seed(platform)
    platform.scripts.fail("delete", "only-login", PlatformRequestException("DELETE", "only-login", 403, {}))
    result = await _service(platform, settings).delete_journey("Login", DEEP)
    assert result.status_of(ObjectKind.SCRIPT, "only-login") == DeletionStatus.FAILED
    assert [e.object_id for e in result.errors] == ["only-login"]


@pytest.mark.asyncio
async def test_unknown_journey_raises(platform: FakePlatform, settings) -> None:
    with pytest.raises(JourneyNotFoundException):
        await _service(platform, settings).delete_journey("Nope", DEEP)


@pytest.mark.asyncio
async def test_social_providers_used_by_a_wildcard_journey_are_shared(platform: FakePlatform, settings) -> None:
    platform.add_journey(
        make_tree("Pick", "select", {"select": ("SelectIdPNode", {"outcome": SUCCESS})}),
        make_node("select", "SelectIdPNode", filteredProviders=["google"]),
    )
    platform.add_journey(
        make_tree("Social", "handler", {"handler": ("SocialProviderHandlerNode", {"outcome": SUCCESS})}),
        make_node("handler", "SocialProviderHandlerNode"),
    )
    platform.social_idps.objects["google"] = {"_id": "google"}

    result = await _service(platform, settings).delete_journey("Pick", DEEP)

    assert result.status_of(ObjectKind.SOCIAL_IDP, "google") == DeletionStatus.SKIPPED_SHARED
    assert "google" in platform.social_idps.objects

    await _service(platform, settings).delete_journey("Social", DEEP)
    assert "google" in platform.social_idps.objects


@pytest.mark.asyncio
async def test_saml2_entities_are_deleted_by_entity_id(platform: FakePlatform, settings) -> None:
    platform.add_journey(
        make_tree("Saml", "s", {"s": ("product-Saml2Node", {"outcome": SUCCESS})}),
        make_node("s", "product-Saml2Node", metaAlias="/alpha/sp", idpEntityId="idp"),
    )
    platform.saml2.add(SamlLocation.HOSTED, {"_id": "c3A", "entityId": "sp"})

    result = await _service(platform, settings).delete_journey("Saml", DEEP)

    assert platform.saml2.deleted == ["c3A"]
    assert result.status_of(ObjectKind.SAML2_ENTITY, "sp") == DeletionStatus.DELETED
    assert result.status_of(ObjectKind.SAML2_ENTITY, "idp") == DeletionStatus.DELETED


@pytest.mark.asyncio
async def test_delete_all_reuses_one_census(platform: FakePlatform, settings) -> None:
    _seed(platform)

    batch = await _service(platform, settings).delete_journeys(DEEP)

    assert platform.trees.objects == {}
    assert set(batch.results) == {"Login", "Register"}
    # Register is deleted after Login is forgotten, so the shared objects go with it
    assert platform.scripts.objects == {}
    assert "common" not in platform.nodes.objects
    assert platform.trees.calls.count(("read_all", "*")) == 1


def _seed_script_sharers(platform: FakePlatform) -> None:
    """A and B both run script 'S'."""
    platform.add_journey(
        make_tree("A", "a", {"a": ("ScriptedDecisionNode", {"true": SUCCESS})}),
        make_node("a", "ScriptedDecisionNode", script="S"),
    )
    platform.add_journey(
        make_tree("B", "b", {"b": ("ScriptedDecisionNode", {"true": SUCCESS})}),
        make_node("b", "ScriptedDecisionNode", script="S"),
    )
    platform.scripts.objects["S"] = {"_id": "S"}


@pytest.mark.asyncio
async def test_unreadable_sibling_node_keeps_collaborator_objects(platform: FakePlatform, settings) -> None:
    _seed_script_sharers(platform)
    platform.nodes.fail("read", "b", PlatformRequestException("GET", "b", 503, {}), always=False)

    result = await _service(platform, settings).delete_journey("A", DEEP)

    assert "S" in platform.scripts.objects
    assert result.status_of(ObjectKind.SCRIPT, "S") == DeletionStatus.SKIPPED_UNVERIFIED
    assert result.status_of(ObjectKind.NODE, "a") == DeletionStatus.DELETED
    assert not result.ok
    [error] = result.cross_phase_errors
    assert (error.object_type, error.object_id) == (ObjectKind.TREE, "A")
    assert "B" in error.message
    assert "1 skipped (unverified)" in result.summary()


@pytest.mark.asyncio
async def test_unwalkable_sibling_keeps_collaborator_objects(platform: FakePlatform, settings) -> None:
    platform.add_journey(
        make_tree("A", "a", {"a": ("ScriptedDecisionNode", {"true": SUCCESS})}),
        make_node("a", "ScriptedDecisionNode", script="only-a"),
    )
    platform.add_journey(make_tree("Broken", None, {"x": ("ScriptedDecisionNode", {})}))
    platform.scripts.objects["only-a"] = {"_id": "only-a"}

    result = await _service(platform, settings).delete_journey("A", DEEP)

    assert "only-a" in platform.scripts.objects
    assert result.status_of(ObjectKind.SCRIPT, "only-a") == DeletionStatus.SKIPPED_UNVERIFIED
    assert "Broken" in result.cross_phase_errors[0].message


@pytest.mark.asyncio
async def test_each_delete_reads_current_node_bodies(platform: FakePlatform, settings) -> None:
    for journey_id, node_id in (("A1", "a1"), ("A2", "a2")):
        platform.add_journey(
            make_tree(journey_id, node_id, {node_id: ("ScriptedDecisionNode", {"true": SUCCESS})}),
            make_node(node_id, "ScriptedDecisionNode", script="S"),
        )
    platform.add_journey(
        make_tree("B", "b", {"b": ("ScriptedDecisionNode", {"true": SUCCESS})}),
        make_node("b", "ScriptedDecisionNode", script="old"),
    )
    platform.scripts.objects.update({"S": {"_id": "S"}, "old": {"_id": "old"}})
    service = _service(platform, settings)

    await service.delete_journey("A1", DEEP)
    platform.nodes.objects["b"]["script"] = "S"
    result = await service.delete_journey("A2", DEEP)

    assert result.status_of(ObjectKind.SCRIPT, "S") == DeletionStatus.SKIPPED_SHARED
    assert set(platform.scripts.objects) == {"S", "old"}


@pytest.mark.asyncio
async def test_unreachable_container_takes_its_inner_nodes_along(platform: FakePlatform, settings) -> None:
    platform.add_journey(
        make_tree(
            "A",
            "a",
            {"a": ("MessageNode", {"true": SUCCESS}), "p": ("PageNode", {"outcome": SUCCESS})},
        ),
        make_node("a", "MessageNode"),
        make_node("p", "PageNode", nodes=[{"_id": "inner", "nodeType": "UsernameCollectorNode"}]),
        make_node("inner", "UsernameCollectorNode"),
    )

    result = await _service(platform, settings).delete_journey("A", DEEP)

    assert result.ok, result.errors
    assert platform.nodes.objects == {}
    assert result.status_of(ObjectKind.INNER_NODE, "inner") == DeletionStatus.DELETED
    assert result.status_of(ObjectKind.NODE, "p") == DeletionStatus.DELETED
    deletes = [oid for name, op, oid in platform.log if name == "nodes" and op == "delete"]
    assert deletes.index("inner") < deletes.index("p")
