"""
Workspace controller over a real (SQLite) document store.
- load never writes; mutations before load are refused
- each mutation saves only its own category
- storage failures become warnings
"""
import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from studio.schemas.brand import Brand
from studio.schemas.influencer import Influencer
from studio.schemas.plan import QuarterlyPlan
from studio.schemas.post import ContentType, Post, PostStatus
from studio.schemas.strategy import StrategyCard, StrategyType
from studio.services.persona_service import VisualIdentityLocked, lock_visual_identity
from studio.services.workspace_service import LOAD_WARNING, SAVE_WARNING, Workspace, WorkspaceNotReady
from studio.storage import DocumentCategory, DocumentStoreError, document_key, document_prefix


def make_influencer() -> Influencer:
    return Influencer(id="inf1", name="Nova", handle="@nova")


async def loaded_workspace(document_store, influencer=None, **kwargs) -> Workspace:
    return await Workspace(influencer or make_influencer(), document_store, **kwargs).load()


@pytest.mark.asyncio
async def test_first_load_uses_baseline_and_saves_nothing(document_store) -> None:
    ws = await loaded_workspace(document_store)
    assert ws.loading is False
    assert ws.persona.name == "Nova"
    assert ws.posts == [] and ws.plans == [] and ws.brands == [] and ws.strategy_cards == []
    assert ws.warning is None
    assert await document_store.keys() == []


@pytest.mark.asyncio
async def test_mutation_before_load_is_refused(document_store) -> None:
    ws = Workspace(make_influencer(), document_store)
    with pytest.raises(WorkspaceNotReady):
        await ws.add_post(Post(caption="early"))
    assert await document_store.keys() == []


@pytest.mark.asyncio
async def test_add_post_prepends_and_saves_only_posts(document_store) -> None:
    ws = await loaded_workspace(document_store)
    first = Post(caption="first")
    second = Post(caption="second")
    await ws.add_post(first)
    await ws.add_post(second)

    assert [p.id for p in ws.posts] == [second.id, first.id]
    assert await document_store.keys() == [document_key("inf1", DocumentCategory.POSTS)]
    saved = await document_store.load(document_key("inf1", DocumentCategory.POSTS))
    assert [row["id"] for row in saved] == [second.id, first.id]
    assert saved[0]["createdAt"] == second.created_at


@pytest.mark.asyncio
async def test_repeated_mutations_are_idempotent(document_store) -> None:
    ws = await loaded_workspace(document_store)
    post = Post(caption="once")
    await ws.add_post(post)
    await ws.add_post(post)
    assert len(ws.posts) == 1

    edited = post.model_copy(update={"caption": "edited"})
    await ws.update_post(edited)
    await ws.update_post(edited)
    assert [p.caption for p in ws.posts] == ["edited"]

    await ws.delete_post(post.id)
    await ws.delete_post(post.id)
    assert ws.posts == []


@pytest.mark.asyncio
async def test_update_unknown_id_leaves_list_unchanged(document_store) -> None:
    ws = await loaded_workspace(document_store)
    await ws.add_brand(Brand(name="Acme"))
    before = list(ws.brands)
    await ws.update_brand(Brand(id="nope", name="Ghost"))
    assert ws.brands == before


@pytest.mark.asyncio
async def test_state_survives_reload(document_store) -> None:
    ws = await loaded_workspace(document_store)
    await ws.add_plan(QuarterlyPlan(quarter="Q1 2025"))
    await ws.add_brand(Brand(name="Acme"))
    await ws.add_strategy_card(StrategyCard(visual_idea="Beach sunrise"))
    await ws.update_persona(ws.persona.model_copy(update={"base_city": "Goa"}))

    reloaded = await loaded_workspace(document_store)
    assert reloaded.plans[0].quarter == "Q1 2025"
    assert reloaded.brands[0].name == "Acme"
    assert reloaded.strategy_cards[0].visual_idea == "Beach sunrise"
    assert reloaded.persona.base_city == "Goa"


@pytest.mark.asyncio
async def test_saved_partial_persona_is_merged(document_store) -> None:
    await document_store.save(document_key("inf1", DocumentCategory.PERSONA), {"name": "Nova", "age": 27})
    ws = await loaded_workspace(document_store)
    assert ws.persona.age == 27
    assert ws.persona.donts  # filled from baseline


@pytest.mark.asyncio
async def test_malformed_documents_load_as_empty(document_store) -> None:
    await document_store.save(document_key("inf1", DocumentCategory.POSTS), "garbage")
    await document_store.save(
        document_key("inf1", DocumentCategory.BRANDS), [{"name": "Acme"}, {"industry": "no name"}]
    )
    ws = await loaded_workspace(document_store)
    assert ws.posts == []
    assert [b.name for b in ws.brands] == ["Acme"]


@pytest.mark.asyncio
async def test_load_failure_sets_warning_and_uses_defaults(document_store) -> None:
    err = OperationalError("SELECT", {}, Exception("unavailable"))
    with patch.object(document_store, "session_factory", side_effect=err):
        ws = await loaded_workspace(document_store)
    assert ws.warning == LOAD_WARNING
    assert ws.loading is False
    assert ws.persona.name == "Nova"
    ws.dismiss_warning()
    assert ws.warning is None


@pytest.mark.asyncio
async def test_concurrent_loads_report_only_their_own_failures(document_store) -> None:
    await document_store.save(document_key("B", DocumentCategory.POSTS), [{"caption": "from b"}])
    real_fetch = document_store.fetch

    async def fetch_failing_for_a(key: str):
        if key.startswith(document_prefix("A")):
            await asyncio.sleep(0)
            raise DocumentStoreError(f"unreadable {key}")
        return await real_fetch(key)

    a = Workspace(Influencer(id="A", name="A"), document_store)
    b = Workspace(Influencer(id="B", name="B"), document_store)
    with patch.object(document_store, "fetch", side_effect=fetch_failing_for_a):
        await asyncio.gather(a.load(), b.load())

    assert a.warning == LOAD_WARNING
    assert a.posts == []
    assert b.warning is None
    assert [p.caption for p in b.posts] == ["from b"]

    with patch.object(document_store, "fetch", side_effect=fetch_failing_for_a):
        await a.load()
        await b.load()
    assert a.warning == LOAD_WARNING
    assert b.warning is None


@pytest.mark.asyncio
async def test_save_failure_sets_warning_but_keeps_state(document_store) -> None:
    ws = await loaded_workspace(document_store)
    err = OperationalError("INSERT", {}, Exception("disk full"))
    with patch.object(document_store, "session_factory", side_effect=err):
        posts = await ws.add_post(Post(caption="kept in memory"))
    assert ws.warning == SAVE_WARNING
    assert posts[0].caption == "kept in memory"


@pytest.mark.asyncio
async def test_persona_rename_propagates_to_influencer(document_store) -> None:
    renamed = []
    ws = await loaded_workspace(document_store, on_influencer_update=renamed.append)
    await ws.update_persona(ws.persona.model_copy(update={"name": "Nova Prime"}))
    assert ws.influencer.name == "Nova Prime"
    assert [inf.name for inf in renamed] == ["Nova Prime"]

    await ws.update_persona(ws.persona.model_copy(update={"age": 30}))
    assert len(renamed) == 1


@pytest.mark.asyncio
async def test_locked_identity_cannot_be_replaced(document_store) -> None:
    ws = await loaded_workspace(document_store)
    await ws.update_persona(lock_visual_identity(ws.persona, "oval face"))
    with pytest.raises(VisualIdentityLocked):
        await ws.update_persona(ws.persona.model_copy(update={"face_descriptor_block": "different"}))
    assert ws.persona.face_descriptor_block == "oval face"


@pytest.mark.asyncio
async def test_push_strategy_card_creates_planned_post(document_store) -> None:
    ws = await loaded_workspace(document_store)
    card = StrategyCard(
        type=StrategyType.BRAND_STORY,
        visual_idea="Unboxing",
        scene="Studio",
        mood="Playful",
        caption_direction="Tease the launch",
        suggested_date="2025-03-01",
        brand_id="b1",
        brand_name="Acme",
    )
    await ws.add_strategy_card(card)

    post = await ws.push_strategy_card(card.id)

    assert post.status == PostStatus.PLANNED
    assert post.type == ContentType.STORY
    assert post.strategy_item_id == card.id
    assert post.scheduled_date == "2025-03-01"
    assert post.is_sponsored is True
    assert ws.posts[0].id == post.id
    assert ws.strategy_cards[0].is_pushed is True

    reloaded = await loaded_workspace(document_store)
    assert reloaded.posts[0].id == post.id
    assert reloaded.strategy_cards[0].is_pushed is True

    with pytest.raises(ValueError, match="strategy_card_already_pushed"):
        await ws.push_strategy_card(card.id)
    with pytest.raises(ValueError, match="strategy_card_not_found"):
        await ws.push_strategy_card("missing")


@pytest.mark.asyncio
async def test_documents_are_namespaced_per_influencer(document_store) -> None:
    a = await loaded_workspace(document_store, Influencer(id="a", name="A"))
    b = await loaded_workspace(document_store, Influencer(id="b", name="B"))
    await a.add_post(Post(caption="from a"))
    await b.add_post(Post(caption="from b"))
    assert await document_store.keys(document_prefix("a")) == [document_key("a", DocumentCategory.POSTS)]
    assert (await loaded_workspace(document_store, Influencer(id="b", name="B"))).posts[0].caption == "from b"
