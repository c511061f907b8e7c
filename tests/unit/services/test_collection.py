"""
Unit Tests for the Notes Collection Service.

Debounce tests use the production 300 ms quiet period.
"""

import asyncio

import pytest

from notes_app.core.exceptions import ExternalServiceError
from notes_app.services.collection import CollectionService

DEBOUNCE = 0.3


@pytest.fixture
def collection(gateway, presenter) -> CollectionService:
    service = CollectionService(gateway, presenter, debounce_seconds=DEBOUNCE)
    yield service
    service.close()


@pytest.fixture
def seeded(gateway, alice, at):
    """Three notes for alice and one for another user."""
    return {
        "shopping": gateway.seed_note(alice.id, "Shopping list", updated_at=at(1)),
        "ideas": gateway.seed_note(alice.id, "Project ideas", updated_at=at(3)),
        "groceries": gateway.seed_note(alice.id, "GROCERIES for the week", updated_at=at(2)),
        "foreign": gateway.seed_note("user-bob", "Bob's groceries", updated_at=at(9)),
    }


class TestLoad:
    """Tests for ordering, filtering and owner scoping."""

    @pytest.mark.asyncio
    async def test_all_notes_newest_first(self, collection, alice, seeded):
        notes = await collection.load(alice.id, "")

        assert [n.id for n in notes] == [
            seeded["ideas"].id,
            seeded["groceries"].id,
            seeded["shopping"].id,
        ]
        assert collection.notes == notes

    @pytest.mark.asyncio
    async def test_title_filter_is_case_insensitive(self, collection, alice, seeded):
        notes = await collection.load(alice.id, "groc")

        assert [n.id for n in notes] == [seeded["groceries"].id]

    @pytest.mark.asyncio
    async def test_never_returns_other_owners_notes(self, collection, alice, seeded):
        notes = await collection.load(alice.id, "")

        assert all(n.owner_id == alice.id for n in notes)

    @pytest.mark.asyncio
    async def test_failure_yields_empty_list_silently(self, collection, gateway, presenter, alice, seeded):
        await collection.set_owner(alice.id)
        gateway.fail("list_notes", ExternalServiceError("offline"))

        notes = await collection.reload()

        assert notes == []
        assert collection.notes == []
        assert collection.loading is False
        assert presenter.messages == []

    @pytest.mark.asyncio
    async def test_loading_flag_published(self, collection, alice):
        flags = []
        collection.subscribe(lambda: flags.append(collection.loading))

        await collection.load(alice.id)

        assert flags[0] is True
        assert flags[-1] is False

    @pytest.mark.asyncio
    async def test_reload_without_owner_is_noop(self, collection, gateway):
        assert await collection.reload() == []
        assert gateway.calls_to("list_notes") == []

    @pytest.mark.asyncio
    async def test_result_for_previous_owner_is_discarded(self, collection, gateway, alice, seeded):
        await collection.set_owner(alice.id)
        release = asyncio.Event()
        original = gateway.list_notes

        async def slow_list(owner_id, title_substring=""):
            await release.wait()
            return await original(owner_id, title_substring)

        gateway.list_notes = slow_list
        pending = asyncio.create_task(collection.reload())
        await asyncio.sleep(0)
        collection.clear()
        release.set()

        assert await pending == []
        assert collection.notes == []

    @pytest.mark.asyncio
    async def test_loading_stays_set_until_last_overlapping_load_finishes(self, collection, gateway, alice, seeded):
        await collection.set_owner(alice.id)
        gates = [asyncio.Event(), asyncio.Event()]
        waiting = list(gates)
        original = gateway.list_notes

        async def gated_list(owner_id, title_substring=""):
            gate = waiting.pop(0)
            await gate.wait()
            return await original(owner_id, title_substring)

        gateway.list_notes = gated_list
        first = asyncio.create_task(collection.reload())
        await asyncio.sleep(0)
        second = asyncio.create_task(collection.reload())
        await asyncio.sleep(0)

        gates[0].set()
        await first
        assert collection.loading is True

        gates[1].set()
        await second
        assert collection.loading is False

    def test_find(self, collection, seeded):
        collection.notes = [seeded["ideas"], seeded["shopping"]]

        assert collection.find(seeded["shopping"].id) is seeded["shopping"]
        assert collection.find("missing") is None


class TestDebouncedSearch:
    """Tests for the debounced search-term reload."""

    @pytest.mark.asyncio
    async def test_rapid_terms_collapse_to_one_load_with_last_term(self, collection, gateway, alice, seeded):
        await collection.set_owner(alice.id)
        gateway.calls.clear()

        collection.set_search_term("g")
        await asyncio.sleep(0.1)
        collection.set_search_term("gr")
        await asyncio.sleep(0.1)
        collection.set_search_term("groc")
        await asyncio.sleep(DEBOUNCE + 0.2)

        assert gateway.calls_to("list_notes") == [(alice.id, "groc")]
        assert [n.id for n in collection.notes] == [seeded["groceries"].id]

    @pytest.mark.asyncio
    async def test_nothing_fires_before_quiet_period(self, collection, gateway, alice):
        await collection.set_owner(alice.id)
        gateway.calls.clear()

        collection.set_search_term("idea")
        await asyncio.sleep(DEBOUNCE / 3)

        assert gateway.calls_to("list_notes") == []
        assert collection.search_term == "idea"

    @pytest.mark.asyncio
    async def test_unchanged_term_schedules_nothing(self, collection, gateway, alice):
        await collection.set_owner(alice.id)
        gateway.calls.clear()

        collection.set_search_term("")
        await asyncio.sleep(DEBOUNCE + 0.1)

        assert gateway.calls_to("list_notes") == []

    @pytest.mark.asyncio
    async def test_no_owner_schedules_nothing(self, collection, gateway):
        collection.set_search_term("idea")
        await asyncio.sleep(DEBOUNCE + 0.1)

        assert gateway.calls_to("list_notes") == []

    @pytest.mark.asyncio
    async def test_close_cancels_pending_reload(self, collection, gateway, alice):
        await collection.set_owner(alice.id)
        gateway.calls.clear()

        collection.set_search_term("idea")
        collection.close()
        await asyncio.sleep(DEBOUNCE + 0.1)

        assert gateway.calls_to("list_notes") == []

    @pytest.mark.asyncio
    async def test_clear_cancels_pending_reload(self, collection, gateway, alice):
        await collection.set_owner(alice.id)
        gateway.calls.clear()

        collection.set_search_term("idea")
        collection.clear()
        await asyncio.sleep(DEBOUNCE + 0.1)

        assert gateway.calls_to("list_notes") == []
        assert collection.owner_id is None
