"""Unit tests for CollectionService."""

from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio

from dataplayground.domain.entities import AccessLevel, User
from dataplayground.domain.exceptions import (
    ConflictError,
    EntryValidationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from dataplayground.domain.services.collection_service import (
    CollectionService,
    parse_entry_index,
    parse_sort,
)
from dataplayground.infrastructure.persistence.models import CollectionModel
from dataplayground.infrastructure.persistence.repositories import UserRepository

TASK_FIELDS = [{"name": "Task", "type": "text"}, {"name": "Priority", "type": "rating"}]


async def _create_user(session, user_id: str, username: str, email: str) -> User:
    user = User(id=user_id, username=username, email=email, password_hash="not-a-real-hash")
    return await UserRepository(session).create(user)


@pytest_asyncio.fixture
async def service(db_session) -> CollectionService:
    await _create_user(db_session, "owner", "owner", "owner@example.com")
    await _create_user(db_session, "bob", "bob", "bob@example.com")
    await _create_user(db_session, "carol", "carol", "carol@example.com")
    return CollectionService(db_session)


class TestParseSort:
    def test_default(self):
        assert parse_sort(None) == ("createdAt", True)

    def test_direction_defaults_to_ascending(self):
        assert parse_sort("name") == ("name", False)

    def test_explicit(self):
        assert parse_sort("updatedAt:desc") == ("updatedAt", True)

    def test_empty_direction_is_ascending(self):
        assert parse_sort("name:") == ("name", False)

    @pytest.mark.parametrize("sort", ["size:asc", "name:sideways", ":asc"])
    def test_invalid(self, sort):
        with pytest.raises(ValidationError) as exc_info:
            parse_sort(sort)
        assert exc_info.value.errors[0].field == "sort"


class TestParseEntryIndex:
    @pytest.mark.parametrize("index", [0, 2, "1", "2"])
    def test_in_range(self, index):
        assert parse_entry_index(index, 3) == int(index)

    @pytest.mark.parametrize("index", [-1, 3, "-1", "3", "abc", "1.5", "--1", True])
    def test_out_of_range_or_malformed(self, index):
        with pytest.raises(NotFoundError):
            parse_entry_index(index, 3)


class TestCollectionCrud:
    @pytest.mark.asyncio
    async def test_create_and_get(self, service):
        collection = await service.create_collection("owner", " Tasks ", TASK_FIELDS)
        assert collection.name == "Tasks"

        result = await service.get_collection(collection.id, "owner")
        assert result.is_owner
        assert result.access_level is AccessLevel.ADMIN
        assert [f.name for f in result.collection.fields] == ["Task", "Priority"]

    @pytest.mark.asyncio
    async def test_create_rejects_duplicate_field_names(self, service):
        with pytest.raises(ConflictError):
            await service.create_collection(
                "owner", "Tasks", [{"name": "a", "type": "text"}, {"name": "A", "type": "text"}]
            )

    @pytest.mark.asyncio
    async def test_get_missing_collection(self, service):
        with pytest.raises(NotFoundError):
            await service.get_collection("missing", "owner")

    @pytest.mark.asyncio
    async def test_stranger_cannot_read(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        with pytest.raises(ForbiddenError):
            await service.get_collection(collection.id, "bob")

    @pytest.mark.asyncio
    async def test_update_keeps_entries(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        await service.add_entry(collection.id, "owner", {"Task": "$Ship", "Priority": 4})

        result = await service.update_collection(
            collection.id, "owner", "Renamed", [{"name": "Task", "type": "text"}]
        )
        assert result.collection.name == "Renamed"
        assert result.collection.entries == [{"Task": "$Ship", "Priority": 4}]

    @pytest.mark.asyncio
    async def test_admin_share_can_update_but_not_delete(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        await service.share_collection(collection.id, "owner", "bob@example.com", AccessLevel.ADMIN)

        await service.update_collection(collection.id, "bob", "Bob's", TASK_FIELDS)
        with pytest.raises(ForbiddenError):
            await service.delete_collection(collection.id, "bob")

        await service.delete_collection(collection.id, "owner")
        with pytest.raises(NotFoundError):
            await service.get_collection(collection.id, "owner")

    @pytest.mark.asyncio
    async def test_write_share_cannot_update_metadata(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        await service.share_collection(collection.id, "owner", "bob@example.com", AccessLevel.WRITE)
        with pytest.raises(ForbiddenError):
            await service.update_collection(collection.id, "bob", "Nope", TASK_FIELDS)

    @pytest.mark.asyncio
    async def test_delete_all_only_deletes_owned(self, service):
        await service.create_collection("owner", "One", TASK_FIELDS)
        await service.create_collection("owner", "Two", TASK_FIELDS)
        bobs = await service.create_collection("bob", "Bob's", TASK_FIELDS)

        assert await service.delete_all_collections("owner") == 2
        assert (await service.get_collection(bobs.id, "bob")).collection.name == "Bob's"


class TestListing:
    @pytest_asyncio.fixture
    async def populated(self, service):
        names = ["banana", "Apple", "cherry"]
        created = []
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, name in enumerate(names):
            collection = await service.create_collection("owner", name, TASK_FIELDS)
            model = await service.session.get(CollectionModel, collection.id)
            model.created_at = base + timedelta(days=i)
            model.updated_at = base + timedelta(days=10 - i)
            created.append(collection)
        return created

    @pytest.mark.asyncio
    async def test_default_sort_is_newest_first(self, service, populated):
        page = await service.list_collections("owner", "owner@example.com")
        assert [s.collection.name for s in page.items] == ["cherry", "Apple", "banana"]
        assert page.total == 3
        assert page.pages == 1
        assert not page.has_more

    @pytest.mark.asyncio
    async def test_sort_by_name_ignores_case(self, service, populated):
        page = await service.list_collections("owner", "owner@example.com", sort="name:asc")
        assert [s.collection.name for s in page.items] == ["Apple", "banana", "cherry"]

    @pytest.mark.asyncio
    async def test_search(self, service, populated):
        page = await service.list_collections("owner", "owner@example.com", search="AN")
        assert [s.collection.name for s in page.items] == ["banana"]

    @pytest.mark.asyncio
    async def test_pagination(self, service, populated):
        page = await service.list_collections("owner", "owner@example.com", page=2, limit=2)
        assert len(page.items) == 1
        assert page.pages == 2
        assert not page.has_more

        first = await service.list_collections("owner", "owner@example.com", page=1, limit=2)
        assert first.has_more

    @pytest.mark.asyncio
    async def test_invalid_page_and_limit(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.list_collections("owner", "owner@example.com", page=0, limit=1000)
        assert [e.field for e in exc_info.value.errors] == ["page", "limit"]

    @pytest.mark.asyncio
    async def test_includes_shared_collections(self, service, populated):
        await service.share_collection(
            populated[0].id, "owner", "bob@example.com", AccessLevel.WRITE
        )
        page = await service.list_collections("bob", "bob@example.com")
        assert len(page.items) == 1
        summary = page.items[0]
        assert not summary.is_owner
        assert summary.access_level is AccessLevel.WRITE

    @pytest.mark.asyncio
    async def test_empty_listing(self, service):
        page = await service.list_collections("carol", "carol@example.com")
        assert page.items == []
        assert page.total == 0
        assert page.pages == 0


class TestStats:
    @pytest.mark.asyncio
    async def test_counts(self, service):
        first = await service.create_collection("owner", "One", TASK_FIELDS)
        await service.create_collection("owner", "Two", TASK_FIELDS)
        await service.add_entry(first.id, "owner", {"Task": "a", "Priority": 1})
        await service.add_entry(first.id, "owner", {"Task": "b", "Priority": 2})
        await service.share_collection(first.id, "owner", "bob@example.com", AccessLevel.READ)

        stats = await service.get_stats("owner", "owner@example.com")
        assert stats.total_collections == 2
        assert stats.total_entries == 2
        assert stats.shared_with_me == 0
        assert stats.shared_by_me == 1

        bob_stats = await service.get_stats("bob", "bob@example.com")
        assert bob_stats.total_collections == 0
        assert bob_stats.shared_with_me == 1


class TestSharing:
    @pytest.mark.asyncio
    async def test_share_twice_replaces_tier(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        await service.share_collection(collection.id, "owner", "bob@example.com", AccessLevel.READ)
        await service.share_collection(collection.id, "owner", "BOB@example.com", AccessLevel.ADMIN)

        shares = await service.list_shares(collection.id, "owner")
        assert len(shares) == 1
        assert shares[0].access_level is AccessLevel.ADMIN
        assert shares[0].user_id == "bob"

    @pytest.mark.asyncio
    async def test_cannot_share_with_owner(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        with pytest.raises(ValidationError) as exc_info:
            await service.share_collection(
                collection.id, "owner", "Owner@Example.com", AccessLevel.READ
            )
        assert exc_info.value.errors[0].field == "email"

    @pytest.mark.asyncio
    async def test_unregistered_email_stays_pending(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        share = await service.share_collection(
            collection.id, "owner", "dave@example.com", AccessLevel.READ
        )
        assert share.user_id is None

        dave = await _create_user(service.session, "dave", "dave", "dave@example.com")
        assert await service.link_pending_shares(dave) == 1
        shares = await service.list_shares(collection.id, "owner")
        assert shares[0].user_id == "dave"
        assert await service.link_pending_shares(dave) == 0

    @pytest.mark.asyncio
    async def test_unshare(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        await service.share_collection(collection.id, "owner", "bob@example.com", AccessLevel.READ)

        await service.unshare_collection(collection.id, "owner", "bob@example.com")
        assert await service.list_shares(collection.id, "owner") == []
        with pytest.raises(ForbiddenError):
            await service.get_collection(collection.id, "bob")

    @pytest.mark.asyncio
    async def test_unshare_unknown_email(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        with pytest.raises(NotFoundError):
            await service.unshare_collection(collection.id, "owner", "nobody@example.com")

    @pytest.mark.asyncio
    async def test_sharing_needs_admin(self, service):
        collection = await service.create_collection("owner", "Tasks", TASK_FIELDS)
        await service.share_collection(collection.id, "owner", "bob@example.com", AccessLevel.WRITE)
        with pytest.raises(ForbiddenError):
            await service.share_collection(
                collection.id, "bob", "carol@example.com", AccessLevel.READ
            )


class TestEntries:
    @pytest_asyncio.fixture
    async def collection(self, service):
        return await service.create_collection("owner", "Tasks", TASK_FIELDS)

    @pytest.mark.asyncio
    async def test_add_returns_last_index(self, service, collection):
        index, entry = await service.add_entry(
            collection.id, "owner", {"Task": " $Ship ", "Priority": 4}
        )
        assert index == 0
        assert entry == {"Task": "$Ship", "Priority": 4}

        index, _ = await service.add_entry(collection.id, "owner", {"Task": "b", "Priority": 1})
        assert index == 1
        stored = (await service.get_collection(collection.id, "owner")).collection
        assert stored.entries[0] == {"Task": "$Ship", "Priority": 4}

    @pytest.mark.asyncio
    async def test_add_rejects_invalid_entry(self, service, collection):
        with pytest.raises(EntryValidationError) as exc_info:
            await service.add_entry(collection.id, "owner", {"Task": "Review"})
        assert [e.field for e in exc_info.value.errors] == ["Priority"]

    @pytest.mark.asyncio
    async def test_update_and_delete_bounds(self, service, collection):
        await service.add_entry(collection.id, "owner", {"Task": "a", "Priority": 1})
        for index in (-1, 1):
            with pytest.raises(NotFoundError):
                await service.update_entry(
                    collection.id, "owner", index, {"Task": "x", "Priority": 1}
                )
            with pytest.raises(NotFoundError):
                await service.delete_entry(collection.id, "owner", index)

    @pytest.mark.asyncio
    async def test_delete_shifts_later_entries(self, service, collection):
        for task in ("a", "b", "c"):
            await service.add_entry(collection.id, "owner", {"Task": task, "Priority": 1})

        await service.delete_entry(collection.id, "owner", "1")
        stored = (await service.get_collection(collection.id, "owner")).collection
        assert [e["Task"] for e in stored.entries] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_update_replaces_entry(self, service, collection):
        await service.add_entry(collection.id, "owner", {"Task": "a", "Priority": 1})
        entry = await service.update_entry(
            collection.id, "owner", 0, {"Task": "b", "Priority": 5}
        )
        assert entry == {"Task": "b", "Priority": 5}

    @pytest.mark.asyncio
    async def test_read_share_cannot_write(self, service, collection):
        await service.share_collection(collection.id, "owner", "bob@example.com", AccessLevel.READ)
        with pytest.raises(ForbiddenError):
            await service.add_entry(collection.id, "bob", {"Task": "a", "Priority": 1})

    @pytest.mark.asyncio
    async def test_write_share_can_write(self, service, collection):
        await service.share_collection(collection.id, "owner", "bob@example.com", AccessLevel.WRITE)
        index, _ = await service.add_entry(collection.id, "bob", {"Task": "a", "Priority": 1})
        assert index == 0

    @pytest.mark.asyncio
    async def test_date_values_survive_reload(self, service):
        collection = await service.create_collection(
            "owner", "Events", [{"name": "When", "type": "date"}]
        )
        await service.add_entry(collection.id, "owner", {"When": "2024-01-15"})
        stored = (await service.get_collection(collection.id, "owner")).collection
        assert stored.entries == [{"When": date(2024, 1, 15)}]
