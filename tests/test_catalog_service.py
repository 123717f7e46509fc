"""Tests for the catalog lifecycle: publish, update, delete, toggle, detail and listing."""

from uuid import uuid4

import pytest

from vidcatalog.errors import ErrorKind, ForbiddenError, InvalidArgumentError, NotFoundError, UploadFailedError
from vidcatalog.models.query import QuerySpec
from vidcatalog.services import catalog as catalog_module
from vidcatalog.services.catalog import round_duration
from vidcatalog.services.results import OperationResult


@pytest.fixture
def published(service, owner_id, video_path):
    return service.publish_video(
        title="T",
        description="D",
        thumbnail="u1",
        video_path=video_path,
        owner_id=str(owner_id),
    )


class TestRoundDuration:
    """Durations round half-up to whole seconds."""

    @pytest.mark.parametrize(
        "seconds, expected",
        [(61.7, 62), (61.2, 61), (0.5, 1), (2.5, 3), (0.0, 0), (None, 0), (float("nan"), 0), (float("inf"), 0)],
    )
    def test_round_duration(self, seconds, expected):
        assert round_duration(seconds) == expected


class TestPublish:
    """Creating records after a successful upload."""

    def test_publish_creates_published_record(self, published, owner_id, object_store):
        assert published.id is not None
        assert published.owner_id == owner_id
        assert published.video_file == object_store.next_url
        assert published.thumbnail == "u1"
        assert published.duration_seconds == 62
        assert published.is_published is True

    @pytest.mark.parametrize(
        "title, description, thumbnail",
        [(None, "D", "u1"), ("T", "", "u1"), ("T", "D", None), ("T", "D", "   ")],
    )
    def test_missing_required_field_creates_nothing(
        self, service, repository, object_store, owner_id, video_path, title, description, thumbnail
    ):
        with pytest.raises(InvalidArgumentError):
            service.publish_video(
                title=title,
                description=description,
                thumbnail=thumbnail,
                video_path=video_path,
                owner_id=str(owner_id),
            )

        assert repository.videos == {}
        assert object_store.uploads == []

    def test_missing_video_file_is_invalid(self, service, repository, owner_id):
        with pytest.raises(InvalidArgumentError, match="Video file is required"):
            service.publish_video(
                title="T", description="D", thumbnail="u1", video_path=None, owner_id=str(owner_id)
            )

        assert repository.videos == {}

    def test_upload_failure_leaves_no_record(self, service, repository, object_store, owner_id, video_path):
        object_store.fail_upload = True

        with pytest.raises(UploadFailedError):
            service.publish_video(
                title="T", description="D", thumbnail="u1", video_path=video_path, owner_id=str(owner_id)
            )

        assert repository.videos == {}
        assert ("insert", "T") not in repository.events

    def test_insert_failure_discards_uploaded_video(self, service, repository, object_store, owner_id, video_path):
        repository.fail_insert = True

        with pytest.raises(Exception):
            service.publish_video(
                title="T", description="D", thumbnail="u1", video_path=video_path, owner_id=str(owner_id)
            )

        assert object_store.deleted == [object_store.next_url]

    def test_record_build_failure_discards_uploaded_video(
        self, service, repository, object_store, owner_id, video_path, monkeypatch
    ):
        def broken_round(seconds):
            raise OverflowError("cannot convert float infinity to integer")

        monkeypatch.setattr(catalog_module, "round_duration", broken_round)

        with pytest.raises(OverflowError):
            service.publish_video(
                title="T", description="D", thumbnail="u1", video_path=video_path, owner_id=str(owner_id)
            )

        assert repository.videos == {}
        assert object_store.deleted == [object_store.next_url]

    def test_infinite_duration_is_stored_as_zero(self, service, object_store, owner_id, video_path):
        object_store.next_duration = float("inf")

        video = service.publish_video(
            title="T", description="D", thumbnail="u1", video_path=video_path, owner_id=str(owner_id)
        )

        assert video.duration_seconds == 0
        assert object_store.deleted == []

    def test_malformed_owner_is_invalid(self, service, video_path):
        with pytest.raises(InvalidArgumentError):
            service.publish_video(
                title="T", description="D", thumbnail="u1", video_path=video_path, owner_id="nobody"
            )


class TestUpdate:
    """Owner-only edits of title, description and thumbnail."""

    def test_non_owner_is_forbidden_and_record_unchanged(self, service, repository, published, other_owner_id):
        before = repository.videos[published.id]

        with pytest.raises(ForbiddenError):
            service.update_video(
                str(published.id),
                title="New",
                description="New D",
                thumbnail="u2",
                acting_owner_id=str(other_owner_id),
            )

        assert repository.videos[published.id] == before

    def test_same_thumbnail_makes_no_store_call(self, service, object_store, published, owner_id):
        updated = service.update_video(
            str(published.id), title="New", description="New D", thumbnail="u1", acting_owner_id=str(owner_id)
        )

        assert object_store.deleted == []
        assert updated.title == "New"
        assert updated.thumbnail == "u1"

    def test_new_thumbnail_deletes_old_before_update(self, service, object_store, events, published, owner_id):
        events.clear()

        updated = service.update_video(
            str(published.id), title="New", description="New D", thumbnail="u2", acting_owner_id=str(owner_id)
        )

        assert object_store.deleted == ["u1"]
        assert [event[0] for event in events] == ["delete_asset", "update"]
        assert updated.thumbnail == "u2"

    def test_no_thumbnail_keeps_existing(self, service, object_store, published, owner_id):
        updated = service.update_video(
            str(published.id), title="New", description="New D", acting_owner_id=str(owner_id)
        )

        assert updated.thumbnail == "u1"
        assert object_store.deleted == []

    def test_thumbnail_delete_failure_does_not_block_update(self, service, object_store, published, owner_id):
        object_store.fail_delete = True

        updated = service.update_video(
            str(published.id), title="New", description="New D", thumbnail="u2", acting_owner_id=str(owner_id)
        )

        assert updated.thumbnail == "u2"

    def test_video_file_and_owner_never_change(self, service, published, owner_id):
        updated = service.update_video(
            str(published.id), title="New", description="New D", thumbnail="u2", acting_owner_id=str(owner_id)
        )

        assert updated.video_file == published.video_file
        assert updated.owner_id == published.owner_id
        assert updated.duration_seconds == published.duration_seconds

    @pytest.mark.parametrize("title, description", [("", "D"), ("T", None)])
    def test_blank_text_is_invalid(self, service, published, owner_id, title, description):
        with pytest.raises(InvalidArgumentError):
            service.update_video(
                str(published.id), title=title, description=description, acting_owner_id=str(owner_id)
            )

    def test_missing_record_is_not_found(self, service, owner_id):
        with pytest.raises(NotFoundError):
            service.update_video(str(uuid4()), title="T", description="D", acting_owner_id=str(owner_id))

    def test_malformed_id_is_invalid(self, service, owner_id):
        with pytest.raises(InvalidArgumentError, match="Invalid Video ID"):
            service.update_video("abc", title="T", description="D", acting_owner_id=str(owner_id))

    def test_record_deleted_before_write_is_not_found(self, service, repository, published, owner_id):
        repository.vanish_after_find = True

        result = OperationResult.capture(
            service.update_video, str(published.id), title="T", description="D", acting_owner_id=str(owner_id)
        )

        assert result.ok is False
        assert result.error is ErrorKind.NOT_FOUND
        assert result.status_code == 404


class TestDelete:
    """Record deletion first, asset cleanup second."""

    def test_delete_removes_record_then_assets(self, service, object_store, events, published, owner_id):
        events.clear()

        service.delete_video(str(published.id), acting_owner_id=str(owner_id))

        assert [event[0] for event in events] == ["delete_record", "delete_asset", "delete_asset"]
        assert object_store.deleted == [published.video_file, "u1"]
        with pytest.raises(NotFoundError):
            service.get_video_detail(str(published.id))

    def test_asset_failures_do_not_resurrect_record(self, service, object_store, published, owner_id):
        object_store.fail_delete = True

        service.delete_video(str(published.id), acting_owner_id=str(owner_id))

        with pytest.raises(NotFoundError):
            service.get_video_detail(str(published.id))

    def test_non_owner_is_forbidden(self, service, repository, object_store, published, other_owner_id):
        with pytest.raises(ForbiddenError):
            service.delete_video(str(published.id), acting_owner_id=str(other_owner_id))

        assert published.id in repository.videos
        assert object_store.deleted == []

    def test_missing_record_is_not_found(self, service, owner_id):
        with pytest.raises(NotFoundError):
            service.delete_video(str(uuid4()), acting_owner_id=str(owner_id))


class TestTogglePublish:
    """Visibility flips."""

    def test_two_toggles_restore_original(self, service, published, owner_id):
        first = service.toggle_publish(str(published.id), acting_owner_id=str(owner_id))
        second = service.toggle_publish(str(published.id), acting_owner_id=str(owner_id))

        assert first.is_published is False
        assert second.is_published is True

    def test_toggle_only_touches_is_published(self, service, repository, events, published, owner_id):
        events.clear()

        service.toggle_publish(str(published.id), acting_owner_id=str(owner_id))

        assert events == [("update", {"is_published": False})]

    def test_toggle_tolerates_legacy_blank_fields(self, service, repository, published, owner_id):
        repository.videos[published.id] = published.model_copy(update={"description": ""})

        status = service.toggle_publish(str(published.id), acting_owner_id=str(owner_id))

        assert status.is_published is False

    def test_non_owner_is_forbidden(self, service, published, other_owner_id):
        with pytest.raises(ForbiddenError):
            service.toggle_publish(str(published.id), acting_owner_id=str(other_owner_id))

    def test_malformed_principal_is_forbidden(self, service, published):
        with pytest.raises(ForbiddenError):
            service.toggle_publish(str(published.id), acting_owner_id="anonymous")

    def test_record_deleted_before_write_is_not_found(self, service, repository, published, owner_id):
        repository.vanish_after_find = True

        with pytest.raises(NotFoundError, match="Video not found"):
            service.toggle_publish(str(published.id), acting_owner_id=str(owner_id))


class TestDetail:
    """Public detail reads."""

    def test_detail_embeds_owner(self, service, published):
        detail = service.get_video_detail(str(published.id))

        assert detail.id == published.id
        assert detail.owner_details.username == "owner"

    def test_detail_ignores_publish_state(self, service, published, owner_id):
        service.toggle_publish(str(published.id), acting_owner_id=str(owner_id))

        assert service.get_video_detail(str(published.id)).is_published is False

    def test_malformed_id_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.get_video_detail("not-a-uuid")

    def test_unresolvable_owner_is_not_found(self, service, repository, published, owner_id):
        del repository.users[owner_id]

        with pytest.raises(NotFoundError):
            service.get_video_detail(str(published.id))


class TestListing:
    """Listing through the query builder and repository."""

    def _publish(self, service, owner_id, video_path, title, description="D"):
        video_path.write_bytes(b"data")
        return service.publish_video(
            title=title, description=description, thumbnail="u", video_path=video_path, owner_id=str(owner_id)
        )

    def test_empty_catalog_returns_empty_page(self, service):
        page = service.list_videos(QuerySpec())

        assert page.items == []
        assert page.total_count == 0

    def test_sort_by_title_descending(self, service, owner_id, video_path):
        for title in ("b", "c", "a"):
            self._publish(service, owner_id, video_path, title)

        page = service.list_videos(QuerySpec(sort_field="title", sort_direction="desc"))

        assert [video.title for video in page.items] == ["c", "b", "a"]

    def test_default_sort_is_newest_first(self, service, owner_id, video_path):
        for title in ("first", "second", "third"):
            self._publish(service, owner_id, video_path, title)

        page = service.list_videos(QuerySpec())

        assert [video.title for video in page.items] == ["third", "second", "first"]

    def test_text_query_matches_title_or_description(self, service, owner_id, video_path):
        self._publish(service, owner_id, video_path, "Funny CATS")
        self._publish(service, owner_id, video_path, "Dogs", description="a cat appears")
        self._publish(service, owner_id, video_path, "Birds")

        page = service.list_videos(QuerySpec(text_query="cat"))

        assert sorted(video.title for video in page.items) == ["Dogs", "Funny CATS"]

    def test_pagination(self, service, owner_id, video_path):
        for index in range(5):
            self._publish(service, owner_id, video_path, f"v{index}")

        page = service.list_videos(QuerySpec(page=2, page_size=2))

        assert [video.title for video in page.items] == ["v2", "v1"]
        assert page.total_count == 5
        assert page.page_info.total_pages == 3
        assert page.page_info.prev_page == 1
        assert page.page_info.next_page == 3

    def test_malformed_owner_is_invalid(self, service):
        with pytest.raises(InvalidArgumentError):
            service.list_videos(QuerySpec(owner_id="123"))


def test_publish_toggle_list_round_trip(service, owner_id, video_path, object_store):
    """Publishing, hiding and re-showing a video is reflected in the owner's listing."""
    object_store.next_url = "v1"
    object_store.next_duration = 61.7

    video = service.publish_video(
        title="T", description="D", thumbnail="u1", video_path=video_path, owner_id=str(owner_id)
    )
    assert video.duration_seconds == 62
    assert video.is_published is True

    assert service.toggle_publish(str(video.id), acting_owner_id=str(owner_id)).is_published is False
    assert service.list_videos(QuerySpec(owner_id=str(owner_id))).items == []

    assert service.toggle_publish(str(video.id), acting_owner_id=str(owner_id)).is_published is True
    page = service.list_videos(QuerySpec(owner_id=str(owner_id)))
    assert [item.id for item in page.items] == [video.id]
    assert page.items[0].video_file == "v1"
