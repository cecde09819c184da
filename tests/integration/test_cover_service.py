# ABOUTME: Integration tests for CoverService against a real catalog, caches, and Pillow codec.
# ABOUTME: Covers resolution scenarios, user photo actions, rendering, coalescing, and persistence.

import asyncio

import pytest

from shelfnotes.covers.record import CoverRecord
from shelfnotes.covers.service import CoverSource
from shelfnotes.db.catalog import LibraryCatalog
from shelfnotes.db.mapping import BookRecord
from shelfnotes.metadata.types import BookMetadata
from tests.fixtures.harness import CoverHarness
from tests.fixtures.images import (
    GOOGLE_COVER,
    GOOGLE_COVER_Z2,
    OL_COVER,
    image_size,
    make_jpeg,
)


def _add_book(
    catalog: LibraryCatalog,
    candidates: list[str],
    title: str = "The Name of the Rose",
    **cover_fields,
) -> BookRecord:
    book_id = catalog.add_book(
        BookMetadata(title=title),
        cover=CoverRecord(candidate_urls=candidates, **cover_fields),
    )
    record = catalog.get_by_id(book_id)
    assert record is not None
    return record


class TestRefreshThumbnail:
    """Tests for CoverService.refresh_thumbnail."""

    def test_end_to_end_original_url_pinned(
        self, harness: CoverHarness, large_cover: bytes
    ) -> None:
        """The working original URL is pinned and the fallback is never requested."""
        harness.http.routes[GOOGLE_COVER] = large_cover
        record = _add_book(harness.catalog, [GOOGLE_COVER, OL_COVER])

        assert asyncio.run(harness.service.refresh_thumbnail(record)) is True

        assert record.cover.primary_cover_url == GOOGLE_COVER
        assert record.cover.candidate_urls == [GOOGLE_COVER, OL_COVER]
        assert max(image_size(record.cover.thumbnail)) <= 600
        assert harness.http.requests == [GOOGLE_COVER]

        stored = harness.catalog.get_by_id(record.id)
        assert stored is not None
        assert stored.cover == record.cover

    def test_upgraded_form_pins_candidate(self, harness: CoverHarness) -> None:
        """When only the upgraded URL works, the original candidate is pinned."""
        harness.http.routes[GOOGLE_COVER_Z2] = make_jpeg(500, 750)
        harness.http.routes[OL_COVER] = make_jpeg(800, 1200)
        record = _add_book(
            harness.catalog, [OL_COVER, GOOGLE_COVER], primary_cover_url=GOOGLE_COVER
        )

        assert asyncio.run(harness.service.refresh_thumbnail(record)) is True
        assert record.cover.primary_cover_url == GOOGLE_COVER
        assert record.cover.candidate_urls[0] == GOOGLE_COVER
        assert harness.http.requests == [GOOGLE_COVER, GOOGLE_COVER_Z2]

    def test_exhaustion_leaves_record_untouched(self, harness: CoverHarness) -> None:
        """When nothing resolves, refresh returns False and nothing is stored."""
        record = _add_book(harness.catalog, [GOOGLE_COVER, OL_COVER])

        assert asyncio.run(harness.service.refresh_thumbnail(record)) is False
        assert record.cover.thumbnail is None
        assert record.cover.primary_cover_url is None
        assert harness.http.requests == [GOOGLE_COVER, GOOGLE_COVER_Z2, OL_COVER]

    def test_good_thumbnail_needs_no_network(
        self, harness: CoverHarness, large_cover: bytes
    ) -> None:
        """A book that already has a good thumbnail is left alone."""
        record = _add_book(harness.catalog, [OL_COVER], thumbnail=large_cover)

        assert asyncio.run(harness.service.refresh_thumbnail(record)) is True
        assert harness.http.requests == []
        assert record.cover.thumbnail == large_cover

    def test_low_res_thumbnail_replaced(
        self, harness: CoverHarness, small_cover: bytes, large_cover: bytes
    ) -> None:
        """A low-res thumbnail triggers a fresh resolution."""
        harness.http.routes[OL_COVER] = large_cover
        record = _add_book(harness.catalog, [OL_COVER], thumbnail=small_cover)

        assert harness.service.needs_refresh(record)
        assert asyncio.run(harness.service.refresh_thumbnail(record)) is True
        assert image_size(record.cover.thumbnail) == (400, 600)
        assert not harness.service.needs_refresh(record)

    def test_resolved_url_tried_first(self, harness: CoverHarness) -> None:
        """A freshly resolved URL leads the candidate pool."""
        fresh = "https://covers.example.com/fresh.jpg"
        harness.http.routes[fresh] = make_jpeg(600, 900)
        harness.http.routes[OL_COVER] = make_jpeg(800, 1200)
        record = _add_book(harness.catalog, [OL_COVER])

        assert asyncio.run(harness.service.refresh_thumbnail(record, resolved_url=fresh))
        assert harness.http.requests == [fresh]
        assert record.cover.primary_cover_url == fresh

    def test_user_photo_is_first_source(self, harness: CoverHarness) -> None:
        """A stored user photo yields the thumbnail without any network request."""
        harness.http.routes[OL_COVER] = make_jpeg(800, 1200)
        filename = harness.store.save(make_jpeg(900, 900))
        record = _add_book(harness.catalog, [OL_COVER], user_cover_file=filename)

        assert asyncio.run(harness.service.refresh_thumbnail(record)) is True
        assert image_size(record.cover.thumbnail) == (600, 600)
        assert harness.http.requests == []

    def test_missing_user_photo_falls_through(self, harness: CoverHarness) -> None:
        """A dangling user photo reference falls back to remote candidates."""
        harness.http.routes[OL_COVER] = make_jpeg(800, 1200)
        record = _add_book(harness.catalog, [OL_COVER], user_cover_file="gone.jpg")

        assert asyncio.run(harness.service.refresh_thumbnail(record)) is True
        assert harness.http.requests == [OL_COVER]

    def test_concurrent_refreshes_coalesce(self, harness: CoverHarness) -> None:
        """Two concurrent refreshes of one book share a single resolution."""
        harness.http.routes[OL_COVER] = make_jpeg(800, 1200)
        first = _add_book(harness.catalog, [GOOGLE_COVER, OL_COVER])
        second = harness.catalog.get_by_id(first.id)
        assert second is not None

        async def both() -> list[bool]:
            return list(
                await asyncio.gather(
                    harness.service.refresh_thumbnail(first),
                    harness.service.refresh_thumbnail(second),
                )
            )

        assert asyncio.run(both()) == [True, True]
        assert harness.http.requests == [GOOGLE_COVER, GOOGLE_COVER_Z2, OL_COVER]
        assert second.cover == first.cover
        assert second.cover is not first.cover
        assert not harness.service.is_refreshing(first.id)

    def test_save_failure_keeps_in_memory_state(
        self, harness: CoverHarness, large_cover: bytes, library
    ) -> None:
        """If the catalog cannot be written, the resolved cover is still returned."""
        harness.http.routes[OL_COVER] = large_cover
        record = _add_book(harness.catalog, [OL_COVER])
        library.close()

        assert asyncio.run(harness.service.refresh_thumbnail(record)) is True
        assert record.cover.has_thumbnail
        assert record.cover.primary_cover_url == OL_COVER


class TestResolveDisplay:
    """Tests for CoverService.resolve_display."""

    def test_display_zoom_and_pinning(self, harness: CoverHarness) -> None:
        """Display resolution tries the original, then zoom=3, and pins the candidate."""
        zoom3 = GOOGLE_COVER.replace("zoom=1", "zoom=3")
        harness.http.routes[zoom3] = make_jpeg(1000, 1500)
        record = _add_book(
            harness.catalog, [OL_COVER, GOOGLE_COVER], primary_cover_url=GOOGLE_COVER
        )

        resolved = asyncio.run(harness.service.resolve_display(record))

        assert resolved is not None
        assert resolved.url == zoom3
        assert image_size(resolved.image) == (1000, 1500)
        assert harness.http.requests == [GOOGLE_COVER, zoom3]
        assert record.cover.candidate_urls[0] == GOOGLE_COVER
        assert image_size(record.cover.thumbnail) == (400, 600)

    def test_display_keeps_good_thumbnail(
        self, harness: CoverHarness, large_cover: bytes
    ) -> None:
        """A good existing thumbnail is not overwritten by display resolution."""
        harness.http.routes[OL_COVER] = make_jpeg(1000, 1500)
        record = _add_book(harness.catalog, [OL_COVER], thumbnail=large_cover)

        assert asyncio.run(harness.service.resolve_display(record)) is not None
        assert record.cover.thumbnail == large_cover

    def test_display_exhaustion(self, harness: CoverHarness) -> None:
        """No working candidate gives None."""
        record = _add_book(harness.catalog, [OL_COVER])
        assert asyncio.run(harness.service.resolve_display(record)) is None


class TestUserPhoto:
    """Tests for user photo upload and removal."""

    def test_apply_user_photo(self, harness: CoverHarness) -> None:
        """The photo is stored full size, thumbnailed, and the remote pin is cleared."""
        record = _add_book(harness.catalog, [OL_COVER], primary_cover_url=OL_COVER)

        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(1200, 1600)))

        filename = record.cover.user_cover_file
        assert filename is not None and filename.endswith(".jpg")
        stored = harness.store.read(filename)
        assert stored is not None
        assert image_size(stored) == (1200, 1600)
        assert image_size(record.cover.thumbnail) == (450, 600)
        assert record.cover.primary_cover_url is None

        persisted = harness.catalog.get_by_id(record.id)
        assert persisted is not None
        assert persisted.cover.user_cover_file == filename

    def test_photo_orientation_normalized(self, harness: CoverHarness) -> None:
        """A rotated phone photo is stored upright."""
        record = _add_book(harness.catalog, [])
        asyncio.run(
            harness.service.apply_user_photo(record, make_jpeg(800, 400, orientation=6))
        )
        stored = harness.store.read(record.cover.user_cover_file)
        assert stored is not None
        assert image_size(stored) == (400, 800)

    def test_replacing_photo_deletes_old_file(self, harness: CoverHarness) -> None:
        """A second photo replaces the first file."""
        record = _add_book(harness.catalog, [])
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(500, 700)))
        old = record.cover.user_cover_file
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(600, 800)))

        assert record.cover.user_cover_file != old
        assert harness.store.read(old) is None

    def test_undecodable_photo_kept_raw(self, harness: CoverHarness) -> None:
        """Bytes that cannot be decoded are stored as-is with no thumbnail."""
        record = _add_book(harness.catalog, [])
        asyncio.run(harness.service.apply_user_photo(record, b"not an image"))

        assert harness.store.read(record.cover.user_cover_file) == b"not an image"
        assert record.cover.thumbnail is None

    def test_remove_user_photo(self, harness: CoverHarness) -> None:
        """Removing the photo deletes the file and its derived thumbnail."""
        record = _add_book(harness.catalog, [])
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(500, 700)))
        filename = record.cover.user_cover_file

        asyncio.run(harness.service.remove_user_photo(record))

        assert record.cover.user_cover_file is None
        assert record.cover.thumbnail is None
        assert harness.store.read(filename) is None


class TestApplyRemoteCover:
    """Tests for CoverService.apply_remote_cover."""

    def test_mutual_exclusivity(self, harness: CoverHarness) -> None:
        """Choosing a remote cover deletes the user photo and thumbnails the remote image."""
        remote = "https://covers.example.com/chosen.jpg"
        harness.http.routes[remote] = make_jpeg(800, 1200)
        record = _add_book(harness.catalog, [OL_COVER])
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(900, 900)))
        photo = record.cover.user_cover_file
        assert photo is not None

        assert asyncio.run(harness.service.apply_remote_cover(record, remote)) is True

        assert record.cover.user_cover_file is None
        assert harness.store.read(photo) is None
        assert not (harness.store.folder / photo).exists()
        assert image_size(record.cover.thumbnail) == (400, 600)
        assert record.cover.primary_cover_url == remote
        assert record.cover.candidate_urls[0] == remote

        persisted = harness.catalog.get_by_id(record.id)
        assert persisted is not None
        assert persisted.cover.user_cover_file is None
        assert persisted.cover.thumbnail == record.cover.thumbnail

    def test_http_url_normalized(self, harness: CoverHarness) -> None:
        """A plain http URL is pinned in its https form."""
        harness.http.routes["https://covers.example.com/a.jpg"] = make_jpeg(500, 700)
        record = _add_book(harness.catalog, [])
        assert asyncio.run(
            harness.service.apply_remote_cover(record, "http://covers.example.com/a.jpg")
        )
        assert record.cover.primary_cover_url == "https://covers.example.com/a.jpg"

    def test_dead_url_clears_thumbnail(self, harness: CoverHarness, large_cover: bytes) -> None:
        """A URL that cannot be thumbnailed still gets pinned, with no thumbnail."""
        record = _add_book(harness.catalog, [], thumbnail=large_cover)
        dead = "https://covers.example.com/dead.jpg"

        assert asyncio.run(harness.service.apply_remote_cover(record, dead)) is False
        assert record.cover.primary_cover_url == dead
        assert record.cover.thumbnail is None

    @pytest.mark.parametrize("url", ["", "   ", "file:///tmp/cover.jpg"])
    def test_rejects_non_remote_urls(self, harness: CoverHarness, url: str) -> None:
        """Blank and local file URLs are contract violations."""
        record = _add_book(harness.catalog, [])
        with pytest.raises(ValueError):
            asyncio.run(harness.service.apply_remote_cover(record, url))


class TestRender:
    """Tests for CoverService.render."""

    def test_placeholder_without_loop(self, harness: CoverHarness) -> None:
        """No thumbnail renders a placeholder; outside a loop nothing is scheduled."""
        record = _add_book(harness.catalog, [OL_COVER])
        rendered = harness.service.render(record, 60)
        assert rendered.source is CoverSource.PLACEHOLDER
        assert rendered.data is None
        assert rendered.refreshing is False

    def test_thumbnail_on_small_surface(self, harness: CoverHarness) -> None:
        """Small surfaces use the synced thumbnail even when a photo exists."""
        record = _add_book(harness.catalog, [])
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(900, 1200)))

        rendered = harness.service.render(record, 60)
        assert rendered.source is CoverSource.THUMBNAIL
        assert rendered.data == record.cover.thumbnail

    def test_user_photo_on_large_surface(self, harness: CoverHarness) -> None:
        """Large surfaces prefer the full-resolution user photo."""
        record = _add_book(harness.catalog, [])
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(900, 1200)))

        rendered = harness.service.render(record, 240)
        assert rendered.source is CoverSource.USER_PHOTO
        assert image_size(rendered.data) == (900, 1200)

    def test_low_res_thumbnail_shown_while_refreshing(
        self, harness: CoverHarness, small_cover: bytes, large_cover: bytes
    ) -> None:
        """A low-res thumbnail is drawn immediately and a refresh runs in the background."""
        harness.http.routes[OL_COVER] = large_cover
        record = _add_book(harness.catalog, [OL_COVER], thumbnail=small_cover)

        async def scenario():
            rendered = harness.service.render(record, 60)
            in_flight = harness.service.is_refreshing(record.id)
            refreshed = await harness.service.refresh_thumbnail(record)
            return rendered, in_flight, refreshed

        rendered, in_flight, refreshed = asyncio.run(scenario())

        assert rendered.data == small_cover
        assert rendered.refreshing is True
        assert in_flight is True
        assert refreshed is True
        assert harness.http.requests == [OL_COVER]
        assert image_size(record.cover.thumbnail) == (400, 600)

    def test_refresh_disabled(self, harness: CoverHarness) -> None:
        """refresh=False never schedules work."""
        record = _add_book(harness.catalog, [OL_COVER])

        async def scenario():
            return harness.service.render(record, 60, refresh=False)

        assert asyncio.run(scenario()).refreshing is False
        assert harness.http.requests == []


class TestDeleteBook:
    """Tests for CoverService.delete_book."""

    def test_deletes_row_and_photo(self, harness: CoverHarness) -> None:
        """Deleting a book removes its user photo file."""
        record = _add_book(harness.catalog, [])
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(500, 700)))
        filename = record.cover.user_cover_file

        harness.service.delete_book(record)

        assert harness.catalog.get_by_id(record.id) is None
        assert harness.store.read(filename) is None

    def test_unknown_book_keeps_photo(self, harness: CoverHarness) -> None:
        """When the row is already gone, delete raises and the photo file is left alone."""
        record = _add_book(harness.catalog, [])
        asyncio.run(harness.service.apply_user_photo(record, make_jpeg(500, 700)))
        filename = record.cover.user_cover_file
        harness.catalog.delete_book(record.id)

        with pytest.raises(ValueError, match="not found"):
            harness.service.delete_book(record)

        assert harness.store.read(filename) is not None
