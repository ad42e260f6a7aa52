"""
Slug assignment tests.

- Title normalisation to a lowercase ASCII hyphenated base
- Sequential suffixes on creation
- Timestamp suffix when an edited title collides with another post
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.db.repositories.post_repository import PostRepository
from app.domains.posts.entities import Post
from app.domains.posts.slugs import (
    FALLBACK_SLUG,
    SLUG_BASE_MAX_LENGTH,
    slug_for_new_title,
    slugify,
    unique_slug,
)


class TestSlugify:
    """Normalisation of titles."""

    def test_lowercases_and_hyphenates(self) -> None:
        assert slugify("Test Post") == "test-post"

    def test_collapses_non_alphanumeric_runs(self) -> None:
        assert slugify("Hello,   World!!  --  Again") == "hello-world-again"

    def test_strips_leading_and_trailing_separators(self) -> None:
        assert slugify("  ...Draft #1...  ") == "draft-1"

    def test_transliterates_accents(self) -> None:
        assert slugify("Crème Brûlée") == "creme-brulee"

    def test_empty_result_falls_back(self) -> None:
        assert slugify("!!!") == FALLBACK_SLUG
        assert slugify("Привет") == FALLBACK_SLUG
        assert slugify("") == FALLBACK_SLUG

    def test_expanding_characters_are_capped(self) -> None:
        # NFKD превращает один символ в несколько: "ⅷ" -> "viii"
        slug = slugify(Post.clean_title("ⅷ" * 500))

        assert len(slug) <= SLUG_BASE_MAX_LENGTH
        assert slug.startswith("viiiviii")

    def test_cap_does_not_leave_trailing_separator(self) -> None:
        slug = slugify("a" * 499 + " b")
        assert slug == "a" * 499


class TestUniqueSlug:
    """Sequential disambiguation against the store."""

    async def test_free_base_is_used(self, session) -> None:
        async with session.begin():
            slug = await unique_slug(PostRepository(session), "Fresh Title")
        assert slug == "fresh-title"

    async def test_counter_appended_on_collision(self, session, service, owner_id) -> None:
        await service.create_draft(owner_id, "Same Title", "a")
        await service.create_draft(owner_id, "Same Title", "b")

        async with session.begin():
            slug = await unique_slug(PostRepository(session), "Same Title")
        assert slug == "same-title-2"

    async def test_creation_assigns_sequential_slugs(self, service, owner_id) -> None:
        first = await service.create_draft(owner_id, "Launch Notes")
        second = await service.create_draft(owner_id, "Launch Notes")
        third = await service.create_draft(owner_id, "launch   notes!")

        assert [first.slug, second.slug, third.slug] == [
            "launch-notes",
            "launch-notes-1",
            "launch-notes-2",
        ]

    async def test_long_expanding_titles_fit_the_column(self, service, owner_id) -> None:
        first = await service.create_draft(owner_id, "ﬃ" * 500)
        second = await service.create_draft(owner_id, "ﬃ" * 500)

        assert len(first.slug) <= SLUG_BASE_MAX_LENGTH
        assert second.slug == f"{first.slug}-1"


class TestSlugOnTitleChange:
    """Edit path uses a high-entropy suffix instead of counting."""

    @pytest.fixture
    def now(self) -> datetime:
        return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    async def test_unchanged_base_keeps_slug(self, session, service, owner_id, now) -> None:
        post = await service.create_draft(owner_id, "Keep Me")
        async with session.begin():
            slug = await slug_for_new_title(PostRepository(session), post.id, post.slug, "Keep me!", now)
        assert slug == "keep-me"

    async def test_free_base_is_used(self, session, service, owner_id, now) -> None:
        post = await service.create_draft(owner_id, "Old Name")
        async with session.begin():
            slug = await slug_for_new_title(PostRepository(session), post.id, post.slug, "New Name", now)
        assert slug == "new-name"

    async def test_collision_with_other_post_gets_timestamp(self, session, service, owner_id, now) -> None:
        await service.create_draft(owner_id, "Taken")
        post = await service.create_draft(owner_id, "Mine")

        async with session.begin():
            slug = await slug_for_new_title(PostRepository(session), post.id, post.slug, "Taken", now)

        assert slug == f"taken-{int(now.timestamp() * 1000)}"

    async def test_timestamp_suffix_fits_the_column(self, session, service, owner_id, now) -> None:
        title = "ⅷ" * 500
        await service.create_draft(owner_id, title)
        post = await service.create_draft(owner_id, "Short")

        async with session.begin():
            slug = await slug_for_new_title(PostRepository(session), post.id, post.slug, title, now)

        assert slug.endswith(f"-{int(now.timestamp() * 1000)}")
        assert len(slug) <= 600

    async def test_own_slug_is_not_a_collision(self, session, service, owner_id, now) -> None:
        post = await service.create_draft(owner_id, "Alpha")
        async with session.begin():
            slug = await slug_for_new_title(PostRepository(session), post.id, "alpha-old", "Alpha", now)
        assert slug == "alpha"
