"""Service tests for app.services.users against an in-memory SQLite database."""

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.security import hash_password
from app.models import Base, Post, User
from app.schemas.user import (
    RecipientAccepted,
    UserAccepted,
    UserCandidate,
    UserPatch,
    UserRejected,
    UserRejection,
)
from app.services import users
from app.services.users import UserPersistenceError


def _fake_hash(password: str) -> str:
    return f"hashed:{password}"


def _session() -> Session:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)()


def _settings(**kwargs: object) -> Settings:
    defaults = {"PASSWORD_MIN_LENGTH": 8, "SITE_URL": "https://blog.inkwell.test"}
    defaults.update(kwargs)
    return Settings(**defaults)


class _ServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = _session()
        self.settings = _settings()

    def tearDown(self) -> None:
        self.db.close()

    def _add(
        self,
        slug: str,
        name: str | None = None,
        role: str = "author",
        password: str = "hashed:secret123",
        **kwargs: object,
    ) -> User:
        user = User(
            slug=slug,
            name=name or slug.title(),
            email=f"{slug}@inkwell.blog",
            password=password,
            role=role,
            **kwargs,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def _post(self, slug: str, author: User, status: str = "published") -> Post:
        post = Post(slug=slug, title=slug.title(), content="", author=author.id, status=status)
        self.db.add(post)
        self.db.commit()
        return post

    def _create(self, **kwargs: object):
        fields = {
            "slug": "jdoe",
            "name": "Jane Doe",
            "email": "jane@x.com",
            "password": "12345678",
            "role": "editor",
        }
        fields.update(kwargs)
        return users.create(self.db, UserCandidate(**fields), self.settings, hash_password=_fake_hash)


class TestCreate(_ServiceTestCase):
    """create validates against stored state and inserts."""

    def test_inserts_normalized_user(self) -> None:
        result = self._create(slug="Jane Doe", twitter="@jane")
        self.assertIsInstance(result, UserAccepted)
        stored = users.get_one(self.db, "jane-doe")
        self.assertIsNotNone(stored)
        self.assertEqual(stored.role, "editor")
        self.assertEqual(stored.twitter, "jane")
        self.assertEqual(stored.bio, "")
        self.assertEqual(stored.password, "hashed:12345678")

    def test_duplicate_slug(self) -> None:
        self._add("jdoe")
        result = self._create()
        self.assertIsInstance(result, UserRejected)
        self.assertEqual(result.reason, UserRejection.ALREADY_EXISTS)

    def test_second_owner_rejected(self) -> None:
        self._add("boss", role="owner")
        result = self._create(role="owner")
        self.assertEqual(result.reason, UserRejection.CANNOT_CHANGE_OWNER)
        self.assertFalse(users.exists(self.db, "jdoe"))

    def test_min_length_from_settings(self) -> None:
        self.settings = _settings(PASSWORD_MIN_LENGTH=12)
        result = self._create(password="12345678")
        self.assertEqual(result.reason, UserRejection.PASSWORD_TOO_SHORT)

    def test_storage_failure_raises(self) -> None:
        with patch.object(self.db, "commit", side_effect=SQLAlchemyError("boom")):
            with self.assertRaises(UserPersistenceError):
                self._create()
        self.assertFalse(users.exists(self.db, "jdoe"))

    def test_configured_fragment_is_reserved(self) -> None:
        self.settings = _settings(FRAG_AUTHOR="writers")
        result = self._create(slug="writers")
        self.assertIsInstance(result, UserRejected)
        self.assertEqual(result.reason, UserRejection.INVALID_SLUG)
        self.assertFalse(users.exists(self.db, "writers"))

    def test_default_fragment_free_when_reconfigured(self) -> None:
        self.settings = _settings(FRAG_AUTHOR="writers")
        self.assertIsInstance(self._create(slug="author"), UserAccepted)


class TestEdit(_ServiceTestCase):
    """edit merges, re-validates and writes."""

    def test_updates_profile(self) -> None:
        self._add("jdoe", bio="old")
        result = users.edit(self.db, "jdoe", UserPatch(bio="new", twitter="@jd"), self.settings)
        self.assertIsInstance(result, UserAccepted)
        stored = users.get_one(self.db, "jdoe")
        self.assertEqual(stored.bio, "new")
        self.assertEqual(stored.twitter, "jd")
        self.assertEqual(stored.password, "hashed:secret123")

    def test_renames_slug(self) -> None:
        self._add("jdoe")
        users.edit(self.db, "jdoe", UserPatch(slug="Jane Doe"), self.settings)
        self.assertFalse(users.exists(self.db, "jdoe"))
        self.assertTrue(users.exists(self.db, "jane-doe"))

    def test_rename_onto_other_user(self) -> None:
        self._add("jdoe")
        self._add("other")
        result = users.edit(self.db, "jdoe", UserPatch(slug="other"), self.settings)
        self.assertEqual(result.reason, UserRejection.ALREADY_EXISTS)

    def test_not_found(self) -> None:
        result = users.edit(self.db, "ghost", UserPatch(name="Ghost"), self.settings)
        self.assertEqual(result.reason, UserRejection.NOT_FOUND)

    def test_owner_cannot_be_demoted(self) -> None:
        self._add("boss", role="owner")
        result = users.edit(self.db, "boss", UserPatch(role="admin"), self.settings)
        self.assertEqual(result.reason, UserRejection.CANNOT_CHANGE_OWNER)
        self.assertEqual(users.get_owner(self.db).slug, "boss")

    def test_new_password_rehashed(self) -> None:
        self._add("jdoe")
        users.edit(
            self.db, "jdoe", UserPatch(password="brand-new-pass"), self.settings, hash_password=_fake_hash
        )
        self.assertEqual(users.get_one(self.db, "jdoe").password, "hashed:brand-new-pass")

    def test_rename_onto_configured_fragment(self) -> None:
        self._add("jdoe")
        result = users.edit(self.db, "jdoe", UserPatch(slug="writers"), _settings(FRAG_AUTHOR="writers"))
        self.assertEqual(result.reason, UserRejection.INVALID_SLUG)
        self.assertTrue(users.exists(self.db, "jdoe"))

    def test_bio_whitespace_preserved(self) -> None:
        self._add("jdoe")
        users.edit(self.db, "jdoe", UserPatch(bio="  poem\n  indented  "), self.settings)
        self.assertEqual(users.get_one(self.db, "jdoe").bio, "  poem\n  indented  ")

    def test_update_failure_is_logged_and_rolled_back(self) -> None:
        self._add("jdoe", bio="old")
        with patch("sqlalchemy.orm.Query.update", side_effect=SQLAlchemyError("boom")):
            with self.assertLogs("app.services.users", level="ERROR") as logs:
                with self.assertRaises(UserPersistenceError):
                    users.edit(self.db, "jdoe", UserPatch(bio="new"), self.settings)
        self.assertIn("User write failed", logs.output[0])
        self.assertEqual(users.get_one(self.db, "jdoe").bio, "old")


class TestDelete(_ServiceTestCase):
    """delete reassigns posts and removes the account in one transaction."""

    def test_reassigns_to_owner(self) -> None:
        owner = self._add("boss", role="owner")
        author = self._add("jdoe")
        self._post("p1", author)
        self._post("p2", author)
        decision, moved = users.delete(self.db, "jdoe")
        self.assertIsInstance(decision, RecipientAccepted)
        self.assertEqual(decision.recipient.slug, "boss")
        self.assertEqual(moved, 2)
        self.assertFalse(users.exists(self.db, "jdoe"))
        self.assertEqual(self.db.query(Post).filter(Post.author == owner.id).count(), 2)

    def test_reassigns_to_explicit_recipient(self) -> None:
        self._add("boss", role="owner")
        author = self._add("jdoe")
        editor = self._add("ed", role="editor")
        self._post("p1", author)
        decision, moved = users.delete(self.db, "jdoe", recipient_slug="ed")
        self.assertEqual(decision.recipient.slug, "ed")
        self.assertEqual(self.db.query(Post).filter(Post.author == editor.id).count(), 1)

    def test_unknown_recipient(self) -> None:
        self._add("boss", role="owner")
        self._add("jdoe")
        decision, moved = users.delete(self.db, "jdoe", recipient_slug="nobody")
        self.assertEqual(decision.reason, UserRejection.UNABLE_TO_ASSIGN_POSTS)
        self.assertTrue(users.exists(self.db, "jdoe"))

    def test_owner_not_deletable(self) -> None:
        self._add("boss", role="owner")
        decision, _ = users.delete(self.db, "boss")
        self.assertEqual(decision.reason, UserRejection.CANNOT_DELETE_OWNER)
        self.assertTrue(users.exists(self.db, "boss"))

    def test_missing_target(self) -> None:
        decision, _ = users.delete(self.db, "ghost")
        self.assertEqual(decision.reason, UserRejection.INVALID_USER)

    def test_no_recipient_available(self) -> None:
        self._add("jdoe")
        decision, _ = users.delete(self.db, "jdoe")
        self.assertEqual(decision.reason, UserRejection.UNABLE_TO_ASSIGN_POSTS)

    def test_failed_reassignment_prevents_delete(self) -> None:
        self._add("boss", role="owner")
        author = self._add("jdoe")
        self._post("p1", author)
        with patch("app.services.users.reassign_posts", side_effect=SQLAlchemyError("boom")):
            with self.assertRaises(UserPersistenceError):
                users.delete(self.db, "jdoe")
        self.assertTrue(users.exists(self.db, "jdoe"))
        self.assertEqual(self.db.query(Post).filter(Post.author == author.id).count(), 1)

    def test_failed_commit_rolls_back_reassignment(self) -> None:
        self._add("boss", role="owner")
        author = self._add("jdoe")
        self._post("p1", author)
        author_id = author.id
        with patch.object(self.db, "commit", side_effect=SQLAlchemyError("boom")):
            with self.assertRaises(UserPersistenceError):
                users.delete(self.db, "jdoe")
        self.assertTrue(users.exists(self.db, "jdoe"))
        self.assertEqual(self.db.query(Post).filter(Post.author == author_id).count(), 1)


class TestQueries(_ServiceTestCase):
    """Listings, lookups and stats."""

    def setUp(self) -> None:
        super().setUp()
        self.owner = self._add("boss", name="Zoe Boss", role="owner")
        self.ann = self._add("ann", name="Ann Author", location="Lisbon")
        self.ed = self._add("ed", name="Ed Editor", role="editor", bio="Writes about Lisbon")
        self._post("p1", self.ann)
        self._post("p2", self.ann)
        self._post("p3", self.owner)

    def test_get_many_orders_by_name(self) -> None:
        found, pagination = users.get_many(self.db)
        self.assertEqual([u.slug for u in found], ["ann", "ed", "boss"])
        self.assertEqual(pagination.total_items, 3)

    def test_get_many_query_matches_several_columns(self) -> None:
        found, _ = users.get_many(self.db, query="lisbon")
        self.assertEqual({u.slug for u in found}, {"ann", "ed"})

    def test_get_many_query_escapes_wildcards(self) -> None:
        found, _ = users.get_many(self.db, query="%")
        self.assertEqual(found, [])

    def test_get_many_role_filter(self) -> None:
        found, _ = users.get_many(self.db, role=["owner", "editor"])
        self.assertEqual({u.slug for u in found}, {"boss", "ed"})
        found, _ = users.get_many(self.db, role="author")
        self.assertEqual([u.slug for u in found], ["ann"])

    def test_get_many_paginates(self) -> None:
        found, pagination = users.get_many(self.db, page=2, items_per_page=2)
        self.assertEqual([u.slug for u in found], ["boss"])
        self.assertEqual(pagination.total_pages, 2)
        self.assertEqual(pagination.previous_page, 1)
        self.assertIsNone(pagination.next_page)

    def test_count(self) -> None:
        self.assertEqual(users.count(self.db), 3)
        self.assertEqual(users.count(self.db, role="editor"), 1)

    def test_lookups(self) -> None:
        self.assertTrue(users.exists(self.db, "ann"))
        self.assertFalse(users.exists(self.db, "nobody"))
        self.assertEqual(users.get_id(self.db, "ann"), self.ann.id)
        self.assertIsNone(users.get_id(self.db, "nobody"))
        self.assertIsNone(users.get_one(self.db, "nobody"))
        self.assertEqual(users.get_owner(self.db).slug, "boss")

    def test_get_names(self) -> None:
        names = users.get_names(self.db)
        self.assertEqual([n.name for n in names], ["Ann Author", "Ed Editor", "Zoe Boss"])

    def test_get_authors_counts_posts(self) -> None:
        counts = {a.slug: a.post_count for a in users.get_authors(self.db)}
        self.assertEqual(counts, {"ann": 2, "boss": 1, "ed": 0})

    def test_get_authors_query(self) -> None:
        authors = users.get_authors(self.db, query="edit")
        self.assertEqual([a.slug for a in authors], ["ed"])

    def test_url(self) -> None:
        self.assertEqual(users.url(self.settings, "ann"), "https://blog.inkwell.test/author/ann")
        self.assertEqual(
            users.url(self.settings, "ann", 2), "https://blog.inkwell.test/author/ann/page/2"
        )


class TestVerifyPassword(_ServiceTestCase):
    """verify_password checks the stored bcrypt hash."""

    @patch("app.core.security.BCRYPT_ROUNDS", 4)
    def test_verify(self) -> None:
        self._add("jdoe", password=hash_password("correct-horse"))
        self.assertTrue(users.verify_password(self.db, "jdoe", "correct-horse"))
        self.assertFalse(users.verify_password(self.db, "jdoe", "wrong"))
        self.assertFalse(users.verify_password(self.db, "ghost", "correct-horse"))


if __name__ == "__main__":
    unittest.main()
