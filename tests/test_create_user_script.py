"""Tests for the create_user CLI (session and service mocked)."""

import importlib
import unittest
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

from app.schemas.user import NormalizedUser, UserAccepted, UserRejected, UserRejection
from app.scripts import create_user
from app.services.users import UserPersistenceError


@contextmanager
def _fake_scope():
    yield MagicMock()


@patch("app.scripts.create_user.session_scope", _fake_scope)
class TestCreateUserScript(unittest.TestCase):
    ARGS = ["jdoe", "Jane Doe", "jane@x.com", "12345678", "editor"]

    @patch("app.scripts.create_user.users.create")
    def test_success(self, mock_create: MagicMock) -> None:
        mock_create.return_value = UserAccepted(
            record=NormalizedUser(
                slug="jdoe", name="Jane Doe", email="jane@x.com", password="hashed", role="editor"
            )
        )
        self.assertEqual(create_user.main(self.ARGS), 0)
        candidate = mock_create.call_args.args[1]
        self.assertEqual(candidate.slug, "jdoe")
        self.assertEqual(candidate.role, "editor")

    @patch("app.scripts.create_user.users.create")
    def test_rejection_exits_nonzero(self, mock_create: MagicMock) -> None:
        mock_create.return_value = UserRejected(
            reason=UserRejection.ALREADY_EXISTS, message="User already exists: jdoe"
        )
        self.assertEqual(create_user.main(self.ARGS), 1)

    @patch("app.scripts.create_user.users.create")
    def test_persistence_error_exits_nonzero(self, mock_create: MagicMock) -> None:
        mock_create.side_effect = UserPersistenceError("Database error")
        self.assertEqual(create_user.main(self.ARGS), 1)

    def test_role_defaults_to_author(self) -> None:
        args = create_user.build_parser().parse_args(self.ARGS[:4])
        self.assertEqual(args.role, "author")

    def test_unknown_role_rejected_by_parser(self) -> None:
        with self.assertRaises(SystemExit):
            create_user.build_parser().parse_args(self.ARGS[:4] + ["guest"])


class TestLoggingSetup(unittest.TestCase):
    @patch("logging.basicConfig")
    def test_import_leaves_logging_alone(self, mock_basic: MagicMock) -> None:
        importlib.reload(create_user)
        mock_basic.assert_not_called()

    @patch("app.scripts.create_user.session_scope", _fake_scope)
    @patch("app.scripts.create_user.users.create", side_effect=UserPersistenceError("Database error"))
    @patch("logging.basicConfig")
    def test_main_configures_logging(self, mock_basic: MagicMock, _create: MagicMock) -> None:
        create_user.main(TestCreateUserScript.ARGS)
        mock_basic.assert_called_once()


if __name__ == "__main__":
    unittest.main()
