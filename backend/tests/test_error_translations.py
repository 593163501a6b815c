"""
Backend error translation tests.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from carwash.errors import MESSAGES, TITLES, describe_error, translate_backend_error, translate_message


class TestTranslateMessage:

    @pytest.mark.parametrize(
        "message,code,expected_key",
        [
            ("Invalid login credentials", None, "auth.invalid_credentials"),
            ("User already registered", None, "auth.user_already_registered"),
            ("duplicate key value violates unique constraint", "23505", "database.record_exists"),
            ("duplicate key value violates unique constraint", None, "database.duplicate_key"),
            ("UNIQUE constraint failed: perfiles.national_id", None, "database.duplicate_key"),
            ("FOREIGN KEY constraint failed", None, "database.foreign_key_violation"),
            ("anything", "23503", "database.reference_error"),
            ("New password should be different from the old password", None, "auth.password_must_be_different"),
            ("Request timeout", None, "network.timeout"),
        ],
    )
    def test_known(self, message, code, expected_key):
        assert translate_message(message, code) == MESSAGES[expected_key]

    def test_compound_patterns(self):
        assert translate_message("That email is already taken") == MESSAGES["auth.email_already_exists"]
        assert translate_message("Token has expired") == MESSAGES["auth.invalid_refresh_token"]

    def test_unknown_message_passes_through(self):
        assert translate_message("El turno ya fue confirmado") == "El turno ya fue confirmado"

    def test_empty_message(self):
        assert translate_message(None) == MESSAGES["generic.unexpected_error"]


class TestDescribeError:

    @pytest.mark.parametrize(
        "message,code,title",
        [
            ("Invalid login credentials", None, "auth"),
            ("x", "23505", "duplicate"),
            ("insert violates foreign key constraint", None, "reference"),
            ("permission denied for table turnos", None, "permission"),
            ("Failed to fetch", None, "connection"),
            ("invalid input syntax", None, "validation"),
            ("boom", None, "error"),
        ],
    )
    def test_titles(self, message, code, title):
        assert describe_error(message, code)["title"] == TITLES[title]

    def test_nothing_known(self):
        assert describe_error(None) == {"title": "Error", "description": MESSAGES["generic.unexpected_error"]}


class TestDatabaseErrors:

    def test_unique_violation_is_conflict(self):
        exc = IntegrityError("INSERT ...", {}, Exception("UNIQUE constraint failed: users.email"))
        payload, status = translate_backend_error(exc)
        assert status == 409
        assert payload["title"] == TITLES["duplicate"]
        assert payload["description"] == MESSAGES["database.duplicate_key"]

    def test_not_null_violation_is_validation(self):
        exc = IntegrityError("INSERT ...", {}, Exception("NOT NULL constraint failed: productos.name"))
        payload, status = translate_backend_error(exc)
        assert status == 400
        assert payload["description"] == MESSAGES["database.not_null_violation"]
