import pytest

from shelf.errors import CategoryError, ValidationError
from shelf.services import user_service


class TestCreateUser:
    def test_create(self, session):
        user = user_service.create_user(
            "reader", "reader@example.com", "password123", first_name="Rea"
        )
        assert user.id is not None
        assert user.first_name == "Rea"
        assert user.check_password("password123")

    @pytest.mark.parametrize(
        "username,email",
        [("testuser", "new@example.com"), ("newuser", "test@example.com")],
    )
    def test_duplicates_rejected(self, user, username, email):
        with pytest.raises(ValidationError) as excinfo:
            user_service.create_user(username, email, "password123")
        assert not isinstance(excinfo.value, CategoryError)


class TestAuthenticate:
    def test_valid(self, user):
        assert user_service.authenticate("testuser", "password123").id == user.id

    def test_wrong_password(self, user):
        assert user_service.authenticate("testuser", "nope") is None

    def test_unknown_user(self, session):
        assert user_service.authenticate("nobody", "password123") is None

    def test_inactive_user(self, session, user):
        user.is_active = False
        session.commit()
        assert user_service.authenticate("testuser", "password123") is None
