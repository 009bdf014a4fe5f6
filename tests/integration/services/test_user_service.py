# tests/integration/services/test_user_service.py
import pytest

from phonerelay.services.user_service import UserService
from phonerelay.database.models.user import UserModel
from phonerelay.utils.exceptions import ConflictError, ValidationError


def test_create_user_success(session):
    """Test creating a user successfully."""
    user = UserService.create_user("testuser", "test@example.com", "password123")

    assert user.id is not None
    assert user.status == 'active'
    assert user.password_hash != "password123"
    assert user.check_password("password123")

    user_from_db = session.get(UserModel, user.id)
    assert user_from_db.username == "testuser"


def test_create_user_duplicate_username(session):
    UserService.create_user("existing", "e1@example.com", "pass")

    with pytest.raises(ConflictError, match="Username 'existing' already exists."):
        UserService.create_user("existing", "e2@example.com", "pass")


def test_create_user_duplicate_email(session):
    UserService.create_user("user1", "existing@example.com", "pass")

    with pytest.raises(ConflictError, match="Email 'existing@example.com' already exists."):
        UserService.create_user("user2", "existing@example.com", "pass")


def test_create_user_requires_password(session):
    with pytest.raises(ValidationError):
        UserService.create_user("nopass", "nopass@example.com", "")


def test_get_user_lookups(session):
    user = UserService.create_user("fetchme", "fetch@example.com", "pass")

    assert UserService.get_user_by_id(user.id).username == "fetchme"
    assert UserService.get_user_by_username("fetchme").id == user.id
    assert UserService.get_user_by_id(99999) is None
    assert UserService.get_user_by_username("nobody") is None
