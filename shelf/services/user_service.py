from shelf.errors import ValidationError
from shelf.extensions import db
from shelf.models.user import User


def create_user(
    username: str,
    email: str,
    password: str,
    *,
    first_name: str = "",
    last_name: str = "",
) -> User:
    if User.query.filter_by(username=username).first():
        raise ValidationError("Username already taken.", {"username": ["Username already taken."]})
    if User.query.filter_by(email=email).first():
        raise ValidationError("Email already registered.", {"email": ["Email already registered."]})

    user = User(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    user = User.query.filter_by(username=username).first()
    if user and user.is_active and user.check_password(password):
        return user
    return None
