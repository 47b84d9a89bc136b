import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.errors import ValidationError
from classroom.core.security import create_access_token
from classroom.models.enums import Role
from classroom.models.user import User

logger = logging.getLogger(__name__)


def login(db: Session, username: str, role) -> tuple[User, str]:
    """Find the user by username, creating it on first login, and issue a token.

    An existing user keeps the role it was created with.
    """
    if not username or not username.strip():
        raise ValidationError("Username is required")
    try:
        role = Role(role)
    except ValueError:
        raise ValidationError("Role must be either TUTOR or STUDENT")

    user = db.query(User).filter(User.username == username).first()
    if not user:
        user = User(username=username, role=role)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # lost a first-login race on the unique username
            db.rollback()
            user = db.query(User).filter(User.username == username).one()
        else:
            db.refresh(user)
            logger.info("Created %s user %s (id=%s)", role.value, username, user.id)

    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
    )
    return user, access_token
