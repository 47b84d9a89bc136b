from classroom.db.base import Base
from classroom.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
