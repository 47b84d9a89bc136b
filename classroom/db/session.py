from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from classroom.core.config import settings

DATABASE_URL = settings.DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# every request that needs DB gets a fresh session, and it is always closed.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
