from childcare.db.base import Base
from childcare.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
