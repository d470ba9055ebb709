from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from almoxtrack.config import settings
from almoxtrack.exceptions import StorageFailureError

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """Commit everything done inside the block, or nothing.

    Any error rolls the session back and propagates; database errors are
    surfaced as StorageFailureError.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailureError(f"Transaction aborted: {e}") from e
    except Exception:
        db.rollback()
        raise


def init_db(bind=None):
    # Import all models so Base.metadata knows about them
    import almoxtrack.models.movement  # noqa: F401
    import almoxtrack.models.product  # noqa: F401
    import almoxtrack.models.user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
