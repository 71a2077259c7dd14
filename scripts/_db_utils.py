from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Generator

from sqlalchemy.orm import Session, sessionmaker

from app.tourcms.db import build_engine


@contextmanager
def script_session(db_url: str) -> Generator[Session, None, None]:
    """
    Standalone session for scripts that run outside the Flask app (release, seeding).
    Same engine setup as the app, so SQLite gets FK enforcement too.
    """
    engine = build_engine(db_url)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
