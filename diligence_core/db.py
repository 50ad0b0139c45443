# diligence_core/db.py
"""Engine and session handling for import and case storage"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from diligence_core.config import settings
from diligence_core.models.db import Base

logger = logging.getLogger(__name__)

class Database:
    """Owns one engine and the session factory bound to it"""

    def __init__(self):
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_initialized(self) -> bool:
        return self._session_factory is not None

    def init(self, url: Optional[str] = None) -> None:
        """
        Connect and make sure the transaction, case and finding tables exist.

        Args:
            url: SQLAlchemy URL; DATABASE_URL from settings when omitted
        """
        target = url or settings.DATABASE_URL
        try:
            self._engine = create_engine(target)
            Base.metadata.create_all(self._engine)
            self._session_factory = sessionmaker(bind=self._engine)
            logger.info(f"Database ready at {self._engine.url.render_as_string(hide_password=True)}")
        except SQLAlchemyError as e:
            logger.error(f"Could not prepare database: {e}")
            raise

    def _require_factory(self) -> sessionmaker:
        if not self.is_initialized:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._session_factory

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Session that commits when the block exits cleanly and rolls back otherwise.

            with db.session() as session:
                session.add(case)
        """
        session = self._require_factory()()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Session:
        """Unmanaged session; the caller commits and closes it"""
        return self._require_factory()()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

db = Database()
