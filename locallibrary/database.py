import asyncio
import logging
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base


logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Persistence handle shared by every controller.

    Built once by the application factory and injected through get_db.
    Each call made with run() gets its own session, so independent reads
    can be issued at the same time with gather().
    """

    def __init__(self, url: str, timeout: float = None):
        self.url = url
        self.timeout = timeout
        self.engine = create_engine(
            url,
            connect_args={"check_same_thread": False} if "sqlite" in url else {},
        )
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_all(self):
        # Models register themselves on Base when imported.
        from locallibrary import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()

    @contextmanager
    def session(self):
        """Yield a session, committing on success and rolling back on error."""
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _call(self, fn, *args):
        with self.session() as db:
            return fn(db, *args)

    async def run(self, fn, *args):
        """
        Run fn(session, *args) on the default executor.

        Raises asyncio.TimeoutError when the call takes longer than the
        configured timeout. The worker thread is left to finish on its own.
        """
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(
            loop.run_in_executor(None, self._call, fn, *args), self.timeout
        )

    async def gather(self, *calls):
        """
        Run several independent (fn, *args) calls concurrently.

        Results come back in call order. The first failure cancels the
        remaining calls and is re-raised.
        """
        tasks = [asyncio.ensure_future(self.run(fn, *args)) for fn, *args in calls]
        try:
            return await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            raise


def get_db(request: Request) -> Database:
    """Dependency returning the Database handle built at startup."""
    return request.app.state.db
