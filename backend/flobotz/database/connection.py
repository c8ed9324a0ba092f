import functools
import time
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from flobotz.core.config import settings
from flobotz.core.logging import db_logger
from flobotz.core.monitoring import record_database_operation, database_connections
from flobotz.crud.exceptions import RecordNotFoundError


engine = create_engine(settings.database_url, **settings.get_database_config())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(engine, "connect")
def on_connect(dbapi_connection, connection_record):
    """Event handler for new database connections"""
    database_connections.inc()
    db_logger.debug("New database connection established")


@event.listens_for(engine, "invalidate")
def on_invalidate(dbapi_connection, connection_record, exception):
    """Event handler for connection invalidation"""
    database_connections.dec()
    db_logger.warning("Database connection invalidated", error=str(exception) if exception else None)


def get_db():
    """Dependency to get database session with monitoring"""
    start_time = time.time()
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        db_logger.error("Database session error", error=str(e))
        db.rollback()
        raise
    finally:
        duration = time.time() - start_time
        record_database_operation("session", duration)
        db.close()


def create_tables():
    """Create all database tables"""
    # Model modules register themselves on Base.metadata
    import flobotz.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
        db_logger.info("Database tables created successfully")
    except Exception as e:
        db_logger.error("Failed to create database tables", error=str(e))
        raise


def check_database_health() -> bool:
    """Check database connectivity and health"""
    try:
        start_time = time.time()
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))

        duration = time.time() - start_time
        record_database_operation("health_check", duration)

        db_logger.debug("Database health check passed", duration=duration)
        return True

    except Exception as e:
        db_logger.error("Database health check failed", error=str(e))
        return False


def get_db_stats():
    """Get database connection pool statistics"""
    pool = engine.pool
    try:
        return {
            "pool_size": pool.size(),
            "checked_in": pool.checkedin(),
            "checked_out": pool.checkedout(),
            "overflow": pool.overflow(),
        }
    except (AttributeError, TypeError):
        # SQLite pools do not expose QueuePool counters
        return {"pool": type(pool).__name__}
    except Exception as e:
        db_logger.error("Failed to get database stats", error=str(e))
        return None


class DatabaseSession:
    """Database session context manager with monitoring.

    Used where work happens outside the request-scoped ``get_db`` session,
    e.g. while a streaming response body is still being produced.
    """

    def __init__(self, operation_name: str = "unknown", session_factory: sessionmaker = None):
        self.operation_name = operation_name
        self.session_factory = session_factory or SessionLocal
        self.start_time = None
        self.db = None

    def __enter__(self) -> Session:
        self.start_time = time.time()
        self.db = self.session_factory()
        return self.db

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self.db.rollback()
                db_logger.error(
                    "Database operation failed",
                    operation=self.operation_name,
                    error=str(exc_val) if exc_val else None
                )
            else:
                self.db.commit()
        finally:
            duration = time.time() - self.start_time
            record_database_operation(self.operation_name, duration, success=exc_type is None)
            self.db.close()


def db_operation(operation_name: str):
    """Wrap an accessor: time it, and on failure roll back, log and re-raise.

    ``RecordNotFoundError`` is re-raised without rollback or error metrics.
    The wrapped function must take the ``Session`` as its first argument.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(db: Session, *args, **kwargs):
            start_time = time.time()
            try:
                result = func(db, *args, **kwargs)
                db_logger.debug("Database operation completed", operation=operation_name)
                record_database_operation(operation_name, time.time() - start_time)
                return result
            except RecordNotFoundError:
                # A missing row the caller asked about, not a database failure
                db_logger.debug("Database lookup missed", operation=operation_name)
                record_database_operation(operation_name, time.time() - start_time)
                raise
            except Exception as e:
                db.rollback()
                db_logger.error(
                    "Database operation failed",
                    operation=operation_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                record_database_operation(operation_name, time.time() - start_time, success=False)
                raise
        return wrapper
    return decorator
