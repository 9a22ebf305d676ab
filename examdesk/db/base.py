from sqlalchemy import Enum, create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
import logging
import os

logger = logging.getLogger(__name__)

# Direct PostgreSQL connection string takes precedence
POSTGRES_URL = os.getenv("POSTGRES_URL", "")

if POSTGRES_URL:
    DATABASE_URL = POSTGRES_URL
    connect_args = {}
    logger.info("Using direct PostgreSQL URL")
else:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./examdesk.db")
    connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
    logger.info(f"Using database: {DATABASE_URL.split('@')[-1]}")

engine = create_engine(
    DATABASE_URL, connect_args=connect_args, pool_pre_ping=True, pool_recycle=300
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

if DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # Off by default on every new SQLite connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

Base = declarative_base()

def enum_type(enum_cls, length: int = 20) -> Enum:
    """Store an enum by its lowercase value rather than its member name."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=length,
    )

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
