from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from ...config.settings import get_settings

settings = get_settings()
SQLALCHEMY_DATABASE_URL = settings.get_database_url()

connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=connect_args,
    echo=settings.database_echo,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign key enforcement off; ON DELETE CASCADE needs it.
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


event.listen(engine, "connect", enable_sqlite_foreign_keys)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
