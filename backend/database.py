# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from dotenv import load_dotenv

from config import settings

load_dotenv()

# 1. Database URL from settings (DATABASE_URL or the default SQLite file)
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. SQLAlchemy expects postgresql:// instead of postgres://
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Driver-specific connection arguments
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # SQLite only
else:
    connect_args = {} # Nothing extra for PostgreSQL

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    # Register every model on Base.metadata before creating tables
    import models.inventory  # noqa: F401
    import models.transaction  # noqa: F401
    import models.exchange  # noqa: F401
    import models.bom  # noqa: F401
    import models.layout  # noqa: F401
    import models.users  # noqa: F401
    import models.log  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
