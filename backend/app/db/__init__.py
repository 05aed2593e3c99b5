import importlib

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings
from app.utils.logging import get_logger

log = get_logger(__name__)

DATABASE_URL = settings.DATABASE_URL

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # sessions are handed between the threadpool and request threads
    connect_args = {"check_same_thread": False, "timeout": 15}

engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Model modules that must be imported before create_all (add new modules here)
MODEL_MODULES = [
    "app.models.product",
    "app.models.product_variant",
    "app.models.cart",
    "app.models.cart_item",
    "app.models.order",
]


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Behavior:
      - Import every model module so Base.metadata is populated.
      - If `reset` is true (or RESET_DB is set), drop & recreate all tables.
      - Otherwise create missing tables and leave existing ones in place.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or settings.RESET_DB:
        log.warning("Resetting database schema at %s", engine.url.render_as_string(hide_password=True))
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized (tables=%s)", sorted(Base.metadata.tables.keys()))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
