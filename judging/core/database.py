"""Database connection and session management"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
import ssl
import logging
from judging.core.config import settings

# Setup logger
logger = logging.getLogger(__name__)


def mask_url(url: str) -> str:
    """Mask sensitive parts of database URL for logging"""
    try:
        parsed = urlparse(url)
        if parsed.password:
            netloc = parsed.netloc.replace(f":{parsed.password}@", ":***@")
            return urlunparse(parsed._replace(netloc=netloc))
        return url
    except ValueError:
        if len(url) > 20:
            return f"{url[:10]}...{url[-10:]}"
        return "***"


def prepare_async_url(url: str) -> tuple:
    """
    Normalize a database URL for the async engine.

    Postgres URLs are converted to the asyncpg driver, and the libpq
    ``sslmode`` query parameter (unsupported by asyncpg) is translated
    into an ``ssl`` connect argument.

    Args:
        url: Database URL from settings

    Returns:
        Tuple of (async URL, connect_args)
    """
    connect_args = {}

    if not (url.startswith("postgresql://") or url.startswith("postgresql+asyncpg://")):
        return url, connect_args

    parsed = urlparse(url)
    query_params = parse_qs(parsed.query)

    if "sslmode" in query_params:
        sslmode = query_params.pop("sslmode")[0]
        if sslmode == "disable":
            connect_args["ssl"] = False
        elif sslmode in ("verify-ca", "verify-full"):
            connect_args["ssl"] = ssl.create_default_context()
        else:
            # require/prefer: encrypt without verifying the managed-db certificate
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
            connect_args["ssl"] = ssl_context

    url = urlunparse(parsed._replace(query=urlencode(query_params, doseq=True)))
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    if connect_args.get("ssl"):
        connect_args["timeout"] = 10

    return url, connect_args


database_url, connect_args = prepare_async_url(settings.database_url)
logger.info(f"DATABASE_URL (async): {mask_url(database_url)}")

engine_options = {
    "echo": settings.environment == "development",
    "future": True,
    "connect_args": connect_args,
    "pool_pre_ping": True,
}
if not database_url.startswith("sqlite"):
    engine_options.update(
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
    )

engine = create_async_engine(database_url, **engine_options)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency for getting database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
