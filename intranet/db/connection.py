from sqlalchemy.ext.asyncio import create_async_engine,async_sessionmaker,AsyncSession
from intranet.config.settings import config_settings
from intranet.db.utils import _normalize_db_url

DATABASE_URL=_normalize_db_url(config_settings.DATABASE_URL)

async_engine=create_async_engine(DATABASE_URL,echo=False,pool_pre_ping=True)

async_session=async_sessionmaker(bind=async_engine,class_=AsyncSession,expire_on_commit=False)
