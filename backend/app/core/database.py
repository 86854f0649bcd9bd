# app/core/database.py
"""
Moteur SQLAlchemy async vers la base Postgres hébergée.

Un seul moteur par process, créé à l'import depuis la configuration.
Les routers ne l'utilisent jamais directement : la session est injectée
via Depends(get_db), ce qui permet de la substituer dans les tests.
"""
from typing import Any, AsyncIterator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


def row_to_dict(obj, model, id_fields=("id",)) -> Dict[str, Any]:
    """Instance ORM (ou objet équivalent) → dict des colonnes de `model`, ids en str."""
    data = {column.name: getattr(obj, column.name, None) for column in model.__table__.columns}
    for key in id_fields:
        if data.get(key) is not None:
            data[key] = str(data[key])
    return data
