from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.database import Base

ModelType = TypeVar("ModelType", bound=Base)
PydanticType = TypeVar("PydanticType", bound=BaseModel)


class BaseRepository(Generic[ModelType, PydanticType]):
    """Generic base repository with common CRUD operations.

    Writes commit by default. Pass ``commit=False`` to only flush, leaving the
    caller in charge of committing or rolling back a multi-step transaction.
    """

    def __init__(self, db: AsyncSession, model_class: Any):
        self.db = db
        self.model_class = model_class

    async def get_by_id(self, id: UUID) -> Optional[PydanticType]:
        """Get a single record by ID."""
        db_model = await self._get_model(id)
        return self._to_pydantic(db_model) if db_model else None

    async def create(
        self, pydantic_model: PydanticType, commit: bool = True
    ) -> PydanticType:
        """Create a new record."""
        db_model = self._from_pydantic(pydantic_model)
        self.db.add(db_model)
        await self._persist(commit)
        await self.db.refresh(db_model)
        return self._to_pydantic(db_model)

    async def update(
        self, id: UUID, values: Dict[str, Any], commit: bool = True
    ) -> Optional[PydanticType]:
        """Update fields of an existing record."""
        db_model = await self._get_model(id)

        if not db_model:
            return None

        for field, value in values.items():
            if hasattr(db_model, field):
                setattr(db_model, field, value)

        await self._persist(commit)
        await self.db.refresh(db_model)
        return self._to_pydantic(db_model)

    async def get_all(self, limit: int = 100, offset: int = 0) -> List[PydanticType]:
        """Get all records with pagination."""
        query = select(self.model_class).limit(limit).offset(offset)
        result = await self.db.execute(query)
        db_models = result.scalars().all()
        return [self._to_pydantic(db_model) for db_model in db_models]

    async def _get_model(self, id: UUID) -> Optional[ModelType]:
        query = select(self.model_class).where(
            self.model_class.id == id
        )  # type: ignore
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _persist(self, commit: bool) -> None:
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()

    def _to_pydantic(self, db_model: ModelType) -> PydanticType:
        """Convert SQLAlchemy model to Pydantic model.

        This should be overridden in subclasses for specific conversion logic.
        """
        raise NotImplementedError

    def _from_pydantic(self, pydantic_model: PydanticType) -> ModelType:
        """Convert Pydantic model to SQLAlchemy model.

        This should be overridden in subclasses for specific conversion logic.
        """
        raise NotImplementedError
