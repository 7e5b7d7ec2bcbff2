from typing import Any, Iterable, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.profiles import ProfileResponse, StudentProfileResponse
from app.models.db.profile_model import ProfileModel, StudentProfileModel
from app.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository[ProfileModel, ProfileResponse]):
    """Repository for profile lookups. Profiles are read-only here."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ProfileModel)

    async def get_many(self, ids: Iterable[UUID]) -> List[ProfileResponse]:
        """Get the profiles for the given ids; absent ids are skipped."""
        id_list = list(ids)
        if not id_list:
            return []
        query = select(self.model_class).where(self.model_class.id.in_(id_list))
        result = await self.db.execute(query)
        return [self._to_pydantic(db_model) for db_model in result.scalars().all()]

    async def get_student_profiles(
        self, ids: Iterable[UUID]
    ) -> List[StudentProfileResponse]:
        """Get student_profiles rows for the given ids; absent ids are skipped."""
        id_list = list(ids)
        if not id_list:
            return []
        query = select(StudentProfileModel).where(StudentProfileModel.id.in_(id_list))
        result = await self.db.execute(query)
        return [
            StudentProfileResponse.model_validate(db_model)
            for db_model in result.scalars().all()
        ]

    def _to_pydantic(self, db_model: Any) -> ProfileResponse:
        """Convert SQLAlchemy ProfileModel to Pydantic ProfileResponse."""
        return ProfileResponse(
            id=db_model.id,
            user_type=db_model.user_type,
            full_name=db_model.full_name,
            age=db_model.age or 0,
            bio=db_model.bio,
            location=db_model.location,
        )
