"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.app.api.dependencies.db import DBSession
from src.app.repositories import GymRepository, TrainerRepository, UserRepository


def get_user_repository(session: DBSession) -> UserRepository:
    """Get user repository."""
    return UserRepository(session)


def get_gym_repository(session: DBSession) -> GymRepository:
    """Get gym repository."""
    return GymRepository(session)


def get_trainer_repository(session: DBSession) -> TrainerRepository:
    """Get trainer repository."""
    return TrainerRepository(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
GymRepo = Annotated[GymRepository, Depends(get_gym_repository)]
TrainerRepo = Annotated[TrainerRepository, Depends(get_trainer_repository)]
