"""Repository layer - data access abstraction."""

from src.app.repositories.base import BaseRepository
from src.app.repositories.gym_repository import GymRepository
from src.app.repositories.trainer_repository import TrainerRepository
from src.app.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "GymRepository",
    "TrainerRepository",
    "UserRepository",
]
