"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import UserFactory, GymFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.gym import GymFactory, TrainerFactory, TrainerGymMembershipFactory
from tests.factories.user import DEFAULT_TEST_PASSWORD, UserFactory, default_password_hash

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Gym
    "GymFactory",
    "TrainerFactory",
    "TrainerGymMembershipFactory",
    # User
    "UserFactory",
    "DEFAULT_TEST_PASSWORD",
    "default_password_hash",
]
