"""Model exports.

Import from here: `from src.app.models import User, Gym, Trainer`
"""

from src.app.models.gym import Gym
from src.app.models.trainer import InvitationToken, Trainer, TrainerGymMembership
from src.app.models.user import User

__all__ = [
    "Gym",
    "InvitationToken",
    "Trainer",
    "TrainerGymMembership",
    "User",
]
