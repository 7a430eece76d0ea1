"""Import all models so ``Base.metadata`` sees every table."""
from direct_chat.infrastructure.db.models.chat import ChatModel
from direct_chat.infrastructure.db.models.message import MessageModel
from direct_chat.infrastructure.db.models.participant import ParticipantModel
from direct_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "ChatModel",
    "MessageModel",
    "ParticipantModel",
    "UserModel",
]
