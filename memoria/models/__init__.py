"""ORM Models - SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Uniqueness invariants (connection pair, chat pair, membership, response
      author, vote) are database constraints, not application checks alone

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from memoria.models.user import User  # noqa: F401
from memoria.models.connection import Connection  # noqa: F401
from memoria.models.group import Group  # noqa: F401
from memoria.models.group_member import GroupMember  # noqa: F401
from memoria.models.prompt import Prompt  # noqa: F401
from memoria.models.response import Response  # noqa: F401
from memoria.models.vote import Vote  # noqa: F401
from memoria.models.chat import Chat  # noqa: F401
from memoria.models.message import Message  # noqa: F401
from memoria.models.notification import Notification  # noqa: F401
