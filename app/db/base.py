from app.db.base_class import Base

# Import ALL models so SQLAlchemy registers them
from app.models.user import User  # noqa: F401
from app.models.group import Group  # noqa: F401
from app.models.group_membership import GroupMembership  # noqa: F401
from app.models.memo import Memo  # noqa: F401
from app.models.comment import Comment  # noqa: F401
from app.models.friend import Friend  # noqa: F401
from app.models.follow import Follow  # noqa: F401
from app.models.subscription import PushSubscription  # noqa: F401
