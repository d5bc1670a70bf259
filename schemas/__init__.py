from .subscription_schema import SubscriptionTypeRead, SubscriptionRead, CheckoutRequest, CheckoutResponse, TransactionRead
from .user_schema import UserCreate, UserLogin, UserRead, UserWithSubscription, AuthResponse
from .project_schema import (
    ProjectCreate, ProjectUpdate, ProjectRead, ProjectRiderSummary,
    ProjectPermissionCreate, ProjectPermissionUpdate, ProjectPermissionRead,
)
from .rider_schema import (
    RiderCreate, RiderUpdate, RiderRead,
    RiderPermissionCreate, RiderPermissionUpdate, RiderPermissionRead,
)
from .comment_schema import CommentCreate, CommentUpdate, CommentRead, CommentAuthor
from .activity_schema import ActivityRead, FavoriteCreate, FavoriteRead

__all__ = [
    # Subscription
    "SubscriptionTypeRead", "SubscriptionRead", "CheckoutRequest", "CheckoutResponse", "TransactionRead",

    # User
    "UserCreate", "UserLogin", "UserRead", "UserWithSubscription", "AuthResponse",

    # Project
    "ProjectCreate", "ProjectUpdate", "ProjectRead", "ProjectRiderSummary",
    "ProjectPermissionCreate", "ProjectPermissionUpdate", "ProjectPermissionRead",

    # Rider
    "RiderCreate", "RiderUpdate", "RiderRead",
    "RiderPermissionCreate", "RiderPermissionUpdate", "RiderPermissionRead",

    # Comment
    "CommentCreate", "CommentUpdate", "CommentRead", "CommentAuthor",

    # Activity
    "ActivityRead", "FavoriteCreate", "FavoriteRead",
]
