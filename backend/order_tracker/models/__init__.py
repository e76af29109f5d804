from .orders import Order
from .inventory import InventoryItem
from .auth import AuthUser, AuthSession, UserProfile
from .settings import WorkspaceVocabulary

__all__ = [
    'Order',
    'InventoryItem',
    'AuthUser', 'AuthSession', 'UserProfile',
    'WorkspaceVocabulary',
]
