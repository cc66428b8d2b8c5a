from .auth import User, SessionToken, VerificationStatus
from .security import SecurityEvent
from .pickups import Pickup, Item, PickupStatus, ItemStatus
from .boxes import Box, BoxStatus
from .vouches import UserVouch, VouchStatus
from .fx_rates import FxRate, CURRENCIES

__all__ = [
    'User', 'SessionToken', 'VerificationStatus',
    'SecurityEvent',
    'Pickup', 'Item', 'PickupStatus', 'ItemStatus',
    'Box', 'BoxStatus',
    'UserVouch', 'VouchStatus',
    'FxRate', 'CURRENCIES',
]
