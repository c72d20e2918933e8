"""
Notifications Module
"""
from .bridge_toasts import BridgeToastAdapter
from .notification_center import Notification, NotificationCenter, NotificationEvent, NotificationType

__all__ = [
    'BridgeToastAdapter',
    'Notification',
    'NotificationCenter',
    'NotificationEvent',
    'NotificationType',
]
