"""
Bridge toast adapter - turns BridgeState updates into notifications
"""
from typing import Optional

from core.services.bridge.bridge_service import BridgeState, BridgeStatus
from core.services.notifications.notification_center import NotificationCenter, NotificationType

SUCCESS_DISMISS_MS = 3000
ERROR_DISMISS_MS = 5000


class BridgeToastAdapter:
    """
    One toast per bridge run:
    approving replaces any current toast, bridging updates it in place,
    success/error finalize it and schedule its removal.
    """

    def __init__(self, center: NotificationCenter):
        self.center = center
        self.current_id: Optional[str] = None

    def __call__(self, state: BridgeState) -> None:
        self.handle(state)

    def handle(self, state: BridgeState) -> None:
        if state.status == BridgeStatus.APPROVING:
            if self.current_id:
                self.center.remove(self.current_id)
            self.current_id = self.center.show(NotificationType.LOADING, "Approving Token", state.message)

        elif state.status == BridgeStatus.BRIDGING:
            if self.current_id:
                self.center.update(
                    self.current_id, type=NotificationType.LOADING, title="Bridging Asset", message=state.message
                )
            else:
                self.current_id = self.center.show(NotificationType.LOADING, "Bridging Asset", state.message)

        elif state.status == BridgeStatus.SUCCESS:
            self._finish(NotificationType.SUCCESS, "Bridge Successful!", state.message, SUCCESS_DISMISS_MS)

        elif state.status == BridgeStatus.ERROR:
            self._finish(NotificationType.ERROR, "Bridge Failed", state.message, ERROR_DISMISS_MS)

    def _finish(self, type: NotificationType, title: str, message: str, dismiss_ms: int) -> None:
        if self.current_id:
            self.center.update(self.current_id, type=type, title=title, message=message, duration=dismiss_ms)
            notification_id = self.current_id
        else:
            # Failure before any progress toast was shown
            notification_id = self.center.show(type, title, message, duration=dismiss_ms)
        self.center.remove_after(notification_id, dismiss_ms)
        self.current_id = None
