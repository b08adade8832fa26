"""Notification errors."""


class NotificationError(Exception):
    """An email could not be delivered to one recipient.

    Raised inside the delivery path only; the notifier logs it and counts a
    failure instead of propagating it.
    """

    def __init__(self, recipient: str, alert_type: str, detail: str):
        self.recipient = recipient
        self.alert_type = alert_type
        self.detail = detail
        super().__init__(f"Failed to deliver {alert_type} to {recipient}: {detail}")


class AlertSettingNotFoundError(LookupError):
    """Admin update targeted an alert type with no stored setting."""

    def __init__(self, alert_type: str):
        self.alert_type = alert_type
        super().__init__(f"Alert setting {alert_type} not found")
