from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class NotificationsChangedMessage(Message):
    """
    Fired by the low-stock poll when a notification was added
    """

    bubble = True
