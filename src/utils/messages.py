from textual.message import Message


class QuitRequestedMessage(Message):
    """
    posted by the quit dialog, the app stops the analytics ticker and exits
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    posted by the sidebar once the user confirmed logging out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Posted after a login or registration succeeds, screens rebuild their
    sidebar menu for the new role
    """

    bubble = True


class CartChangedMessage(Message):
    """
    A line was added to or removed from the cart; sidebars redraw the
    cart badge.

    Post at App level when the sender is not the cart screen itself.
    """

    bubble = True


class CatalogChangedMessage(Message):
    """
    Fired by the admin screen after a product is added, edited or removed
    """

    bubble = True


class NewOrderMessage(Message):
    """
    An order was placed or moved to another status
    """

    bubble = True


class AlertsChangedMessage(Message):
    """
    Fired at app level whenever the alert ring changes, refreshes the bell
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    posted right before switch_mode, carries both mode names
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
