from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user confirms logging out
    """

    bubble = True


class RoleSwitchRequestedMessage(Message):
    """
    Fired by the sidebar toggle; handled at app level
    """

    bubble = True

    def __init__(self, is_seller_mode: bool) -> None:
        super().__init__()
        self.is_seller_mode = is_seller_mode


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
