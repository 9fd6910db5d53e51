from agriassist.commands.login_command import LoginCommand
from agriassist.commands.send_message_command import SendMessageCommand

__all__ = ["LoginCommand", "SendMessageCommand"]
