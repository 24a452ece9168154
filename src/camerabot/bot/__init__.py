"""Command relay core for camerabot.

Public API:
    AllowList, SessionPool -- Who may talk to the bot, and their state
    CommandDispatcher -- Decides reply / enqueue / drop per message
    ExecutionQueue -- Bounded FIFO of execute requests
    ExecutionWorker -- Runs the script under the resource lock
    CameraBot -- Wires everything to the chat client
"""

from camerabot.bot.bridge import CameraBot, StartupError
from camerabot.bot.dispatcher import CommandDispatcher
from camerabot.bot.queue import ExecutionQueue
from camerabot.bot.sessions import AllowList, SessionPool
from camerabot.bot.worker import ExecutionWorker

__all__ = [
    "AllowList",
    "CameraBot",
    "CommandDispatcher",
    "ExecutionQueue",
    "ExecutionWorker",
    "SessionPool",
    "StartupError",
]
