from .base import Actor, ScreenGroup
from .hardware import SocketBuzzer
from .screens import SocketGameUI

__all__ = ['Actor', 'ScreenGroup', 'SocketBuzzer', 'SocketGameUI']
