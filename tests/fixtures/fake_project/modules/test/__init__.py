from enum import IntEnum, auto
from typing import Final

import mage


class ev:
    HELLO: Final = "world"


class Events(IntEnum):
    SUCCESS = 5000
    FAILURE = auto()
    DUNNO = auto()


class IState:
    def emit(self, actor_id, event, data=None):
        pass


def emit_success(state: mage.core.IState):
    message = "yay"
    state.emit("123", Events.SUCCESS, 1)
    state.emit("123", "TESTEVENT", message)


def notify(bus: IState, name: str):
    bus.emit("123", name)
