"""Wire encoding for plotter commands."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from plottybot.core.model import CommandKind, MotionCommand

LOGGER = logging.getLogger(__name__)


class CommandSink(Protocol):
    def send(self, message: dict[str, Any]) -> bool:
        """Transmit a wire message, returning whether it left the process."""


def encode(command: MotionCommand) -> dict[str, Any]:
    """Build the JSON-ready message for ``command``.

    ``stop`` is global and carries no ``target``; every other kind does.
    """
    if command.kind is CommandKind.STOP:
        return {"type": command.kind.value}

    if command.actor_id is None:
        raise ValueError(f"{command.kind.value} command needs an actor id")

    message: dict[str, Any] = {"type": command.kind.value, "target": command.actor_id}
    if command.kind is CommandKind.MOVE_TO:
        if command.payload is None:
            raise ValueError("goToXY command needs a move payload")
        message["x"] = command.payload.x
        message["y"] = command.payload.y
        message["oldX"] = command.payload.old_x
        message["oldY"] = command.payload.old_y
    return message


class CommandEncoder:
    def __init__(self, sink: CommandSink) -> None:
        self._sink = sink

    def dispatch(self, command: MotionCommand) -> bool:
        message = encode(command)
        sent = self._sink.send(message)
        if sent:
            LOGGER.debug("Sent %s", message)
        return sent
