"""
SceneMCP chat assistant

Turns each line the user types into a scene command and answers with a
short message, the way the chat pane shows it.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import List

from .client.client import SceneClient
from .common.errors import ConnectionError
from .nlp import parser
from .nlp.parser import ParsedCommand

logger = logging.getLogger(__name__)

CLARIFICATION = (
    "Sorry, I didn't understand that. Try something like "
    "\"create a red cube at 1 2 3\", \"delete all\" or \"what is in the scene\"."
)
DELETE_BY_NAME_UNSUPPORTED = (
    "I can't tell which object you mean yet. Say \"delete all\" to clear the scene."
)
NOT_CONNECTED = "I'm not connected to the scene server right now, please try again shortly."


@dataclass
class ChatMessage:
    role: str  # "user" or "assistant"
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: float = field(default_factory=time.time)


class SceneAssistant:
    """Chat front end over the parser and the scene client"""

    def __init__(self, client: SceneClient):
        self.client = client
        self.history: List[ChatMessage] = []

    async def handle(self, text: str) -> str:
        """Handle one user message and return the assistant's reply"""
        text = text.strip()
        if not text:
            return ""
        self.history.append(ChatMessage("user", text))

        command = parser.parse(text)
        logger.debug(f"Parsed {text!r} as {command.type}")
        try:
            reply = await self._respond(command)
        except ConnectionError as e:
            logger.error(f"Command not sent: {e}")
            reply = NOT_CONNECTED

        self.history.append(ChatMessage("assistant", reply))
        return reply

    async def _respond(self, command: ParsedCommand) -> str:
        if command.type == parser.CREATE:
            obj = parser.command_to_object(command)
            await self.client.create_object(obj)
            return f"Created a {parser.describe(command)}."

        if command.type == parser.DELETE:
            if command.object_id == parser.ALL_OBJECTS:
                await self.client.clear_scene()
                return "Cleared the scene."
            return DELETE_BY_NAME_UNSUPPORTED

        if command.type == parser.QUERY:
            return self._describe_scene()

        return CLARIFICATION

    def _describe_scene(self) -> str:
        if self.client.mirror is None:
            return "I can't see the scene from here."
        objects = self.client.mirror.snapshot()["objects"]
        if not objects:
            return "The scene is empty."
        lines = [f"The scene has {len(objects)} object{'s' if len(objects) != 1 else ''}:"]
        for obj in objects:
            lines.append(
                f"- {parser.color_name(obj['color'])} {parser.shape_name(obj['type'])} "
                f"at {parser.format_vector(obj['position'])} ({obj['id']})"
            )
        return "\n".join(lines)
