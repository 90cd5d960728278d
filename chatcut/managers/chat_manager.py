"""
Chat history management for ChatCut.
"""

import os
import json
import uuid
from typing import Iterator, List, Optional

from ..errors import ValidationError
from ..models import CHAT_ROLES, ChatMessage
from ..utils.logging_utils import DualLogger, get_log_helper


class ChatLog:
    """Append-only conversation between the user and the edit assistant."""

    def __init__(self, messages: Optional[List[ChatMessage]] = None):
        self._messages: List[ChatMessage] = list(messages or [])

    def append(self, role: str, text: str) -> ChatMessage:
        if role not in CHAT_ROLES:
            raise ValueError(f"role must be one of {CHAT_ROLES}, got {role!r}")
        message = ChatMessage(id=uuid.uuid4().hex, role=role, text=text)
        self._messages.append(message)
        return message

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def last(self) -> Optional[ChatMessage]:
        return self._messages[-1] if self._messages else None

    def reset(self, messages: Optional[List[ChatMessage]] = None):
        """Start over, optionally from a saved history."""
        self._messages = list(messages or [])

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))


class ChatManager:
    """Handles chat history loading and saving."""

    FILENAME = "chat_history.json"

    @staticmethod
    def load_chat_history(project_path: Optional[str], logger: Optional[DualLogger] = None) -> List[ChatMessage]:
        """
        Load chat history from project folder.

        Args:
            project_path: Path to project folder
            logger: Optional DualLogger

        Returns:
            List of chat messages; empty when the file is missing or unreadable
        """
        log = get_log_helper(logger, verbose=True)
        if not project_path:
            return []

        chat_history_path = os.path.join(project_path, ChatManager.FILENAME)
        if not os.path.exists(chat_history_path):
            return []

        try:
            with open(chat_history_path, 'r', encoding='utf-8') as f:
                content = f.read().strip()
            if not content:
                log.warning("[CHATCUT] chat_history.json is empty, starting with empty chat history")
                return []

            chat_data = json.loads(content)
            if not isinstance(chat_data, list):
                log.warning("[CHATCUT] chat_history.json has invalid structure (expected list), starting with empty chat history")
                return []

            history = []
            for entry in chat_data:
                try:
                    history.append(ChatMessage.from_dict(entry))
                except (ValidationError, AttributeError):
                    log.warning(f"[CHATCUT] Skipping invalid chat history entry: {entry}")

            if len(history) != len(chat_data):
                log.info(f"[CHATCUT] Loaded {len(history)} valid entries from chat_history.json "
                         f"(skipped {len(chat_data) - len(history)} invalid)")
            return history

        except json.JSONDecodeError:
            log.warning("[CHATCUT] chat_history.json contains invalid JSON, starting with empty chat history")
            return []
        except OSError as e:
            log.warning(f"[CHATCUT] Failed to load chat history: {e}")
            return []

    @staticmethod
    def save_chat_history(project_path: Optional[str], messages: List[ChatMessage]) -> None:
        """
        Save chat history to project folder.

        Args:
            project_path: Path to project folder
            messages: Chat messages to save
        """
        if not project_path:
            return

        chat_history_path = os.path.join(project_path, ChatManager.FILENAME)
        with open(chat_history_path, 'w', encoding='utf-8') as f:
            json.dump([m.to_dict() for m in messages], f, indent=2)
