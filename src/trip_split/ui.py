"""Interactive UI components for picking trip members."""

import logging
from collections import Counter
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Member

logger = logging.getLogger(__name__)


class MemberCompleter(Completer):
    """Fuzzy search completer for trip members."""

    def __init__(self, members: list[Member]):
        """Initialize the completer with the trip's members."""
        self.members = members
        self.labels = member_labels(members)
        self.name_to_id = {label: member_id for member_id, label in self.labels.items()}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for member in self.members:
            label = self.labels[member.id]
            if not query or fuzzy_match(query, label.lower()):
                yield Completion(
                    text=label,
                    start_position=-len(document.text),
                    display=label,
                )


def member_labels(members: list[Member]) -> dict[str, str]:
    """
    Map member id -> display label.

    Labels are the member's name, with the id appended when another member
    has the same name, e.g. "Minh (a1b2c3d4)".
    """
    counts = Counter(member.name for member in members)
    return {
        member.id: member.name if counts[member.name] == 1 else f"{member.name} ({member.id})"
        for member in members
    }


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="lnh" matches "Linh"
        query="an" matches "Minh Anh"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


def select_member_interactive(members: list[Member], prompt_label: str = "Paid by") -> str | None:
    """
    Interactive member selection with fuzzy search.

    Args:
        members: The trip's members
        prompt_label: Label shown before the input

    Returns:
        Selected member ID, or None to cancel
    """
    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    completer = MemberCompleter(members)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt(f"{prompt_label}: ", complete_while_typing=True)

            if not result:
                return None

            member_id = completer.name_to_id.get(result)
            if member_id:
                logger.info(f"User selected member: {result}")
                return member_id

            print("❌ Unknown member. Please select from the list or press Tab to complete.")

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None


def confirm(message: str) -> bool:
    """Simple yes/no confirmation, defaulting to no."""
    response = input(f"{message} [y/N] ").strip().lower()
    return response in ("y", "yes")
