"""
Instruction message rendering for the OpenClaw agent.
"""

from __future__ import annotations

from .notifications import Notification

COMMANDS_REFERENCE = """\
fizzy reaction list --card NUMBER
fizzy reaction create --card NUMBER --content "emoji"
fizzy reaction delete REACTION_ID --card NUMBER
fizzy reaction list --card NUMBER --comment COMMENT_ID
fizzy reaction create --card NUMBER --comment COMMENT_ID --content "emoji"
fizzy reaction delete REACTION_ID --card NUMBER --comment COMMENT_ID
fizzy comment list --card NUMBER [--page N] [--all]
fizzy comment show COMMENT_ID --card NUMBER
fizzy comment create --card NUMBER --body "HTML" [--body_file PATH] [--created-at TIMESTAMP]
fizzy comment update COMMENT_ID --card NUMBER [--body "HTML"] [--body_file PATH]
fizzy comment delete COMMENT_ID --card NUMBER
fizzy card column CARD_NUMBER --column ID     # Move to column (use column ID or: maybe, not-yet, done)
fizzy card move CARD_NUMBER --to BOARD_ID     # Move card to a different board
fizzy card assign CARD_NUMBER --user ID       # Toggle user assignment
fizzy card tag CARD_NUMBER --tag "name"       # Toggle tag (creates tag if needed)
fizzy card watch CARD_NUMBER                  # Subscribe to notifications
fizzy card unwatch CARD_NUMBER                # Unsubscribe
fizzy card pin CARD_NUMBER                    # Pin card for quick access
fizzy card unpin CARD_NUMBER                  # Unpin card
fizzy card golden CARD_NUMBER                 # Mark as golden/starred
fizzy card ungolden CARD_NUMBER               # Remove golden status
fizzy card image-remove CARD_NUMBER           # Remove header image
"""

TASK_SECTION = """\
- Read the Card from the notification.
- Read the latest comment on the card.
- Check whether the card already have 👀 reaction (boost) from you.
  - Send 👀 boost to the card URL provided ONLY WHEN there is no boost from you
- DO THE INSTRUCTION in the latest comment if any instruction is provided.
- DO NOTHING if there is no action.
"""


def render_sections(sections: list[tuple[str, str]]) -> str:
    parts: list[str] = []
    for title, body in sections:
        if title:
            parts.append(f"# {title}")
        parts.append(body.rstrip("\n"))
        parts.append("")
    return "\n".join(parts)


def render_message(notification: Notification) -> str:
    """Render the instruction text for one human-visible notification.

    Pure: the same notification always gives the same text.
    """
    creator = notification.creator
    details = "\n".join(
        [
            f"From: {creator.name if creator else ''} ({creator.id if creator else ''})",
            f"Title: {notification.title}",
            f"Message: {notification.body}",
            f"Card: {notification.card_number}",
        ]
    )
    return render_sections(
        [
            ("", "You have a new notification in Fizzy that requires your attention."),
            ("Fizzy command check", "DO NOTHING if fizzy is not available in shell."),
            ("Task", TASK_SECTION),
            ("Notification details", details),
            ("Commands Reference", COMMANDS_REFERENCE),
        ]
    )
