"""
Fizzy Pop (Fizzy notifications -> OpenClaw webhook relay)

Where: long-running daemon, one process per deployment.
What:  Poll Fizzy notifications for each configured agent, mark them read,
       and forward an instruction message to the OpenClaw agent webhook.
Why:   Let automation agents react to Fizzy mentions without bot-to-bot loops.
"""

__version__ = "0.3.0"

__all__ = [
    "agent",
    "breadcrumbs",
    "cli",
    "config",
    "delivery",
    "fizzy",
    "logs",
    "message",
    "notifications",
    "scheduler",
    "webhook",
]
