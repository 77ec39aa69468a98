from __future__ import annotations  # Shared prompt helpers for interviewer agents

from typing import Iterable, List, Sequence

from ..models import ConversationTurn


def transcript_messages(history: Sequence[ConversationTurn]) -> List[dict]:  # Map conversation turns to chat message dicts
    messages: List[dict] = []
    for turn in history:
        role = "assistant" if turn.role == "ai" else "user"
        content = (turn.raw_text if turn.role == "ai" and turn.raw_text else turn.content).strip()
        if not content:
            continue
        messages.append({"role": role, "content": content})
    return messages


def clamp_text(text: str, limit: int = 4000) -> str:  # Compact whitespace and clip length
    compact = " ".join((text or "").split())
    if len(compact) <= limit:
        return compact
    return compact[: limit - 1].rstrip() + "…"


def bullet_list(entries: Iterable[str]) -> str:  # Render entries as markdown bullets
    lines = [item.strip() for item in entries if item and item.strip()]
    if not lines:
        return "None yet."
    return "\n".join(f"- {line}" for line in lines)


__all__ = ["bullet_list", "clamp_text", "transcript_messages"]
