"""
Chat prompt construction.

Prompt size stays bounded regardless of history length: only the most
recent scans and conversation turns are embedded.
"""

from typing import List, Optional, Sequence

from foodlens.domain.chat.models import ChatTurn
from foodlens.domain.profile.models import HealthProfile
from foodlens.domain.scan.analysis.prompts import format_number
from foodlens.domain.scan.persistence.models import ScanRecord

MAX_RECENT_SCANS = 5
MAX_CONVERSATION_TURNS = 10

CHAT_PERSONA = """You are FoodWise AI, a personal nutrition and health assistant. You are helpful, friendly, and knowledgeable about nutrition, health, and food choices.

PERSONALITY:
- Be conversational and warm, like a knowledgeable friend
- Keep responses concise but informative
- Be encouraging and supportive about health goals
- Provide actionable advice when appropriate"""

CHAT_RESPONSE_FORMAT = """RESPONSE FORMAT:
- Use plain text only, no markdown formatting (no *, **, _, __, `, ~~)
- Write naturally without special formatting
- Keep responses conversational and easy to read

Please respond naturally and helpfully. If the user asks about nutrition, health, food choices, or their scan history, provide relevant advice. If they ask general questions, answer them while keeping the conversation friendly and on-topic when possible."""


def _render_profile(profile: HealthProfile) -> str:
    conditions = profile.all_conditions()
    lines = ["USER PROFILE:"]
    if profile.name:
        lines.append(f"- Name: {profile.name}")
    lines.extend(
        [
            f"- Age: {profile.age}",
            f"- Height: {format_number(profile.height_cm)}cm, "
            f"Weight: {format_number(profile.weight_kg)}kg",
            f"- Health Conditions: {', '.join(conditions) if conditions else 'None specified'}",
            f"- Goals: {profile.health_goals or 'Maintain healthy eating habits'}",
        ]
    )
    if profile.additional_concerns:
        lines.append(f"- Additional Concerns: {profile.additional_concerns}")
    return "\n".join(lines)


def build_chat_prompt(
    profile: Optional[HealthProfile],
    recent_scans: Sequence[ScanRecord],
    conversation_tail: Sequence[ChatTurn],
    user_message: str,
) -> str:
    """Build the assistant prompt for one chat reply.

    Args:
        profile: Health profile, if the user has one
        recent_scans: Scan history, newest first; only the first 5 are used
        conversation_tail: Prior turns, oldest first; only the last 10 are used
        user_message: Message being answered

    Returns:
        Prompt text
    """
    sections: List[str] = [CHAT_PERSONA]

    if profile is not None:
        sections.append(_render_profile(profile))

    scans = list(recent_scans)[:MAX_RECENT_SCANS]
    if scans:
        sections.append("RECENT FOOD SCANS:\n" + "\n".join(f"- {scan.summary()}" for scan in scans))

    turns = list(conversation_tail)[-MAX_CONVERSATION_TURNS:]
    if turns:
        sections.append(
            "CONVERSATION HISTORY:\n" + "\n".join(f"{turn.role}: {turn.content}" for turn in turns)
        )

    sections.append(f"USER MESSAGE: {user_message}")
    sections.append(CHAT_RESPONSE_FORMAT)
    return "\n\n".join(sections)
