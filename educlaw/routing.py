"""Chooses which agent handles a message."""

from __future__ import annotations


def _contains(text: str, *keywords: str) -> bool:
    return any(keyword in text for keyword in keywords)


def route(actor_type: str, content: str) -> str:
    """Return the agent type for a message from an actor of ``actor_type``."""
    lower = content.lower()

    if actor_type == "teacher":
        if _contains(lower, "lesson", "plan", "curriculum", "备课", "教案"):
            return "planner"
        if _contains(lower, "class", "student", "grade", "学情", "成绩"):
            return "analyst"
        return "teacher"

    if actor_type in ("family", "parent"):
        if _contains(lower, "progress", "report", "score", "进度", "报告", "成绩"):
            return "analyst"
        if _contains(lower, "plan", "goal", "schedule", "计划", "目标"):
            return "planner"
        return "parent"

    if actor_type == "student":
        if _contains(lower, "plan", "schedule", "today", "计划", "今天", "安排"):
            return "planner"
        if _contains(lower, "game", "play", "fun", "游戏", "玩", "有趣"):
            return "companion"
        return "tutor"

    return "tutor"