"""Actor registration helpers: type selection, profile text and portal paths."""

from __future__ import annotations

_CHOICES = {"1": "student", "2": "family", "3": "teacher"}

_PORTALS = {"student": "/student", "family": "/parent", "teacher": "/teacher"}


def parse_actor_choice(choice: str) -> str:
    """Map a menu choice ("1", "2" or "3") to an actor type."""
    key = choice.strip()
    try:
        return _CHOICES[key]
    except KeyError:
        raise ValueError(f"无效选择: {key}") from None


def build_profile(name: str, actor_type: str, grade: str, subject: str) -> str:
    """The initial PROFILE.md content for a newly registered actor."""
    if actor_type == "student":
        return f"""# 学生档案

## 基本信息
- 姓名: {name}
- 年级: {grade}
- 学习风格: (待填写)
- 兴趣爱好: (待填写)

## 学习目标
- (待填写)
"""
    if actor_type == "family":
        return f"""# 家庭档案

## 基本信息
- 家长姓名: {name}
- 家庭情况: (待填写)

## 孩子信息
- (待关联)
"""
    if actor_type == "teacher":
        return f"""# 教师档案

## 基本信息
- 姓名: {name}
- 科目: {subject}
- 学校: (待填写)
- 年级: (待填写)

## 教学理念
- (待填写)
"""
    return f"# Profile\n\nName: {name}\n"


def portal_path(actor_type: str) -> str:
    """The web portal path where an actor of ``actor_type`` signs in."""
    try:
        return _PORTALS[actor_type]
    except KeyError:
        raise ValueError(f"unknown actor type: {actor_type}") from None