"""
Built-in skill catalog.

Used whenever the durable store is missing, unreachable, empty, or holds
rows that fail validation, so the bot is always routable.
"""

from __future__ import annotations

from typing import List

from sparkybot.skills.models import AutonomyLevel, SkillDescriptor

FALLBACK_SKILL_ID = "general"


DEFAULT_SKILLS: List[SkillDescriptor] = [
    SkillDescriptor(
        id="calendar",
        name="Calendar Management",
        description="Manages Google Calendar - scheduling, viewing, modifying events",
        trigger_patterns=[
            "schedule", "meeting", "appointment", "calendar", "event",
            "when am i free", "what's on my calendar", "book time",
            "cancel meeting", "reschedule", "availability",
        ],
        required_inputs=["action", "datetime?", "title?", "attendees?"],
        outputs=["confirmation", "event_details"],
        autonomy_level=AutonomyLevel.APPROVAL_REQUIRED,
    ),
    SkillDescriptor(
        id="email",
        name="Email Management",
        description="Manages Gmail - reading, summarizing, drafting, sending emails",
        trigger_patterns=[
            "email", "inbox", "mail", "message from", "send to",
            "reply to", "draft", "unread", "important emails",
        ],
        required_inputs=["action", "recipient?", "subject?", "body?"],
        outputs=["email_summary", "draft", "confirmation"],
        autonomy_level=AutonomyLevel.APPROVAL_REQUIRED,
    ),
    SkillDescriptor(
        id="market",
        name="Market Intelligence",
        description="Stock and crypto market analysis, portfolio tracking",
        trigger_patterns=[
            "stock", "market", "portfolio", "crypto", "bitcoin",
            "price of", "how's the market", "investment", "trading",
            "positions", "gains", "losses", "analysis", "nvda", "aapl", "tsla",
        ],
        required_inputs=["query_type", "symbols?", "timeframe?"],
        outputs=["market_report", "analysis", "recommendations"],
        autonomy_level=AutonomyLevel.FULL,
    ),
    SkillDescriptor(
        id="code-exec",
        name="Code Execution",
        description="Executes coding tasks via a coding agent CLI",
        trigger_patterns=[
            "code", "program", "script", "fix bug", "implement",
            "create function", "refactor", "debug", "deploy",
            "commit", "push", "pull request", "github",
        ],
        required_inputs=["task_description", "repo?", "files?"],
        outputs=["code_output", "commit_info", "execution_result"],
        autonomy_level=AutonomyLevel.APPROVAL_REQUIRED,
    ),
    SkillDescriptor(
        id="social",
        name="Social Media Management",
        description="Monitors and posts to X (Twitter) and Facebook",
        trigger_patterns=[
            "tweet", "post", "twitter", "x.com", "facebook",
            "social media", "mentions", "dm", "direct message",
            "followers", "engagement",
        ],
        required_inputs=["platform", "action", "content?"],
        outputs=["post_draft", "mentions_summary", "engagement_report"],
        autonomy_level=AutonomyLevel.APPROVAL_REQUIRED,
    ),
    SkillDescriptor(
        id="kanban",
        name="Project Management",
        description="Kanban board for task and project management",
        trigger_patterns=[
            "task", "todo", "project", "kanban", "board",
            "add task", "complete", "move to", "backlog",
            "in progress", "done", "blocked", "lifewave", "vumira",
        ],
        required_inputs=["action", "task_title?", "status?", "project?"],
        outputs=["task_confirmation", "board_summary"],
        autonomy_level=AutonomyLevel.FULL,
    ),
    SkillDescriptor(
        id="reminders",
        name="Reminders",
        description="Calendar-linked reminders and notifications",
        trigger_patterns=[
            "remind me", "reminder", "don't forget", "alert me",
            "notify me", "set reminder", "remember to",
        ],
        required_inputs=["reminder_text", "datetime"],
        outputs=["reminder_confirmation"],
        dependencies=["calendar"],
        autonomy_level=AutonomyLevel.FULL,
    ),
    SkillDescriptor(
        id=FALLBACK_SKILL_ID,
        name="Executive Assistant (General)",
        description="General queries, research, decision support - default handler",
        trigger_patterns=[],
        required_inputs=["query"],
        outputs=["response"],
        autonomy_level=AutonomyLevel.FULL,
    ),
]
