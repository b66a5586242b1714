"""Application layer package."""

from chartdesk.application.events import EventBus, Notice, NoticeLevel

__all__ = ["EventBus", "Notice", "NoticeLevel"]
