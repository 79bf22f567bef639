"""Interaction package: commands, feedback, speech, haptics and voice input."""

from interaction.commands import CommandParser, ParsedCommand
from interaction.feedback import FeedbackEvent, FeedbackKind

__all__ = ["CommandParser", "FeedbackEvent", "FeedbackKind", "ParsedCommand"]
