"""
Services package for Acrophylia

Contains the single-purpose services the room state machine is composed of.
"""

from .concurrency_control_service import ConcurrencyControlService
from .session_service import SessionService
from .submission_service import SubmissionCollector
from .vote_service import VoteTally
from .scoring_service import ScoreKeeper
from .timer_service import TimerScheduler
from .bot_service import BotFiller
from .language_model_service import LanguageModelService, LanguageModelError

__all__ = [
    'ConcurrencyControlService',
    'SessionService',
    'SubmissionCollector',
    'VoteTally',
    'ScoreKeeper',
    'TimerScheduler',
    'BotFiller',
    'LanguageModelService',
    'LanguageModelError'
]
