"""
Bot Filler - Synthetic players that bring a room up to quorum.

Bots are ordinary players in every count; this service only decides how many
to add, what they are called, and what they submit and vote for. Text comes
from the language model when it is available and from deterministic fallbacks
otherwise, so a bot can never leave a round waiting on an external service.
"""

import logging
import random
import re
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from acrophylia.core.models import BotPlayer, Room
from acrophylia.services.language_model_service import LanguageModelError, LanguageModelService

logger = logging.getLogger(__name__)

BOT_NAMES = [
    'AcroBot', 'Letterbox', 'Capitalist', 'Abbreviator', 'InitialD',
    'WordSmith', 'Glyphster', 'Alphabetty', 'Shorthand', 'Monogram',
]

# Fallback vocabulary, a few words per letter
WORD_BANK: Dict[str, List[str]] = {
    'A': ['Always', 'Angry', 'Awesome'], 'B': ['Big', 'Bouncing', 'Brave'],
    'C': ['Cats', 'Crazy', 'Cosmic'], 'D': ['Dance', 'Daring', 'Dizzy'],
    'E': ['Every', 'Eager', 'Epic'], 'F': ['Funky', 'Flying', 'Fresh'],
    'G': ['Giant', 'Groovy', 'Gentle'], 'H': ['Happy', 'Hungry', 'Huge'],
    'I': ['Incredible', 'Icy', 'Itchy'], 'J': ['Jolly', 'Jumping', 'Jazzy'],
    'K': ['Kind', 'Kooky', 'Keen'], 'L': ['Lazy', 'Loud', 'Lucky'],
    'M': ['Mighty', 'Magic', 'Moody'], 'N': ['Nice', 'Noisy', 'Nimble'],
    'O': ['Odd', 'Orange', 'Outrageous'], 'P': ['Purple', 'Proud', 'Peppy'],
    'Q': ['Quick', 'Quiet', 'Quirky'], 'R': ['Rapid', 'Royal', 'Rowdy'],
    'S': ['Silly', 'Sneaky', 'Sunny'], 'T': ['Tiny', 'Terrific', 'Tasty'],
    'U': ['Ultra', 'Unusual', 'Upbeat'], 'V': ['Very', 'Vivid', 'Valiant'],
    'W': ['Wild', 'Wacky', 'Wise'], 'X': ['Xtra', 'Xenial', 'Xylophone'],
    'Y': ['Young', 'Yummy', 'Yelling'], 'Z': ['Zany', 'Zesty', 'Zippy'],
}


class BotFiller:
    """Adds bots to reach quorum and produces their entries and votes."""

    def __init__(self, language_model: Optional[LanguageModelService] = None,
                 quorum: int = 4, delay_range: Tuple[float, float] = (2.0, 8.0),
                 rng: Optional[random.Random] = None):
        self.language_model = language_model
        self.quorum = quorum
        self.delay_range = delay_range
        self._rng = rng or random.Random()

    def fill(self, room: Room) -> List[BotPlayer]:
        """
        Append bots to the room until it holds ``quorum`` players.

        Args:
            room: Room to fill (caller holds its lock)

        Returns:
            The bots added, in join order
        """
        added = []
        while len(room.players) < self.quorum:
            bot = BotPlayer(id=f'bot-{uuid.uuid4().hex[:8]}', name=self._pick_name(room))
            room.players.append(bot)
            added.append(bot)
            logger.info(f"Added bot {bot.name} ({bot.id}) to room {room.id}")
        return added

    def _pick_name(self, room: Room) -> str:
        taken = {p.name for p in room.players}
        for name in BOT_NAMES:
            if name not in taken:
                return name
        number = len(room.bot_players()) + 1
        while f'Bot {number}' in taken:
            number += 1
        return f'Bot {number}'

    def next_delay(self) -> float:
        """Seconds a bot waits before acting, so rounds do not resolve instantly."""
        low, high = self.delay_range
        return self._rng.uniform(low, high)

    # Submissions

    def make_entry(self, letter_set: Sequence[str], category: Optional[str], seed: int = 0) -> str:
        """Produce an acronym for the letter set, via the language model if possible."""
        if self.language_model is not None and self.language_model.is_available():
            prompt = (
                f"Create a funny acronym using the letters {' '.join(letter_set)} "
                f"for the category '{category}'. Use exactly one word per letter, in order. "
                f"Reply with the acronym words only."
            )
            try:
                text = self.language_model.generate(prompt, max_tokens=50)
                cleaned = self._clean_entry(text, letter_set)
                if cleaned:
                    return cleaned
                logger.warning(f"Language model entry did not match letters {letter_set}: {text!r}")
            except LanguageModelError as e:
                logger.warning(f"Language model entry failed, using fallback: {e}")
        return self.fallback_entry(letter_set, seed)

    def fallback_entry(self, letter_set: Sequence[str], seed: int = 0) -> str:
        words = []
        for position, letter in enumerate(letter_set):
            options = WORD_BANK.get(letter.upper(), [letter.upper()])
            words.append(options[(seed + position) % len(options)])
        return ' '.join(words)

    def _clean_entry(self, text: str, letter_set: Sequence[str]) -> Optional[str]:
        words = re.findall(r"[A-Za-z][A-Za-z'-]*", text.splitlines()[0] if text else '')
        if len(words) != len(letter_set):
            return None
        for word, letter in zip(words, letter_set):
            if word[0].upper() != letter.upper():
                return None
        return ' '.join(words)

    # Votes

    def choose_vote(self, bot_id: str, entries: Sequence[Tuple[str, str]],
                    category: Optional[str] = None) -> Optional[str]:
        """
        Pick the entry a bot votes for.

        Args:
            bot_id: Voting bot, whose own entry is never chosen
            entries: (player_id, text) pairs in submission order
            category: Round category, for the language model prompt

        Returns:
            Target player id, or None if there is nothing to vote for
        """
        candidates = [(pid, text) for pid, text in entries if pid != bot_id]
        if not candidates:
            return None

        if self.language_model is not None and self.language_model.is_available() and len(candidates) > 1:
            listing = '\n'.join(f"{i + 1}. {text}" for i, (_, text) in enumerate(candidates))
            prompt = (
                f"Rate these acronyms for the category '{category}' and pick the funniest.\n"
                f"{listing}\nReply with the number of the best one only."
            )
            try:
                text = self.language_model.generate(prompt, max_tokens=10, temperature=0.3)
                match = re.search(r'\d+', text)
                if match and 1 <= int(match.group()) <= len(candidates):
                    return candidates[int(match.group()) - 1][0]
                logger.warning(f"Language model vote was not a valid choice: {text!r}")
            except LanguageModelError as e:
                logger.warning(f"Language model vote failed, using fallback: {e}")

        return self.fallback_vote(candidates)

    def fallback_vote(self, candidates: Sequence[Tuple[str, str]]) -> str:
        """Earliest submitted candidate."""
        return candidates[0][0]
