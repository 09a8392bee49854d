"""
Content Manager for Acrophylia

Supplies the letter set and category for each round. Categories are loaded
from a YAML catalogue; letters are drawn from a weighted pool so that rounds
stay playable.
"""

import logging
import random
from typing import Any, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    'Movies', 'Food', 'Animals', 'Sports', 'Music', 'Technology',
    'Travel', 'History', 'Science', 'Office Life', 'Superheroes', 'Weather',
]

# Common letters appear more than once; Q, X and Z are left out entirely
LETTER_POOL = (
    'AAABBBCCCDDDEEEFFGGHHHIIJKLLLMMMNNOOPPPRRRSSSSTTTUVWWY'
)

MIN_LETTERS = 3
MAX_LETTERS = 7


class ContentValidationError(Exception):
    """Raised when YAML content validation fails."""
    pass


class ContentManager:
    """Round content provider backed by a YAML category catalogue."""

    def __init__(self, yaml_file_path: str = "categories.yaml", rng: Optional[random.Random] = None):
        """
        Args:
            yaml_file_path: Path to the YAML file containing categories
            rng: Random source, injectable for deterministic tests
        """
        self.yaml_file_path = yaml_file_path
        self.categories: List[str] = []
        self._loaded = False
        self._rng = rng or random.Random()

    def load_categories_from_yaml(self) -> None:
        """
        Load categories from the YAML file.

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ContentValidationError: If YAML structure is invalid
            yaml.YAMLError: If YAML parsing fails
        """
        try:
            with open(self.yaml_file_path, 'r', encoding='utf-8') as file:
                data = yaml.safe_load(file)

            self.validate_yaml_structure(data)
            self.categories = [c.strip() for c in data['categories']]
            self._loaded = True
            logger.info(f"Successfully loaded {len(self.categories)} categories from {self.yaml_file_path}")

        except FileNotFoundError:
            logger.error(f"YAML file not found: {self.yaml_file_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}")
            raise
        except ContentValidationError as e:
            logger.error(f"Content validation error: {e}")
            raise

    def validate_yaml_structure(self, data: Any) -> None:
        """
        Validate the structure of loaded YAML data.

        Raises:
            ContentValidationError: If structure is invalid
        """
        if not isinstance(data, dict):
            raise ContentValidationError("YAML root must be a dictionary")

        if 'categories' not in data:
            raise ContentValidationError("YAML must contain 'categories' key")

        categories = data['categories']
        if not isinstance(categories, list):
            raise ContentValidationError("'categories' must be a list")

        if len(categories) == 0:
            raise ContentValidationError("'categories' list cannot be empty")

        for i, category in enumerate(categories):
            if not isinstance(category, str):
                raise ContentValidationError(f"Category {i} must be a string")
            if not category.strip():
                raise ContentValidationError(f"Category {i} cannot be empty")

        stripped = [c.strip().lower() for c in categories]
        if len(stripped) != len(set(stripped)):
            raise ContentValidationError("Duplicate categories found")

    def letter_count(self, round_number: int) -> int:
        """Three letters in round one, one more each round, capped at seven."""
        return max(MIN_LETTERS, min(MAX_LETTERS, MIN_LETTERS + round_number - 1))

    def generate_letter_set(self, round_number: int) -> List[str]:
        return [self._rng.choice(LETTER_POOL) for _ in range(self.letter_count(round_number))]

    def pick_category(self) -> str:
        pool = self.categories if self._loaded and self.categories else DEFAULT_CATEGORIES
        return self._rng.choice(pool)

    def next(self, round_number: int) -> Tuple[List[str], str]:
        """
        Content for a round. Never fails: falls back to the built-in
        categories when the catalogue has not been loaded.
        """
        return self.generate_letter_set(round_number), self.pick_category()

    def get_category_count(self) -> int:
        return len(self.categories) if self._loaded else 0
