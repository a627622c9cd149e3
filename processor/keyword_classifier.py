"""Keyword classifier for tagging events by free-text mentions."""
import json
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Tuple

from processor.models import DEFAULT_TEXT_FIELDS, Event, KeywordCategory

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES = {
    'mar_a_lago': KeywordCategory(
        name='mar_a_lago',
        keywords=('mar-a-lago', 'mar a lago'),
    ),
    'weekday_golf': KeywordCategory(
        name='weekday_golf',
        keywords=('golf club', 'golf course', 'bedminster', 'trump golf'),
        weekday_only=True,
    ),
    'diplomats': KeywordCategory(
        name='diplomats',
        keywords=(
            'diplomat',
            'ambassador',
            'foreign',
            'minister',
            'president of',
            'prime minister',
            'taoiseach',
            'bilateral',
        ),
    ),
    'trump_properties': KeywordCategory(
        name='trump_properties',
        keywords=(
            'mar-a-lago',
            'mar a lago',
            'bedminster',
            'trump national',
            'trump international',
            'trump tower',
            'trump doral',
            'turnberry',
        ),
    ),
}


def _as_phrases(name: str, value: Any) -> Tuple[str, ...]:
    """Coerce a string or list of strings into a tuple of phrases."""
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ValueError(
            f"Category '{name}' expects a string or list, got {type(value).__name__}"
        )
    return tuple(str(item) for item in value)


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring test of text against any keyword."""
    lower_text = (text or '').lower()
    return any(keyword in lower_text for keyword in keywords)


class KeywordClassifier:
    """Classifier matching events against named keyword categories."""

    def __init__(self, categories: Mapping[str, KeywordCategory] = None):
        """
        Initialize the classifier.

        Args:
            categories: Mapping of category name to KeywordCategory
                (default: DEFAULT_CATEGORIES)
        """
        self.categories: Dict[str, KeywordCategory] = dict(
            DEFAULT_CATEGORIES if categories is None else categories
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'KeywordClassifier':
        """
        Build a classifier from plain data.

        Each value is either a list of phrases or an object with
        ``keywords`` and optional ``weekday_only`` and ``fields`` keys. A
        single string is taken as one phrase.

        Args:
            data: Mapping of category name to phrase list or category object

        Returns:
            KeywordClassifier instance
        """
        categories = {}
        for name, spec in data.items():
            if isinstance(spec, Mapping):
                keywords = spec.get('keywords', [])
                weekday_only = bool(spec.get('weekday_only', False))
                fields = _as_phrases(name, spec.get('fields') or DEFAULT_TEXT_FIELDS)
            else:
                keywords = spec
                weekday_only = False
                fields = DEFAULT_TEXT_FIELDS

            unknown = set(fields) - set(DEFAULT_TEXT_FIELDS)
            if unknown:
                raise ValueError(
                    f"Category '{name}' uses unsupported fields: {sorted(unknown)}"
                )

            categories[name] = KeywordCategory(
                name=name,
                keywords=tuple(
                    keyword.lower() for keyword in _as_phrases(name, keywords)
                ),
                weekday_only=weekday_only,
                fields=fields,
            )

        logger.info(f"Loaded {len(categories)} keyword categories")
        return cls(categories)

    @classmethod
    def from_json_file(cls, path: str) -> 'KeywordClassifier':
        """Build a classifier from a JSON category file."""
        with open(path, encoding='utf-8') as handle:
            return cls.from_mapping(json.load(handle))

    def category(self, name: str) -> KeywordCategory:
        """Return a category by name, raising KeyError if unknown."""
        return self.categories[name]

    def matches(self, event: Event, category_name: str) -> bool:
        """
        Test whether an event mentions any keyword of a category.

        Every configured text field is checked independently.

        Args:
            event: Canonical event
            category_name: Name of the category to test

        Returns:
            True if any field contains any keyword
        """
        category = self.category(category_name)
        return any(
            contains_keyword(getattr(event, field_name), category.keywords)
            for field_name in category.fields
        )

    def predicate(self, category_name: str) -> Callable[[Event], bool]:
        """Return a single-argument predicate for a category."""
        self.category(category_name)
        return lambda event: self.matches(event, category_name)
