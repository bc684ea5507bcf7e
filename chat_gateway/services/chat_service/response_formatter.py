"""
Post-processing and classification of finished model replies.

Raw generations often come back as one long block with uneven spacing.
ResponseFormatter normalizes whitespace, splits long unstructured text into
short paragraphs and tags the result as simple or detailed for clients that
render a summary first.
"""

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Literal

from ...core.logging import logger

BLANK_LINES_PATTERN = re.compile(r'\n\s*\n')
# Horizontal whitespace after terminal punctuation that is followed by text
SENTENCE_GAP_PATTERN = re.compile(r'([.!?])[ \t]*(?=[^\s.!?])')

REPARAGRAPH_THRESHOLD = 150
PARAGRAPH_WIDTH = 120
DETAILED_THRESHOLD = 200
SUMMARY_LENGTH = 150


@dataclass(frozen=True)
class FormattedResponse:
    """Tagged classification record; see SimpleResponse and DetailedResponse."""
    kind: ClassVar[Literal["simple", "detailed"]]

    content: str
    summary: str
    length: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "length", len(self.content))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "content": self.content,
            "summary": self.summary,
            "length": self.length
        }


@dataclass(frozen=True)
class SimpleResponse(FormattedResponse):
    kind: ClassVar[Literal["simple"]] = "simple"


@dataclass(frozen=True)
class DetailedResponse(FormattedResponse):
    kind: ClassVar[Literal["detailed"]] = "detailed"


class ResponseFormatter:
    """Класс для нормализации и классификации ответов модели"""

    @classmethod
    def post_process(cls, raw: str) -> str:
        """
        Normalizes a raw reply.

        Blank-line runs collapse to a single blank line, exactly one space
        follows `.`, `!` and `?` inside a line, and the text is trimmed.
        Text longer than REPARAGRAPH_THRESHOLD without a paragraph break is
        re-paragraphed.
        """
        processed = BLANK_LINES_PATTERN.sub('\n\n', raw)
        processed = SENTENCE_GAP_PATTERN.sub(cls._sentence_gap, processed)
        processed = processed.strip()

        if len(processed) > REPARAGRAPH_THRESHOLD and '\n\n' not in processed:
            processed = cls.format_long_response(processed)
            logger.debug("Re-paragraphed long response", length=len(processed))

        return processed

    @staticmethod
    def _sentence_gap(match: re.Match) -> str:
        start, end = match.span()
        text = match.string
        # Leave decimals such as 3.14 alone
        if match.group(1) == '.' and end == start + 1 and start > 0 \
                and text[start - 1].isdigit() and end < len(text) and text[end].isdigit():
            return '.'
        return match.group(1) + ' '

    @staticmethod
    def format_long_response(text: str) -> str:
        """
        Greedy paragraphing: sentences split on ". " are accumulated until the
        next one would push the paragraph past PARAGRAPH_WIDTH characters.
        The result always ends with a period.
        """
        paragraphs = []
        current = ""

        for sentence in text.split('. '):
            if current and len(current) + len(sentence) > PARAGRAPH_WIDTH:
                paragraphs.append(current + '.')
                current = sentence
            else:
                current += ('. ' if current else '') + sentence

        if not current.endswith('.'):
            current += '.'
        paragraphs.append(current)

        return '\n\n'.join(paragraphs)

    @staticmethod
    def classify(text: str) -> FormattedResponse:
        if len(text) > DETAILED_THRESHOLD or '\n' in text:
            return DetailedResponse(content=text, summary=text[:SUMMARY_LENGTH] + '...')
        return SimpleResponse(content=text, summary=text)
