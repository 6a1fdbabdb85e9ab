"""
Sentiment/Keyword Annotator.

Turns review text (plus an optional 5-point rating) into an Annotation:
sentiment, emotional category, keywords, topics and response urgency.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional

import config.settings as settings
from reviewpulse.errors import AnnotationError
from reviewpulse.models.review import TOPIC_TAXONOMY, Annotation

logger = logging.getLogger(__name__)


STOP_WORDS = frozenset({
    "the", "and", "a", "to", "of", "in", "is", "it", "that", "for", "on", "with",
    "as", "at", "this", "by", "from", "an", "be", "or", "but", "was", "are",
    "were", "been", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "these", "those", "i", "you", "he",
    "she", "we", "they", "me", "him", "her", "us", "them", "my", "your", "his",
    "its", "our", "their", "there", "here", "very", "just", "also", "really",
    "what", "when", "which", "who", "then", "than", "into", "about", "over",
})

BUSINESS_TERMS: Dict[str, List[str]] = {
    "service": [
        "service", "staff", "employee", "server", "waiter", "waitress", "host",
        "hostess", "friendly", "helpful", "attentive", "professional", "rude",
        "slow", "unhelpful",
    ],
    "food": [
        "food", "dish", "meal", "taste", "flavor", "menu", "delicious", "fresh",
        "quality", "portion", "cooked", "spicy", "bland",
    ],
    "ambiance": [
        "ambiance", "atmosphere", "decor", "environment", "setting", "clean",
        "dirty", "noisy", "quiet", "cozy", "modern", "traditional",
    ],
    "value": [
        "price", "value", "worth", "expensive", "cheap", "affordable", "overpriced",
        "reasonable", "budget", "cost",
    ],
    "location": [
        "location", "place", "area", "neighborhood", "district", "parking",
        "accessible", "convenient", "remote",
    ],
    "timing": [
        "wait", "time", "quick", "fast", "slow", "busy", "crowded", "empty",
        "reservation", "booking",
    ],
    "quality": [
        "quality", "excellent", "good", "bad", "poor", "amazing", "terrible",
        "outstanding", "disappointing",
    ],
    "experience": [
        "experience", "visit", "return", "recommend", "enjoy", "disappoint",
        "satisfy", "impress",
    ],
}

ALL_BUSINESS_TERMS = frozenset(term for terms in BUSINESS_TERMS.values() for term in terms)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_SENTENCE_RE = re.compile(r"[.!?]+")


def _tokens(text: str) -> List[str]:
    return _NON_ALNUM_RE.sub("", text.lower()).split()


def _clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class ReviewAnnotator:
    """
    Annotates reviews using an injected sentiment classifier.

    The classifier is any object with classify(text) -> float in [-1, 1].
    Deterministic given the same classifier state.
    """

    def __init__(self, classifier):
        self.classifier = classifier
        logger.info(f"Initialized ReviewAnnotator with classifier={type(classifier).__name__}")

    def annotate(self, text: Optional[str], rating: Optional[float] = None) -> Annotation:
        """
        Annotate one review.

        Args:
            text: Review text (may be empty or None)
            rating: Rating on the 5-point scale, if the platform has one

        Returns:
            Annotation for the review

        Raises:
            AnnotationError: If the classifier fails
        """
        if not text or not text.strip():
            return Annotation.neutral()

        try:
            raw_score = _clamp(float(self.classifier.classify(text)))
        except AnnotationError:
            raise
        except Exception as e:
            raise AnnotationError(f"Classifier failed: {e}") from e

        final_sentiment = round(self._final_sentiment(raw_score, rating), 2)

        return Annotation(
            sentiment=final_sentiment,
            emotional=self._emotional_category(final_sentiment),
            keywords=self.extract_keywords(text),
            topics=self.extract_topics(text),
            urgency=self._response_urgency(text, raw_score, final_sentiment, rating),
        )

    def annotate_safely(self, text: Optional[str], rating: Optional[float] = None) -> Annotation:
        """Annotate, substituting the neutral default if the classifier fails."""
        try:
            return self.annotate(text, rating)
        except AnnotationError as e:
            logger.warning(f"Annotation failed, using neutral default: {e}")
            return Annotation.neutral()

    @staticmethod
    def _final_sentiment(raw_score: float, rating: Optional[float]) -> float:
        if rating is None:
            return raw_score
        rating_score = _clamp((rating - 3) / 2)
        return (raw_score + rating_score) / 2

    @staticmethod
    def _emotional_category(sentiment: float) -> str:
        if sentiment > settings.EMOTIONAL_THRESHOLD:
            return "positive"
        if sentiment < -settings.EMOTIONAL_THRESHOLD:
            return "negative"
        return "neutral"

    @staticmethod
    def extract_keywords(text: str) -> List[str]:
        """
        Rank tokens by frequency, boosted for business terms and for
        appearing in the first or last sentence. Returns the top 5.
        """
        words = [w for w in _tokens(text) if len(w) > 3 and w not in STOP_WORDS]
        if not words:
            return []

        frequencies = Counter(words)

        sentences = [s for s in _SENTENCE_RE.split(text) if s.strip()]
        edge_tokens = set()
        if sentences:
            edge_tokens.update(_tokens(sentences[0]))
            edge_tokens.update(_tokens(sentences[-1]))

        importance = {}
        for word, frequency in frequencies.items():
            score = float(frequency)
            if word in ALL_BUSINESS_TERMS:
                score *= settings.BUSINESS_TERM_BOOST
            if word in edge_tokens:
                score *= settings.EDGE_SENTENCE_BOOST
            importance[word] = score

        # Counter preserves first-appearance order; sorted() is stable
        ranked = sorted(importance, key=lambda w: importance[w], reverse=True)
        return ranked[:settings.MAX_REVIEW_KEYWORDS]

    @staticmethod
    def extract_topics(text: str) -> List[str]:
        """Topics whose term list contains any token of the text, in taxonomy order."""
        tokens = set(_tokens(text))
        return [topic for topic in TOPIC_TAXONOMY if tokens.intersection(BUSINESS_TERMS[topic])]

    @staticmethod
    def _response_urgency(
        text: str,
        raw_score: float,
        final_sentiment: float,
        rating: Optional[float]
    ) -> int:
        urgency = settings.DEFAULT_URGENCY

        if rating is not None:
            if rating <= 2:
                urgency = settings.LOW_RATING_URGENCY
            elif rating <= 3:
                urgency = settings.NEUTRAL_RATING_URGENCY

        if raw_score < -0.5 or final_sentiment < -0.5:
            urgency = max(urgency, settings.NEGATIVE_SENTIMENT_URGENCY)

        lowered = text.lower()
        if any(keyword in lowered for keyword in settings.URGENT_KEYWORDS):
            urgency = max(urgency, settings.URGENT_KEYWORD_URGENCY)

        return urgency
