"""
Sentiment classifiers.

Pluggable text-classification capabilities returning a score in [-1, 1].
The annotator receives one of these at construction; nothing is trained or
loaded lazily on first use.
"""

import json
import logging
import math
import re
from typing import Optional

import google.generativeai as genai

import config.settings as settings
from reviewpulse.errors import AnnotationError

logger = logging.getLogger(__name__)


POSITIVE_WORDS = frozenset({
    "excellent", "amazing", "wonderful", "fantastic", "great", "love", "loved",
    "perfect", "outstanding", "superb", "exceptional", "brilliant", "delightful",
    "good", "nice", "friendly", "helpful", "attentive", "professional", "delicious",
    "fresh", "clean", "cozy", "pleasant", "recommend", "best", "enjoy", "enjoyed",
    "impressed", "awesome", "beautiful", "comfortable", "quick", "fast", "welcoming",
    "tasty", "kind", "happy", "satisfied", "affordable", "reasonable",
})

NEGATIVE_WORDS = frozenset({
    "terrible", "awful", "horrible", "disgusting", "hate", "worst", "disappointed",
    "disappointing", "bad", "poor", "unacceptable", "appalling", "rude", "slow",
    "dirty", "noisy", "bland", "cold", "overpriced", "expensive", "unhelpful",
    "unprofessional", "broken", "refund", "complaint", "problem", "waste",
    "mediocre", "smelly", "crowded", "late", "wrong", "angry", "unfriendly",
})

NEGATIONS = frozenset({"not", "no", "never", "dont", "didnt", "wasnt", "isnt", "cant", "wont", "hardly"})

INTENSIFIERS = {
    "very": 1.5,
    "really": 1.5,
    "extremely": 1.8,
    "super": 1.5,
    "so": 1.3,
    "absolutely": 1.6,
    "incredibly": 1.7,
}

_TOKEN_RE = re.compile(r"[a-z0-9']+")


class LexiconSentimentClassifier:
    """
    Rule-based classifier: polarity lexicon, negation flip and intensifiers,
    normalized with x / sqrt(x^2 + alpha).
    """

    def __init__(self, alpha: float = settings.LEXICON_NORMALIZATION_ALPHA):
        self.alpha = alpha
        logger.info(f"Initialized LexiconSentimentClassifier with alpha={alpha}")

    def classify(self, text: str) -> float:
        tokens = [t.replace("'", "") for t in _TOKEN_RE.findall((text or "").lower())]
        total = 0.0
        for index, token in enumerate(tokens):
            if token in POSITIVE_WORDS:
                polarity = 1.0
            elif token in NEGATIVE_WORDS:
                polarity = -1.0
            else:
                continue

            window = tokens[max(0, index - 3):index]
            if window and window[-1] in INTENSIFIERS:
                polarity *= INTENSIFIERS[window[-1]]
            if any(w in NEGATIONS for w in window):
                polarity *= -0.5

            total += polarity

        if total == 0:
            return 0.0
        return max(-1.0, min(1.0, total / math.sqrt(total * total + self.alpha)))


SYSTEM_PROMPT = """You are a customer-experience analyst scoring the sentiment of business reviews.

Your task:
1. Read the review text
2. Judge the overall sentiment the reviewer expresses toward the business
3. Return a single score between -1.0 (very negative) and 1.0 (very positive)

Rules:
- 0.0 means neutral or mixed with no clear lean
- Ignore star ratings; judge the text only
- Sarcasm counts as the sentiment actually meant

Output valid JSON only."""


def _construct_user_prompt(text: str) -> str:
    return f"""Review Text: "{text}"

Return the sentiment as JSON:
{{
  "score": 0.0
}}"""


class GeminiSentimentClassifier:
    """
    LLM-backed classifier using Gemini in JSON mode.

    Raises AnnotationError once retries are exhausted; the annotator turns that
    into the neutral default for the affected review.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = settings.SENTIMENT_MODEL,
        temperature: float = settings.LLM_TEMPERATURE,
        max_retries: int = settings.SENTIMENT_MAX_RETRIES
    ):
        self.model_name = model_name
        self.temperature = temperature
        self.max_retries = max_retries

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={
                "temperature": temperature,
                "response_mime_type": "application/json"
            },
            system_instruction=SYSTEM_PROMPT
        )

        logger.info(f"Initialized GeminiSentimentClassifier with model={model_name}, temp={temperature}")

    def classify(self, text: str) -> float:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                response = self.model.generate_content(_construct_user_prompt(text))
                return self._parse_score(response.text)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.error(f"Failed to parse sentiment response (attempt {attempt + 1}): {e}")
                last_error = e
            except Exception as e:
                logger.error(f"Sentiment API error (attempt {attempt + 1}): {e}")
                last_error = e

        raise AnnotationError(f"Sentiment classification failed after {self.max_retries} attempts: {last_error}")

    @staticmethod
    def _parse_score(response_text: str) -> float:
        """
        Raises:
            json.JSONDecodeError: If response is not valid JSON
            KeyError: If the score field is missing
        """
        data = json.loads(response_text)
        score = float(data["score"])
        if math.isnan(score):
            raise ValueError("Sentiment score is NaN")
        return max(-1.0, min(1.0, score))


def build_classifier(backend: str = settings.SENTIMENT_BACKEND, api_key: str = settings.GOOGLE_API_KEY):
    """
    Construct the configured classifier before the engine runs.

    Raises:
        ValueError: For an unknown backend or a Gemini backend without API key
    """
    backend = backend.lower()
    if backend == "lexicon":
        return LexiconSentimentClassifier()
    if backend == "gemini":
        if not api_key:
            raise ValueError("GOOGLE_API_KEY is required for the gemini sentiment backend")
        return GeminiSentimentClassifier(api_key=api_key)
    raise ValueError(f"Unknown sentiment backend: {backend}. Use 'lexicon' or 'gemini'")
