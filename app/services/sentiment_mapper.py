from typing import Any

from app.schemas.sales_call import CustomerSentiment

POSITIVE_KEYWORDS = ("positive", "impressive", "good")
NEGATIVE_KEYWORDS = ("negative", "bad", "ugly")


def map_sentiment_category(value: Any) -> CustomerSentiment | None:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if not lowered:
        return None

    # Positive keywords win when both families appear.
    if any(keyword in lowered for keyword in POSITIVE_KEYWORDS):
        return CustomerSentiment.positive
    if any(keyword in lowered for keyword in NEGATIVE_KEYWORDS):
        return CustomerSentiment.negative
    return CustomerSentiment.neutral
