"""
Guidance Responses

Fixed texts for messages that are neither a transaction nor a report
query, plus the welcome and transfer texts.

The choice between several guidance texts goes through an injectable
chooser, so tests (and a configured seed) get exact output.
"""

import random
from collections.abc import Callable, Sequence
from typing import Optional

from financeai.config.settings import SUPPORTED_LANGUAGES


Chooser = Callable[[Sequence[str]], str]


WELCOME_MESSAGE = (
    "Welcome to FinanceAI! 👋 I'm your personal financial assistant. You can:\n\n"
    "• Tell me about transactions: \"I spent $25 on lunch\"\n"
    "• Ask about your balance: \"What's my current balance?\"\n"
    "• Request reports: \"Show me the balance sheet\"\n"
    "• Record loans: \"Borrowed 500 from bank\"\n\n"
    "I speak multiple languages! Try switching languages or just speak "
    "naturally. How can I help you today?"
)

TRANSFER_GUIDANCE = (
    "🏦 **Transfer Request Detected**\n\n"
    "I can help you record a transfer! First I'll need to confirm:\n\n"
    "1. **Amount**: Please confirm the exact amount\n"
    "2. **Recipient**: Who should receive the money?\n"
    "3. **Account**: Which account to use?\n\n"
    "Try for example: \"Sent 100 to John\"."
)

EMPTY_MESSAGE_PROMPT = "Please type a message so I can help. For example: \"paid 25 for lunch\"."

# {message} is replaced with the user's text
GUIDANCE_RESPONSES: dict[str, tuple[str, ...]] = {
    "en": (
        "I understand you said: \"{message}\"\n\n"
        "Here are some things I can help you with:\n\n"
        "• Record transactions\n"
        "• Check balances\n"
        "• Generate reports\n"
        "• Track loans and repayments\n\n"
        "What would you like to do next?",

        "I couldn't find a transaction in \"{message}\".\n\n"
        "Try phrasing it like one of these:\n\n"
        "• \"paid 25 for lunch\"\n"
        "• \"received 100 from client\"\n"
        "• \"borrowed 500 from bank\"\n"
        "• \"bought a laptop for 1200\"",

        "I'm not sure what to record for \"{message}\".\n\n"
        "You can also ask for a report: \"balance sheet\", "
        "\"income statement\", \"trial balance\" or \"cash\".",
    ),
    "ur": (
        "میں سمجھ گیا کہ آپ نے کہا: \"{message}\"\n\n"
        "میں آپ کی مدد کر سکتا ہوں:\n\n"
        "• لین دین ریکارڈ کرنا\n"
        "• بیلنس چیک کرنا\n"
        "• رپورٹس بنانا\n"
        "• قرض اور ادائیگیاں\n\n"
        "آپ آگے کیا کرنا چاہیں گے؟",
    ),
    "hi": (
        "मैं समझ गया कि आपने कहा: \"{message}\"\n\n"
        "मैं आपकी मदद कर सकता हूं:\n\n"
        "• लेन-देन रिकॉर्ड करना\n"
        "• बैलेंस चेक करना\n"
        "• रिपोर्ट बनाना\n"
        "• ऋण और भुगतान\n\n"
        "आप आगे क्या करना चाहेंगे?",
    ),
}

TRANSFER_KEYWORDS = ("send", "transfer")


def seeded_chooser(seed: Optional[int] = None) -> Chooser:
    """Random choice from a private generator; repeatable when seeded."""
    rng = random.Random(seed)
    return lambda options: rng.choice(list(options))


def index_chooser(index: int = 0) -> Chooser:
    """Always the option at `index` (wrapping)."""
    return lambda options: options[index % len(options)]


class GuidanceResponder:
    """Answers messages the parser could not use."""

    def __init__(
        self,
        chooser: Optional[Chooser] = None,
        default_language: str = "en",
    ):
        self._chooser = chooser or seeded_chooser()
        self.default_language = default_language

    def responses_for(self, language: Optional[str] = None) -> tuple[str, ...]:
        """Templates for a language; languages without their own fall back to English."""
        code = (language or self.default_language).lower()
        if code not in SUPPORTED_LANGUAGES:
            code = "en"
        return GUIDANCE_RESPONSES.get(code, GUIDANCE_RESPONSES["en"])

    def is_transfer_request(self, message: str) -> bool:
        lowered = message.lower()
        return any(keyword in lowered for keyword in TRANSFER_KEYWORDS)

    def topic(self, message: str) -> str:
        return "transfer" if self.is_transfer_request(message) else "fallback"

    def respond(self, message: str, language: Optional[str] = None) -> str:
        if self.is_transfer_request(message):
            return TRANSFER_GUIDANCE
        template = self._chooser(self.responses_for(language))
        return template.replace("{message}", message.strip())

    def welcome(self) -> str:
        return WELCOME_MESSAGE
