"""Template rewriter: structured article HTML without any network calls.

The output is assembled from fixed sections: intro, key highlights, body
paragraphs, pros and cons (reviews only), an opinion block and a short FAQ.
Prices and spec phrases are pulled out of the source text with regexes.
"""

from __future__ import annotations

import html
import random
import re
from dataclasses import dataclass, field

from phoneverse.schemas.articles import RewriteResult
from pipeline.rewriting.base import count_words

HOOKS: dict[str, list[str]] = {
    "reviews": [
        ": Should You Buy It?",
        ": Worth Your Money?",
        " Review: Best in Class?",
        ": Real World Performance Test",
    ],
    "mobile-news": [
        " Launched: Here's Everything New",
        ": Price in India Revealed",
        " Coming Soon: Key Features Leaked",
        ": What You Need to Know",
    ],
    "android-updates": [
        " Update: 5 New Features You'll Love",
        ": Update Rolling Out in India",
        " Gets Major Upgrade",
        " Update: Should You Install?",
    ],
    "iphone-news": [
        ": Is It Worth the Upgrade?",
        ": What Changed From the Previous Model?",
        ": Best iPhone to Buy?",
        " Price Drop: Buy Now or Wait?",
    ],
    "comparisons": [
        ": Which One to Buy?",
        ": Complete Comparison Guide",
        " vs Competition: Clear Winner?",
    ],
}

SPEC_KEYWORDS = [
    "processor",
    "battery",
    "camera",
    "display",
    "RAM",
    "storage",
    "mAh",
    "MP",
    "inch",
    "Hz",
    "GB",
    "5G",
    "chipset",
]

PRICE_RE = re.compile(r"(?:₹|Rs\.?|\$)\s*\d[\d,]*(?:\.\d+)?")
_VS_RE = re.compile(r"\bvs\.?\b", re.IGNORECASE)
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")

INTROS = {
    "mobile-news": (
        "<p>Looking for the latest in mobile tech? Here is the full story on "
        "<strong>{title}</strong>, with everything that matters explained.</p>"
    ),
    "reviews": (
        "<p>Wondering whether this phone is the best pick for your budget? {price_phrase} "
        "there are plenty of options, but <strong>{title}</strong> stands out. Here is why.</p>"
    ),
    "android-updates": (
        "<p>Good news for Android users! <strong>{title}</strong> could make your phone "
        "noticeably better. Here is what's new.</p>"
    ),
    "iphone-news": (
        "<p>Attention Apple fans! <strong>{title}</strong> is worth knowing about if you "
        "are planning an iPhone upgrade.</p>"
    ),
    "comparisons": (
        "<p>Not sure which phone to pick? <strong>{title}</strong> puts the options side "
        "by side so you can make the right call.</p>"
    ),
}

OPINIONS = {
    "reviews": (
        "<h2>Our Verdict</h2>\n<p><strong>Final opinion:</strong> If you are shopping "
        "{price_phrase}, this one is definitely worth considering. Check it against your own "
        "needs first: gamers should look at the processor, camera lovers at the camera "
        "specs.</p>\n\n"
    ),
    "mobile-news": (
        "<h2>What We Think</h2>\n<p>This is an interesting launch for the Indian market. "
        "Given the competition, it looks like aggressive positioning in its {segment}.</p>\n\n"
    ),
    "comparisons": (
        "<h2>Which One Should You Buy?</h2>\n<p><strong>Bottom line:</strong> Both phones are "
        "strong in their segment. If budget comes first, go with the cheaper option. If "
        "features matter more, look at the other.</p>\n\n"
    ),
}

PROS = ["Good value for money", "Latest features at a competitive price", "Strong performance"]
CONS = ["Competition is strong in this segment", "Some features could be better"]

FAQ = [
    (
        "Is this phone worth buying?",
        "Yes, if it matches your budget and requirements. There are many options on the "
        "market, so compare before you buy.",
    ),
    (
        "Where can I buy this in India?",
        "It is available on Amazon India, Flipkart and official brand stores. Festival sales "
        "often bring extra discounts.",
    ),
]


@dataclass
class KeyFacts:
    price: str | None = None
    features: list[str] = field(default_factory=list)


def extract_price(content: str) -> str | None:
    match = PRICE_RE.search(content)
    return match.group(0).strip() if match else None


def extract_spec_phrases(content: str, per_keyword: int = 2) -> list[str]:
    """Short phrases around spec keywords, at most ``per_keyword`` each, deduplicated."""
    phrases: list[str] = []
    seen: set[str] = set()
    for keyword in SPEC_KEYWORDS:
        pattern = re.compile(
            rf"(?:[\w.,₹$]+\s+){{0,2}}[\w.]*(?<![A-Za-z]){re.escape(keyword)}[\w]*(?:\s+[\w.]+){{0,2}}",
            re.IGNORECASE,
        )
        for match in pattern.findall(content)[:per_keyword]:
            phrase = match.strip(" .,")
            key = phrase.lower()
            if phrase and key not in seen:
                seen.add(key)
                phrases.append(phrase)
    return phrases


def extract_key_facts(content: str) -> KeyFacts:
    return KeyFacts(price=extract_price(content), features=extract_spec_phrases(content))


def keeps_original_title(title: str) -> bool:
    return "?" in title or ":" in title or bool(_VS_RE.search(title))


class TemplateRewriter:
    """Deterministic given the injected ``rng``."""

    def __init__(self, rng: random.Random | None = None, max_highlights: int = 5) -> None:
        self.rng = rng or random.Random()
        self.max_highlights = max_highlights

    async def rewrite(self, title: str, content: str, category: str) -> RewriteResult:
        return self.transform(title, content, category)

    async def aclose(self) -> None:
        return None

    def transform(self, title: str, content: str, category: str) -> RewriteResult:
        headline = self.headline(title, category)
        facts = extract_key_facts(content)
        body = self.build_content(headline, content, facts, category)
        return RewriteResult(
            title=headline,
            content=body,
            excerpt=self.excerpt(headline, facts),
            word_count=count_words(body),
        )

    def headline(self, title: str, category: str) -> str:
        if keeps_original_title(title):
            return title
        hooks = HOOKS.get(category, HOOKS["mobile-news"])
        return title + self.rng.choice(hooks)

    def build_content(self, title: str, content: str, facts: KeyFacts, category: str) -> str:
        parts = [
            self._intro(title, facts, category),
            self._highlights(facts),
            self._paragraphs(content),
        ]
        if category == "reviews" or "review" in title.lower():
            parts.append(self._pros_cons())
        parts.append(self._opinion(facts, category))
        parts.append(self._faq())
        return "".join(parts)

    def excerpt(self, title: str, facts: KeyFacts, limit: int = 155) -> str:
        excerpt = f"{title}. "
        if facts.price:
            excerpt += f"Price: {facts.price}. "
        excerpt += "Complete details, specifications, and our honest opinion."
        return excerpt[:limit]

    def _intro(self, title: str, facts: KeyFacts, category: str) -> str:
        template = INTROS.get(category, INTROS["mobile-news"])
        price_phrase = (
            f"In the {html.escape(facts.price)} price range"
            if facts.price
            else "In this price segment"
        )
        return template.format(title=html.escape(title), price_phrase=price_phrase) + "\n\n"

    def _highlights(self, facts: KeyFacts) -> str:
        lines = ['<div class="key-highlights">', "<h2>Key Highlights</h2>", "<ul>"]
        if facts.price:
            lines.append(f"<li><strong>Price:</strong> {html.escape(facts.price)}</li>")
        for feature in facts.features[: self.max_highlights]:
            lines.append(f"<li>{html.escape(feature)}</li>")
        lines += ["</ul>", "</div>"]
        return "\n".join(lines) + "\n\n"

    def _paragraphs(self, content: str) -> str:
        sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(content) if len(s.strip()) > 20]
        out = ""
        for i in range(0, len(sentences), 2):
            para = " ".join(sentences[i : i + 2])
            if para[-1] not in ".!?":
                para += "."
            out += f"<p>{html.escape(para)}</p>\n\n"
        if not out and content.strip():
            out = f"<p>{html.escape(content.strip())}</p>\n\n"
        return out

    def _pros_cons(self) -> str:
        lines = ['<div class="pros-cons">', "<h2>Pros &amp; Cons</h2>", "<h3>Pros:</h3>", "<ul>"]
        lines += [f"<li>{item}</li>" for item in PROS]
        lines += ["</ul>", "<h3>Cons:</h3>", "<ul>"]
        lines += [f"<li>{item}</li>" for item in CONS]
        lines += ["</ul>", "</div>"]
        return "\n".join(lines) + "\n\n"

    def _opinion(self, facts: KeyFacts, category: str) -> str:
        template = OPINIONS.get(category, OPINIONS["mobile-news"])
        price_phrase = f"around {html.escape(facts.price)}" if facts.price else "in this budget"
        segment = "price point" if facts.price else "segment"
        return template.format(price_phrase=price_phrase, segment=segment)

    def _faq(self) -> str:
        lines = ['<div class="faq-section">', "<h2>Frequently Asked Questions</h2>"]
        for question, answer in FAQ:
            lines += [
                '<div class="faq-item">',
                f"<h3>Q: {question}</h3>",
                f"<p><strong>A:</strong> {answer}</p>",
                "</div>",
            ]
        lines.append("</div>")
        return "\n".join(lines) + "\n\n"
