"""Article rewrite prompt builder."""

from __future__ import annotations

PERSONAS = {
    "mobile-news": "tech-savvy journalist",
    "reviews": "experienced tech reviewer",
    "android-updates": "Android enthusiast",
    "iphone-news": "Apple ecosystem expert",
    "comparisons": "unbiased tech analyst",
    "guides": "helpful tech educator",
}


def build_rewrite_prompt(
    title: str,
    content: str,
    category: str,
    content_truncation: int = 4000,
) -> str:
    persona = PERSONAS.get(category, "tech journalist")
    if len(content) > content_truncation:
        content = content[:content_truncation] + "..."
    return f"""You are a {persona} writing for PhoneVerse, a mobile technology news website.

ORIGINAL ARTICLE:
Title: {title}
Content: {content}

Rewrite this article completely in your own words so that it is:
1. Unique, with no phrases copied from the original
2. Engaging and professional, in a conversational tone
3. Structured into clear paragraphs (separate with blank lines)
4. 300-500 words long
5. Focused on what phone buyers care about, with context beyond the original

You may use ## and ### subheadings, **bold** and *italics*.

OUTPUT FORMAT:
# Your Catchy Headline Here

Your rewritten article here, one paragraph per block...

End with a short conclusion."""
