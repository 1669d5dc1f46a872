"""Featured-image resolver: stable stock-photo URLs chosen from the title."""

from __future__ import annotations

import re

DEFAULT_IMAGE_URL_TEMPLATE = "https://picsum.photos/id/{image_id}/1344/768"

# Checked in order; first keyword found in the title wins.
KEYWORD_IMAGES: dict[str, list[int]] = {
    "iphone": [0, 1, 48, 119, 152, 225, 237, 287, 367, 445, 659, 718],
    "apple": [0, 1, 48, 119, 152, 225, 237, 287, 367, 445],
    "macbook": [48, 119, 152, 225, 237, 287, 367, 445, 478, 525],
    "ipad": [1, 48, 152, 225, 287, 367, 445, 525, 659],
    "samsung": [10, 28, 63, 82, 96, 180, 200, 250, 381, 426, 548],
    "galaxy": [10, 28, 63, 82, 96, 180, 200, 250, 381, 426],
    "pixel": [1, 48, 82, 119, 169, 225, 287, 367, 445, 525, 593],
    "google": [1, 48, 82, 119, 169, 225, 287, 367, 445, 525],
    "android": [10, 28, 63, 96, 180, 287, 381, 445, 571, 593],
    "oneplus": [20, 48, 96, 180, 250, 367, 426, 525, 616],
    "xiaomi": [28, 63, 96, 180, 250, 381, 445, 548, 616],
    "redmi": [28, 63, 96, 180, 250, 381, 445, 548],
    "realme": [20, 63, 96, 180, 250, 381, 426, 548],
    "oppo": [28, 63, 180, 250, 381, 426, 548, 616],
    "vivo": [28, 63, 180, 250, 381, 426, 548, 616],
    "nothing": [1, 48, 96, 169, 287, 367, 445, 525, 593],
    "motorola": [20, 48, 96, 180, 250, 367, 426, 525],
    "ai": [1, 10, 82, 96, 180, 287, 381, 445, 571, 659],
    "artificial intelligence": [1, 10, 82, 96, 180, 287, 381, 445],
    "gaming": [20, 96, 103, 152, 250, 367, 426, 525, 616, 718],
    "game": [20, 96, 103, 152, 250, 367, 426, 525, 616],
    "camera": [26, 39, 48, 55, 70, 103, 119, 152, 169, 225],
    "battery": [28, 63, 82, 96, 180, 250, 287, 381, 426],
    "5g": [1, 10, 48, 82, 180, 287, 367, 445, 525, 593],
    "software": [1, 10, 82, 96, 180, 287, 381, 445, 571],
    "update": [10, 48, 82, 180, 287, 367, 445, 525, 593],
}

CATEGORY_IMAGES: dict[str, list[int]] = {
    "mobile-news": [
        0, 1, 10, 20, 25, 28, 30, 40, 48, 52, 63, 69,
        82, 96, 106, 119, 152, 163, 164, 180, 182, 193,
        201, 206, 225, 237, 244, 250, 287, 367, 381, 403,
    ],
    "reviews": [
        26, 39, 42, 48, 55, 70, 88, 103, 109, 119, 129,
        152, 158, 169, 177, 180, 200, 225, 237, 239, 250,
        269, 287, 292, 367, 381, 403, 426, 445, 478,
    ],
    "android-updates": [
        1, 10, 28, 30, 48, 63, 82, 96, 103, 119, 152,
        169, 180, 193, 200, 225, 237, 250, 287, 292,
        367, 381, 403, 426, 445, 478, 525, 548, 571, 593,
    ],
    "iphone-news": [
        0, 1, 48, 63, 82, 96, 119, 152, 169, 180, 200,
        225, 237, 244, 250, 287, 292, 367, 381, 403,
        426, 445, 478, 503, 525, 548, 571, 593, 659, 718,
    ],
    "comparisons": [
        10, 20, 28, 39, 48, 82, 103, 119, 152, 180,
        200, 225, 237, 250, 287, 292, 367, 381, 403,
        426, 445, 478, 503, 525, 548, 571, 593, 616, 659,
    ],
    "guides": [
        26, 48, 70, 82, 103, 119, 152, 169, 180, 200,
        225, 237, 250, 287, 292, 367, 381, 403, 426,
        445, 478, 503, 525, 548, 571, 593, 616, 659, 718,
    ],
}

_KEYWORD_PATTERNS = {
    keyword: re.compile(rf"\b{re.escape(keyword)}\b") for keyword in KEYWORD_IMAGES
}


def title_hash(title: str) -> int:
    """32-bit ``h = h * 31 + c`` over UTF-16 code units, as a signed int."""
    h = 0
    data = title.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


class ImageResolver:
    """Same title and category always give the same URL."""

    def __init__(self, url_template: str = DEFAULT_IMAGE_URL_TEMPLATE) -> None:
        self.url_template = url_template

    def image_id(self, title: str, category: str) -> int:
        lowered = title.lower()
        ids = None
        for keyword, pattern in _KEYWORD_PATTERNS.items():
            if pattern.search(lowered):
                ids = KEYWORD_IMAGES[keyword]
                break
        if ids is None:
            ids = CATEGORY_IMAGES.get(category, CATEGORY_IMAGES["mobile-news"])
        return ids[abs(title_hash(title)) % len(ids)]

    def resolve(self, title: str, category: str) -> str:
        return self.url_template.format(image_id=self.image_id(title, category))
