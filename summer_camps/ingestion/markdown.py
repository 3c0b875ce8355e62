"""
Parse the extracted brochure markdown into ``CampDescription`` candidates.

Layout expected (one per camp, ``###`` subsections optional)::

    ## Nature Explorers
    **Description:** Hands-on outdoor science ...
    | Code     | Dates     |
    | 12A.3456 | 6/15-6/19 |

    ### Nature Explorers Jr.
    - **Code:** 12A.3457
    - **Description:** A shorter version for younger campers.

A heading without a description label is not a candidate.
"""

from __future__ import annotations

import re

from summer_camps.ingestion.schemas import CampDescription

# Continuation lines are absorbed until the next label, table row, rule or heading.
_CONTINUATION = r"(?:\n(?!\*\*|\||---|-\s\*\*|###)[^\n]+)*"
DESCRIPTION_PATTERNS = (
    re.compile(r"\*\*Description:\*\*\s*([^\n]+" + _CONTINUATION + ")"),
    re.compile(r"-\s*\*\*Description:\*\*\s*([^\n]+" + _CONTINUATION + ")"),
)
TABLE_CODE_RE = re.compile(r"\|\s*([A-Z0-9]{2,4}\.[A-Z0-9]{4})\s*\|", re.IGNORECASE)
BULLET_CODE_RE = re.compile(r"-\s*\*\*Code:\*\*\s*([A-Z0-9]{2,4}\.[A-Z0-9]{4})", re.IGNORECASE)

_H2_RE = re.compile(r"^## ", re.MULTILINE)
_H3_RE = re.compile(r"^### ", re.MULTILINE)


def extract_description(block: str) -> str | None:
    for pattern in DESCRIPTION_PATTERNS:
        match = pattern.search(block)
        if match:
            text = match.group(1).strip()
            if text:
                return text
    return None


def extract_codes(block: str) -> list[str]:
    codes = [m.group(1).upper() for m in TABLE_CODE_RE.finditer(block)]
    codes.extend(m.group(1).upper() for m in BULLET_CODE_RE.finditer(block))
    return codes


def extract_candidate(name: str, block: str) -> CampDescription | None:
    if not name or name.startswith("#"):
        return None
    description = extract_description(block)
    if description is None:
        return None
    return CampDescription(name=name, description=description, codes=extract_codes(block))


def parse_markdown(content: str) -> list[CampDescription]:
    """Every ``##`` section and ``###`` subsection that carries a description."""
    camps: list[CampDescription] = []

    for section in _H2_RE.split(content)[1:]:
        parts = _H3_RE.split(section)

        # Content before the first ### belongs to the ## heading itself
        main = parts[0]
        camp = extract_candidate(main.split("\n", 1)[0].strip(), main)
        if camp:
            camps.append(camp)

        for sub in parts[1:]:
            camp = extract_candidate(sub.split("\n", 1)[0].strip(), sub)
            if camp:
                camps.append(camp)

    return camps
