"""
Draft Merger
Deterministic heading-based merge of two markdown drafts
"""

import re
from dataclasses import dataclass
from typing import List, Optional

# Level-2 headings delimit sections; deeper headings stay inside their section
_HEADING = re.compile(r"^##[ \t]+(.*?)[ \t#]*$")
_NON_ALNUM = re.compile(r"[\W_]+", re.UNICODE)


@dataclass
class Section:
    heading: Optional[str]  # None for text before the first heading
    text: str  # heading line included


def normalize_heading(heading: str) -> str:
    """Lower-case and drop every non-alphanumeric character"""
    return _NON_ALNUM.sub("", heading.lower())


def split_sections(draft: str) -> List[Section]:
    """Split a draft into sections in document order"""
    sections: List[Section] = []
    heading: Optional[str] = None
    lines: List[str] = []

    for line in draft.splitlines(keepends=True):
        match = _HEADING.match(line.rstrip("\r\n"))
        if match:
            if lines:
                sections.append(Section(heading=heading, text="".join(lines)))
            heading = match.group(1)
            lines = [line]
        else:
            lines.append(line)

    if lines:
        sections.append(Section(heading=heading, text="".join(lines)))
    return sections


def merge_drafts(primary: str, secondary: str) -> str:
    """
    Append to primary the sections of secondary whose heading it lacks.

    Headings are compared after normalize_heading(). Sections of secondary
    without a usable heading are dropped. Only headings across the two
    drafts are compared, so repeated headings within one draft are all kept.
    The result is returned unchanged when nothing needs to be added, which
    makes merge_drafts(merge_drafts(a, b), b) == merge_drafts(a, b).
    """
    present = {
        normalize_heading(s.heading)
        for s in split_sections(primary)
        if s.heading is not None
    }

    kept = []
    for section in split_sections(secondary):
        if section.heading is None:
            continue
        key = normalize_heading(section.heading)
        if not key or key in present:
            continue
        kept.append(section.text.strip())

    if not kept:
        return primary
    return primary.rstrip() + "\n\n" + "\n\n".join(kept)
