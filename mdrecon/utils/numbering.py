"""
Repair clause numbers that the layout split onto their own line.

Specification-style documents number clauses as ``.1``, ``.2`` ... in a
narrow margin column; extraction often emits the number as a separate line.
"""

from typing import List

from .tables import PARTIAL_NUMBERING


def is_numbering_fragment(line: str) -> bool:
    return bool(PARTIAL_NUMBERING.match(line.strip()))


def merge_numbering_fragments(text: str) -> str:
    """
    Join each bare numbering line with the next non-blank line.

    ``".1\\n\\nThe intent"`` becomes ``".1 The intent"``. A fragment with no
    following text is left as it is.
    """
    lines = text.split("\n")
    result: List[str] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        if is_numbering_fragment(line):
            j = i + 1
            while j < len(lines) and not lines[j].strip():
                j += 1
            if j < len(lines):
                result.append(f"{line.strip()} {lines[j].strip()}")
                i = j + 1
                continue
        result.append(line)
        i += 1

    return "\n".join(result)
