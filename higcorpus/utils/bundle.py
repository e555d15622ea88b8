"""
Transport units: several documents concatenated into one text.

Documents are separated by a sentinel line that never appears inside a
document body.
"""

from typing import Iterable, List

DOCUMENT_SEPARATOR = "<!-- higcorpus:document-boundary -->"


def split_bundle(text: str) -> List[str]:
    """
    Splits a transport unit into the texts of its documents.

    A line splits the unit only when it is the separator starting at the
    first column; trailing whitespace is ignored, so an indented copy inside
    a code block stays part of its document. Segments that are empty or only
    whitespace are dropped, so a leading or trailing separator is harmless.
    """
    documents: List[str] = []
    current: List[str] = []
    for line in text.replace("\r\n", "\n").split("\n"):
        if line.rstrip() == DOCUMENT_SEPARATOR:
            documents.append("\n".join(current))
            current = []
        else:
            current.append(line)
    documents.append("\n".join(current))
    return [doc.strip("\n") + "\n" for doc in documents if doc.strip()]


def join_bundle(texts: Iterable[str]) -> str:
    """Concatenates document texts into a single transport unit."""
    parts = []
    for text in texts:
        parts.append(text if text.endswith("\n") else text + "\n")
    return f"{DOCUMENT_SEPARATOR}\n".join(parts)
