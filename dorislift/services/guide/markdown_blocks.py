"""
Fenced code block extraction for Markdown migration guides.

A guide shows each query twice, once as SparkSQL and once as Doris SQL.
Blocks are labelled either through the fence info string
(```` ```sql Doris SQL ````) or through the closest text line written after
the previous block (``**SparkSQL:**``, ``### Doris SQL``).
"""
import re
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple

from dorislift.config import config

_FENCE_RX = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_LABEL_DECORATION_RX = re.compile(r"^[\s#>*_\-]+|[\s*_:]+$")


@dataclass
class CodeBlock:
    line: int
    language: str
    info: str
    code: str
    label: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


def _clean_label(text: str) -> Optional[str]:
    cleaned = _LABEL_DECORATION_RX.sub("", text.strip()).strip()
    return cleaned or None


def extract_code_blocks(markdown: str) -> List[CodeBlock]:
    """Return every fenced code block of *markdown* in document order.

    An unclosed fence runs to the end of the document.
    """
    blocks: List[CodeBlock] = []
    lines = (markdown or "").replace("\r\n", "\n").split("\n")

    last_text: Optional[str] = None
    open_fence = None
    start_line = 0
    info = ""
    body: List[str] = []

    for number, line in enumerate(lines, 1):
        if open_fence is None:
            m = _FENCE_RX.match(line)
            if m and not (m.group("fence")[0] == "`" and "`" in m.group("info")):
                open_fence = m.group("fence")
                start_line = number
                info = m.group("info").strip()
                body = []
            elif line.strip():
                last_text = line
            continue

        stripped = line.strip()
        if stripped.startswith(open_fence[0] * len(open_fence)) and not stripped.strip(open_fence[0]):
            blocks.append(_make_block(start_line, info, body, last_text))
            open_fence = None
            last_text = None
        else:
            body.append(line)

    if open_fence is not None:
        blocks.append(_make_block(start_line, info, body, last_text))

    return blocks


def _make_block(start_line: int, info: str, body: List[str], last_text: Optional[str]) -> CodeBlock:
    words = info.split(None, 1)
    language = words[0].lower() if words else ""
    label = _clean_label(words[1]) if len(words) > 1 else None
    if label is None and last_text is not None:
        label = _clean_label(last_text)
    return CodeBlock(line=start_line, language=language, info=info, code="\n".join(body).strip("\n"), label=label)


def default_labels() -> Dict[str, List[str]]:
    guide_config = config.get('guide', {})
    return {
        "source": guide_config.get('source_labels', ["sparksql", "spark sql", "spark"]),
        "target": guide_config.get('target_labels', ["doris sql", "doris"]),
    }


def _matches(text: str, terms: List[str]) -> bool:
    text = text.lower()
    for term in terms:
        if re.search(rf"(?<![a-z0-9]){re.escape(term.lower())}(?![a-z0-9])", text):
            return True
    return False


def classify_block(block: CodeBlock, labels: Optional[Dict[str, List[str]]] = None) -> Optional[str]:
    """``"source"``, ``"target"`` or ``None``; the label wins over the fence language."""
    labels = labels or default_labels()
    for text in (block.label, block.language):
        if not text:
            continue
        # target labels are tested first
        if _matches(text, labels.get("target", [])):
            return "target"
        if _matches(text, labels.get("source", [])):
            return "source"
    return None


def pair_blocks(blocks: List[CodeBlock], labels: Optional[Dict[str, List[str]]] = None
                ) -> Tuple[List[Tuple[CodeBlock, CodeBlock]], List[Tuple[str, CodeBlock]]]:
    """
    Pair each source block with the next target block written before the
    following source block.

    Returns:
        ``(pairs, unmatched)`` where unmatched holds ``(kind, block)`` tuples.
        Unlabelled blocks are neither paired nor reported.
    """
    labels = labels or default_labels()
    pairs: List[Tuple[CodeBlock, CodeBlock]] = []
    unmatched: List[Tuple[str, CodeBlock]] = []
    pending_source: Optional[CodeBlock] = None

    for block in blocks:
        kind = classify_block(block, labels)
        if kind == "source":
            if pending_source is not None:
                unmatched.append(("source", pending_source))
            pending_source = block
        elif kind == "target":
            if pending_source is not None:
                pairs.append((pending_source, block))
                pending_source = None
            else:
                unmatched.append(("target", block))

    if pending_source is not None:
        unmatched.append(("source", pending_source))

    return pairs, unmatched
