from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple


@dataclass
class AnkiParseResult:
    separator: str = "\t"
    is_html: bool = False
    columns: List[List[str]] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def row_count(self) -> int:
        return len(self.columns[0]) if self.columns else 0


def parse_anki_txt(text: str) -> AnkiParseResult:
    """Split an Anki "Notes in Plain Text" export into columns.

    ``#separator:`` and ``#html:`` headers are honoured, other ``#`` lines and
    blank lines are skipped. Short rows are padded with empty strings.
    """
    separator = "\t"
    is_html = False
    data_lines: List[str] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        if line.startswith("#separator:"):
            sep = line[len("#separator:"):].strip()
            separator = "\t" if sep in ("tab", "Tab") else sep
        elif line.startswith("#html:"):
            is_html = line[len("#html:"):].strip().lower() == "true"
        elif not line.startswith("#"):
            data_lines.append(line)

    rows = [line.split(separator) for line in data_lines]
    column_count = max((len(row) for row in rows), default=0)
    columns = [
        [row[c] if c < len(row) else "" for row in rows]
        for c in range(column_count)
    ]
    return AnkiParseResult(separator=separator, is_html=is_html, columns=columns)


def cards_from_columns(
    parsed: AnkiParseResult,
    front_columns: Sequence[int],
    back_columns: Sequence[int],
    joiner: str = "\n",
) -> List[Tuple[str, str]]:
    """Build ``(front, back)`` pairs from the columns assigned to each side."""
    for index in list(front_columns) + list(back_columns):
        if index < 0 or index >= parsed.column_count:
            raise ValueError(f"Column {index} out of range (0-{parsed.column_count - 1})")
    pairs: List[Tuple[str, str]] = []
    for row in range(parsed.row_count):
        front = joiner.join(parsed.columns[c][row].strip() for c in front_columns if parsed.columns[c][row].strip())
        back = joiner.join(parsed.columns[c][row].strip() for c in back_columns if parsed.columns[c][row].strip())
        if front and back:
            pairs.append((front, back))
    return pairs
