"""Markdown fragment rendering for report documents.

Each helper returns a list of lines so callers can append fragments in
document order and join once at the end.
"""

from .patterns import BLANK_RUN_RE


def heading(level: int, text: str) -> list[str]:
    return ['', f'{"#" * level} {text.strip()}', '']


def paragraph(text: str) -> list[str]:
    return [text.strip(), '']


def fenced_code(text: str) -> list[str]:
    """Verbatim fenced block without a language tag."""
    return ['```', text.rstrip('\n'), '```', '']


def list_lines(items: list[str], ordered: bool = False) -> list[str]:
    """Bullet or numbered lines; numbering starts at 1 for every list."""
    lines = []
    for idx, item in enumerate(items, start=1):
        marker = f'{idx}.' if ordered else '-'
        # Nested list text arrives inside the item; keep it as continuation lines.
        body = '\n'.join(
            line.strip() if n == 0 else '  ' + line.strip()
            for n, line in enumerate(item.strip().split('\n'))
            if line.strip()
        )
        lines.append(f'{marker} {body}')
    lines.append('')
    return lines


def blockquote(text: str) -> list[str]:
    """Prefix every line with '> ', keeping internal line breaks."""
    lines = [f'> {line}'.rstrip() for line in text.strip().split('\n')]
    lines.append('')
    return lines


def escape_cell(text: str) -> str:
    return text.strip().replace('\n', ' ').replace('|', '\\|')


def table(rows: list[list[str]]) -> list[str]:
    """Pipe table: first row is the header, followed by a '---' separator."""
    rows = [row for row in rows if row]
    if not rows:
        return []
    lines = []
    for idx, row in enumerate(rows):
        lines.append('| ' + ' | '.join(escape_cell(cell) for cell in row) + ' |')
        if idx == 0:
            lines.append('| ' + ' | '.join('---' for _ in row) + ' |')
    lines.append('')
    return lines


def metadata_line(label: str, value: str) -> str:
    return f'- **{label}:** {value.strip()}'


def collapse_blank_lines(text: str) -> str:
    """Reduce any run of three or more newlines to a single blank line."""
    return BLANK_RUN_RE.sub('\n\n', text)
