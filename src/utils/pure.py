from math import ceil
from typing import Any, List, Literal, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[Any]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: column headers, or None to use the first row as headers.
        rows: table rows; cells are converted with str().
        aligns: 'l', 'c' or 'r' per column, center by default.

    Pipes inside cells are escaped so free-text fields (addresses,
    notes) cannot break the table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    def cell(value: Any) -> str:
        text = "-" if value is None or value == "" else str(value)
        return text.replace("|", "\\|").replace("\n", " ")

    headers = [cell(h) for h in headers]
    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(cell(v) for v in row) + " |" for row in rows]
    return "\n".join(lines)


def format_money(amount: Optional[float]) -> str:
    """Rs. 1,234.50"""
    return f"Rs. {float(amount or 0):,.2f}"


def percent_label(segment: float, total: float) -> str:
    """Pie slice share of total revenue, one decimal."""
    if not total:
        return "0.0%"
    return f"{segment / total * 100:.1f}%"


def paginate(items: Sequence[T], page: int, page_size: int) -> Tuple[List[T], int]:
    """Rows of 1-based ``page`` and the page count (at least 1)."""
    page_cnt = max(ceil(len(items) / page_size), 1)
    page = min(max(page, 1), page_cnt)
    start = (page - 1) * page_size
    return list(items[start : start + page_size]), page_cnt


def parse_number(text: str, default: Optional[float] = None) -> Optional[float]:
    try:
        return float(str(text).strip().replace(",", ""))
    except ValueError:
        return default
