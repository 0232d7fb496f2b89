from __future__ import annotations

import html
import re
from typing import Any, Mapping

from .payload import dig, text

_EMOJI_STYLE = (
    "margin: -1px 1px 0px; display: inline-block; width: 20px; height: 20px; "
    "vertical-align: text-bottom;"
)


def emoji_table(entry: Mapping[str, Any] | None) -> dict[str, str]:
    """Shorthand token to image URL, in the order the entry declares them."""
    table: dict[str, str] = {}
    details = dig(entry, "display", "emoji_info", "emoji_details")
    if not isinstance(details, list):
        return table
    for row in details:
        token = text(dig(row, "text"))
        url = text(dig(row, "url"))
        if token is None or url is None or token in table:
            continue
        table[token] = url
    return table


def emoji_img(token: str, url: str) -> str:
    alt = html.escape(token, quote=True)
    return (
        f'<img alt="{alt}" title="{alt}" src="{html.escape(url, quote=True)}" '
        f'style="{_EMOJI_STYLE}" referrerpolicy="no-referrer">'
    )


def substitute_emoji(body: str, table: Mapping[str, str] | None, *, enabled: bool) -> str:
    """
    Replace literal emoji shorthand such as ``[doge]`` with inline images.

    All tokens are matched in one pass, longest first, so a token that is a
    substring of another never splits it and emitted tags are never rescanned.
    """
    if not enabled or not table or not body:
        return body

    order = {token: i for i, token in enumerate(table)}
    tokens = sorted(table, key=lambda t: (-len(t), order[t]))
    pattern = re.compile("|".join(re.escape(t) for t in tokens))

    return pattern.sub(lambda m: emoji_img(m.group(0), table[m.group(0)]), body)
