from __future__ import annotations

from xml.sax.saxutils import escape

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


def render_messages(messages: list[str]) -> str:
    if not messages:
        return f"{XML_HEADER}<Response/>"
    body = "".join(f"<Message>{escape(message)}</Message>" for message in messages)
    return f"{XML_HEADER}<Response>{body}</Response>"
