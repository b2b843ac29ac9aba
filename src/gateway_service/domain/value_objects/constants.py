from __future__ import annotations

# Sender recorded on messages this session sent itself.
SELF_SENDER = "self"

# Content stored for inbound messages that carry no text.
MEDIA_PLACEHOLDER = "Media message"
