"""
SSE stream reframing
Turns the upstream event stream into the caller-facing one, line by line.

The partial trailing line is an explicit accumulator: every step takes the
pending bytes from the previous read and returns the new pending bytes, so the
whole pipeline can be exercised with synthetic chunk sequences.
"""
import json
import logging
from typing import AsyncIterator, List, Optional, Tuple

from nimproxy.constants import ResponseConstants

logger = logging.getLogger(__name__)

DATA_PREFIX = ResponseConstants.STREAM_DATA_PREFIX
LINE_SEPARATOR = ResponseConstants.LINE_SEPARATOR


def split_lines(pending: bytes, chunk: bytes) -> Tuple[List[bytes], bytes]:
    """Join the pending partial line with a new chunk and split off complete lines.

    Returns the complete lines (without separators) and the new partial line.
    """
    lines = (pending + chunk).split(LINE_SEPARATOR)
    return lines[:-1], lines[-1]


def strip_reasoning(data) -> None:
    """Normalize the first choice's delta in place.

    Missing or empty content becomes "" and reasoning fields are removed.
    """
    if not isinstance(data, dict):
        return
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return

    if not delta.get("content"):
        delta["content"] = ""
    for field in ResponseConstants.REASONING_FIELDS:
        delta.pop(field, None)


def reframe_line(line: bytes) -> Optional[bytes]:
    """Translate one complete upstream line into an outbound frame.

    Returns None for lines that are not data lines.
    """
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):]
    if payload.strip() == ResponseConstants.STREAM_DONE_PAYLOAD:
        return line + LINE_SEPARATOR

    try:
        data = json.loads(payload)
    except ValueError:
        # fail open: malformed frames go through untouched
        logger.debug("Forwarding unparseable frame: %r", line[:200])
        return line + LINE_SEPARATOR

    strip_reasoning(data)
    encoded = json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return DATA_PREFIX + encoded + ResponseConstants.FRAME_TERMINATOR


def feed(pending: bytes, chunk: bytes) -> Tuple[List[bytes], bytes]:
    """One reframing step: returns the outbound frames and the new pending bytes."""
    lines, pending = split_lines(pending, chunk)
    frames = []
    for line in lines:
        frame = reframe_line(line)
        if frame is not None:
            frames.append(frame)
    return frames, pending


def flush(pending: bytes) -> List[bytes]:
    """Process whatever is left once the upstream has finished."""
    if not pending:
        return []
    frame = reframe_line(pending)
    return [frame] if frame is not None else []


async def reframe_stream(chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Reframe an async byte stream, preserving frame order."""
    pending = b""
    async for chunk in chunks:
        frames, pending = feed(pending, chunk)
        for frame in frames:
            yield frame
    for frame in flush(pending):
        yield frame
