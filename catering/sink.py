from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Protocol, Tuple, Union

import pandas as pd


logger = logging.getLogger(__name__)

Payload = Union[bytes, str]

_UNSAFE_NAME_CHARS = re.compile(r"[\\/:*?\"<>|\x00-\x1f]+")


class DocumentSink(Protocol):
    """Destination for finished documents. Upload and URL schemes live behind it."""

    def href(self, name: str) -> str:
        ...

    def write(self, name: str, payload: Payload, content_type: str) -> str:
        ...


def build_base_name(event_name: str, generated_at: pd.Timestamp) -> str:
    """``<event>_Catering_<epoch-ms>``, with path separators stripped from the event name."""
    safe_event = _UNSAFE_NAME_CHARS.sub("_", event_name).strip() or "Event"
    epoch_ms = int(generated_at.value // 1_000_000)
    return f"{safe_event}_Catering_{epoch_ms}"


class LocalDirectorySink:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def href(self, name: str) -> str:
        # Documents sit side by side, so a bare file name links them.
        return name

    def write(self, name: str, payload: Payload, content_type: str) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / name
        if isinstance(payload, str):
            path.write_text(payload, encoding="utf-8")
        else:
            path.write_bytes(payload)
        logger.info("Wrote %s (%s, %d bytes)", path, content_type, path.stat().st_size)
        return str(path)


@dataclass
class MemorySink:
    documents: Dict[str, Tuple[Payload, str]] = field(default_factory=dict)

    def href(self, name: str) -> str:
        return name

    def write(self, name: str, payload: Payload, content_type: str) -> str:
        self.documents[name] = (payload, content_type)
        return f"memory://{name}"
