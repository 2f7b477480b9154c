"""
Data models for the comment harvest.
Videos, top-level comments and their replies, and the per-video result.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List


@dataclass(frozen=True)
class VideoRef:
    """One uploaded video as listed in the channel's uploads playlist."""
    title: str
    video_id: str


@dataclass(frozen=True)
class Reply:
    """A reply to a top-level comment. Replies cannot be replied to."""
    text: str
    author_name: str


@dataclass
class Comment:
    """
    A top-level comment with its replies.
    The children list is filled in while the thread is reconciled.
    """
    text: str
    author_name: str
    children: List[Reply] = field(default_factory=list)


@dataclass
class VideoResult:
    title: str
    id: str
    comments: List[Comment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for JSON serialization."""
        return asdict(self)


# Results in upload order
ChannelExport = List[VideoResult]


def export_to_dicts(export: ChannelExport) -> List[Dict[str, Any]]:
    return [video.to_dict() for video in export]
