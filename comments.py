"""
Comments scraper module.
Fetches every top-level comment on a video together with all of its replies.

Comment threads carry a short preview of their replies inline. When the
preview holds fewer replies than the thread's totalReplyCount, the full
reply list is fetched separately through comments().list(parentId=...).
"""

import json
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TypeVar, Union
from googleapiclient.errors import HttpError

from models import Comment, Reply

logger = logging.getLogger(__name__)

COMMENT_PAGE_SIZE = 100
COMMENTS_DISABLED_CODE = 403

T = TypeVar('T')


@dataclass(frozen=True)
class Disabled:
    """Comments are turned off for the video."""
    pass


@dataclass(frozen=True)
class Fatal:
    """Any other API error. code is None when the error body could not be parsed."""
    code: Optional[int]
    body: str


class CommentFetchError(Exception):
    """Raised when a comment thread listing fails for a reason other than disabled comments."""

    def __init__(self, video_id: str, code: Optional[int], body: str):
        self.video_id = video_id
        self.code = code
        self.body = body
        super().__init__(f"Unable to fetch comment threads for {video_id} (code={code}): {body}")


def classify_http_error(error: HttpError) -> Union[Disabled, Fatal]:
    """
    Sort an API error into disabled comments or a fatal failure.

    The decision is made on the numeric code embedded in the JSON error
    body ({"error": {"code": 403, ...}}), not on the HTTP status line.
    """
    content = error.content
    body = content.decode('utf-8', errors='replace') if isinstance(content, bytes) else str(content)
    try:
        code = json.loads(body)['error']['code']
    except (ValueError, KeyError, TypeError):
        return Fatal(code=None, body=body)

    if not isinstance(code, int) or isinstance(code, bool):
        return Fatal(code=None, body=body)
    if code == COMMENTS_DISABLED_CODE:
        return Disabled()
    return Fatal(code=code, body=body)


def validate(snippet: Optional[Dict], factory: Callable[[str, str], T]) -> Optional[T]:
    """
    Build a comment or reply from its snippet, or None when the text or author is missing.

    Args:
        snippet: The "snippet" object of a comment resource
        factory: Called with (text, author_name), e.g. Reply

    Returns:
        The built object, or None
    """
    if not snippet:
        return None
    text = snippet.get('textOriginal')
    author_name = snippet.get('authorDisplayName')
    if text is None or author_name is None:
        return None
    return factory(text, author_name)


def _replies_from(items: List[Dict]) -> List[Reply]:
    replies = []
    for item in items:
        reply = validate(item.get('snippet'), Reply)
        if reply is not None:
            replies.append(reply)
    return replies


def fetch_replies(youtube, parent_id: str) -> List[Reply]:
    """
    Fetch all replies to a comment with full pagination.

    Args:
        youtube: YouTube API client
        parent_id: ID of the top-level comment (same as the thread ID)

    Returns:
        List of replies in API order
    """
    replies = []
    next_page_token: Optional[str] = None

    while True:
        response = youtube.comments().list(
            part='snippet',
            parentId=parent_id,
            maxResults=COMMENT_PAGE_SIZE,
            pageToken=next_page_token,
            textFormat='plainText'
        ).execute()

        replies.extend(_replies_from(response.get('items', [])))

        next_page_token = response.get('nextPageToken')
        if next_page_token is None:
            break

    return replies


def _resolve_replies(youtube, item: Dict) -> List[Reply]:
    inline = (item.get('replies') or {}).get('comments') or []
    total_reply_count = (item.get('snippet') or {}).get('totalReplyCount') or 0

    if len(inline) == total_reply_count:
        return _replies_from(inline)

    # The inline preview is truncated
    thread_id = item.get('id')
    if thread_id is None:
        logger.warning(
            f"Thread without id has {len(inline)} of {total_reply_count} replies inline; "
            "keeping the inline replies"
        )
        return _replies_from(inline)

    logger.debug(f"Thread {thread_id}: {len(inline)}/{total_reply_count} replies inline, fetching all")
    return fetch_replies(youtube, thread_id)


def fetch_comments(youtube, video_id: str) -> List[Comment]:
    """
    Fetch all comments for a video, each with its complete list of replies.

    A video with comments disabled yields the comments gathered so far
    (normally none). Any other failure is raised.

    Args:
        youtube: YouTube API client
        video_id: YouTube video ID

    Returns:
        List of comments in API order

    Raises:
        CommentFetchError: If the thread listing fails with any other API error
    """
    comments = []
    next_page_token: Optional[str] = None

    while True:
        try:
            response = youtube.commentThreads().list(
                part='snippet,replies',
                videoId=video_id,
                maxResults=COMMENT_PAGE_SIZE,
                pageToken=next_page_token,
                textFormat='plainText'
            ).execute()
        except HttpError as e:
            outcome = classify_http_error(e)
            if isinstance(outcome, Disabled):
                logger.info(f"Comments are disabled for video {video_id}")
                return comments
            raise CommentFetchError(video_id, outcome.code, outcome.body) from e

        for item in response.get('items', []):
            top_level = ((item.get('snippet') or {}).get('topLevelComment') or {}).get('snippet')
            comment = validate(top_level, Comment)
            if comment is None:
                continue

            comment.children.extend(_resolve_replies(youtube, item))
            comments.append(comment)

        next_page_token = response.get('nextPageToken')
        if next_page_token is None:
            break

    return comments
