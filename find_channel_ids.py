"""
Helper to find YouTube channel IDs from channel handles.
Run directly to print the channel ID and uploads playlist for each handle.
"""

import os
import sys
import logging
import requests
from dotenv import load_dotenv
from googleapiclient.errors import HttpError

from youtube_api import ChannelResolutionError, get_youtube_client, get_uploads_playlist

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = 'https://yt.lemnoslife.com/channels'


def is_channel_id(value: str) -> bool:
    return value.startswith('UC') and len(value) == 24


def resolve_channel_id(handle: str, lookup_url: str = DEFAULT_LOOKUP_URL, timeout: float = 30) -> str:
    """
    Map a channel handle to its channel ID using a handle lookup service.

    Args:
        handle: Channel handle, with or without the leading '@' (a channel ID is returned as is)
        lookup_url: Lookup endpoint answering ?handle=@name with {"items": [{"id": ...}]}
        timeout: Request timeout in seconds

    Returns:
        Channel ID

    Raises:
        ChannelResolutionError: If the handle cannot be resolved
    """
    handle = handle.strip()
    if is_channel_id(handle):
        return handle

    handle = handle[1:] if handle.startswith('@') else handle
    try:
        response = requests.get(lookup_url, params={'handle': f'@{handle}'}, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        raise ChannelResolutionError(f"Unable to find channel id given handle @{handle}: {e}") from e

    items = payload.get('items') if isinstance(payload, dict) else None
    if not items or not items[0].get('id'):
        raise ChannelResolutionError(f"Unable to find channel id given handle @{handle}")

    channel_id = items[0]['id']
    logger.debug(f"Resolved @{handle} to {channel_id}")
    return channel_id


def main():
    """Print channel IDs and uploads playlists for the handles given on the command line."""
    load_dotenv()

    handles = sys.argv[1:]
    if not handles:
        print("Usage: python find_channel_ids.py @handle [@handle ...]")
        return 1

    api_key = os.getenv('YOUTUBE_API_KEY')
    youtube = get_youtube_client(api_key) if api_key else None
    lookup_url = os.getenv('HANDLE_LOOKUP_URL', DEFAULT_LOOKUP_URL)

    for handle in handles:
        try:
            channel_id = resolve_channel_id(handle, lookup_url)
            uploads = get_uploads_playlist(youtube, channel_id) if youtube is not None else None
        except (ChannelResolutionError, HttpError) as e:
            print(f"{handle}: {e}")
            continue

        print(f"{handle}")
        print(f"     ID: {channel_id}")
        if uploads:
            print(f"     Uploads: {uploads}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
