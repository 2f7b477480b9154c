"""
YouTube Data API v3 integration module.
Handles client authentication, channel lookup, and upload listing.
"""

import logging
import os
from typing import List, Optional
from googleapiclient.discovery import build
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from models import VideoRef

logger = logging.getLogger(__name__)

# Requested together so the user is only prompted once
SCOPES = [
    'https://www.googleapis.com/auth/youtube.force-ssl',
    'https://www.googleapis.com/auth/youtube.readonly',
]

PLAYLIST_PAGE_SIZE = 50


class ChannelResolutionError(Exception):
    """Raised when a channel or its uploads playlist cannot be determined."""
    pass


class MalformedPlaylistItemError(Exception):
    """Raised when a playlist item lacks its video id or title."""
    pass


def get_youtube_client(api_key: str):
    """Initialize YouTube Data API v3 client with an API key."""
    return build('youtube', 'v3', developerKey=api_key, cache_discovery=False)


def get_oauth_youtube_client(client_secret_file: str, token_cache_file: str):
    """
    Initialize YouTube Data API v3 client through the installed-app OAuth flow.

    A cached token is reused (and refreshed when expired); otherwise the
    browser flow is run and the new token is written to the cache.

    Args:
        client_secret_file: Path to the client secret JSON from Google Cloud console
        token_cache_file: Path where the OAuth token is cached

    Returns:
        YouTube API client
    """
    creds = None
    if os.path.exists(token_cache_file):
        creds = Credentials.from_authorized_user_file(token_cache_file, SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            logger.debug("Refreshing cached OAuth token")
            creds.refresh(Request())
        else:
            if not os.path.exists(client_secret_file):
                raise FileNotFoundError(f"Client secret file not found: {client_secret_file}")
            flow = InstalledAppFlow.from_client_secrets_file(client_secret_file, SCOPES)
            creds = flow.run_local_server(port=0)

        with open(token_cache_file, 'w', encoding='utf-8') as token:
            token.write(creds.to_json())

    return build('youtube', 'v3', credentials=creds, cache_discovery=False)


def get_uploads_playlist(youtube, channel_id: str) -> str:
    """
    Get the uploads playlist ID for a given channel.

    Args:
        youtube: YouTube API client
        channel_id: YouTube channel ID

    Returns:
        Uploads playlist ID

    Raises:
        ChannelResolutionError: If the channel or its uploads playlist is missing
    """
    response = youtube.channels().list(
        part='contentDetails',
        id=channel_id
    ).execute()

    items = response.get('items') or []
    if not items:
        raise ChannelResolutionError(f"Channel {channel_id} not found")

    uploads = items[0].get('contentDetails', {}).get('relatedPlaylists', {}).get('uploads')
    if not uploads:
        raise ChannelResolutionError(f"Unable to get upload playlist id for {channel_id}")
    return uploads


def fetch_all_items(youtube, playlist_id: str) -> List[VideoRef]:
    """
    Get every video in a playlist, in playlist order.
    Handles pagination; the walk ends when a page carries no nextPageToken.

    Args:
        youtube: YouTube API client
        playlist_id: Uploads playlist ID

    Returns:
        List of VideoRef

    Raises:
        MalformedPlaylistItemError: If an item has no video id or title
    """
    videos = []
    next_page_token: Optional[str] = None

    while True:
        response = youtube.playlistItems().list(
            part='snippet,contentDetails',
            playlistId=playlist_id,
            maxResults=PLAYLIST_PAGE_SIZE,
            pageToken=next_page_token
        ).execute()

        for item in response.get('items', []):
            video_id = item.get('contentDetails', {}).get('videoId')
            title = item.get('snippet', {}).get('title')
            if video_id is None or title is None:
                raise MalformedPlaylistItemError(
                    f"Playlist item without video id or title in {playlist_id}: {item.get('id')}"
                )
            videos.append(VideoRef(title=title, video_id=video_id))

        logger.debug(f"Playlist {playlist_id}: {len(videos)} videos so far")

        # An empty string is still a token; only its absence ends the walk
        next_page_token = response.get('nextPageToken')
        if next_page_token is None:
            break

    return videos
