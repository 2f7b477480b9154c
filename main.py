"""
Main orchestration script for the channel comment harvest.
Resolves the channel, walks its uploads, and collects every comment and reply
into a single JSON file.
"""

import os
import sys
import json
import logging
import argparse
from typing import List, Optional
from dotenv import load_dotenv
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from tqdm import tqdm

from models import ChannelExport, VideoResult, export_to_dicts
from youtube_api import (
    ChannelResolutionError,
    MalformedPlaylistItemError,
    fetch_all_items,
    get_oauth_youtube_client,
    get_uploads_playlist,
    get_youtube_client
)
from comments import CommentFetchError, fetch_comments
from find_channel_ids import DEFAULT_LOOKUP_URL, resolve_channel_id


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure root logging for console output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    # googleapiclient logs every request at DEBUG
    logging.getLogger('googleapiclient').setLevel(logging.WARNING)


def harvest(youtube, playlist_id: str, progress: bool = True) -> ChannelExport:
    """
    Collect all comments on every video in an uploads playlist.

    Videos are processed one at a time in playlist order. Any error other
    than disabled comments aborts the whole harvest.

    Args:
        youtube: YouTube API client
        playlist_id: Uploads playlist ID of the channel
        progress: Show a progress bar

    Returns:
        One VideoResult per video, in upload order
    """
    videos = fetch_all_items(youtube, playlist_id)
    logger.info(f"Found {len(videos)} videos")

    export: ChannelExport = []
    for video in tqdm(videos, desc="Comments", disable=not progress):
        comments = fetch_comments(youtube, video.video_id)
        export.append(VideoResult(title=video.title, id=video.video_id, comments=comments))
        logger.debug(f"{video.video_id}: {len(comments)} comments")

    return export


def write_export(export: ChannelExport, output_path: str):
    """
    Write the harvest to a JSON file.

    Args:
        export: Harvest result
        output_path: Destination file
    """
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(export_to_dicts(export), f, ensure_ascii=False, indent=2)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download all comments on all videos uploaded to a YouTube channel "
                    "and store the output in a JSON file."
    )
    parser.add_argument('channel_handle',
                        help="Handle of the channel (e.g. @smartereveryday) or its channel ID")
    parser.add_argument('token_cache_name', nargs='?', default='tokencache.json',
                        help="File used to cache the OAuth token")
    parser.add_argument('client_secret_name', nargs='?', default='client_secret.json',
                        help="Client secret JSON downloaded from the Google Cloud console")
    parser.add_argument('output_name', nargs='?', default='comments.json',
                        help="File where the comment JSON is written")
    parser.add_argument('--api-key', default=os.getenv('YOUTUBE_API_KEY'),
                        help="YouTube Data API key; skips OAuth when set (default: $YOUTUBE_API_KEY)")
    parser.add_argument('--lookup-url', default=os.getenv('HANDLE_LOOKUP_URL', DEFAULT_LOOKUP_URL),
                        help="Handle lookup service endpoint")
    parser.add_argument('--no-progress', action='store_true', help="Hide the progress bar")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    return parser.parse_args(argv)


def build_client(args: argparse.Namespace):
    if args.api_key:
        return get_youtube_client(args.api_key)
    return get_oauth_youtube_client(args.client_secret_name, args.token_cache_name)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.
    """
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        youtube = build_client(args)
    except (FileNotFoundError, ValueError, GoogleAuthError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        channel_id = resolve_channel_id(args.channel_handle, args.lookup_url)
        playlist_id = get_uploads_playlist(youtube, channel_id)
        logger.info(f"Channel {channel_id}, uploads playlist {playlist_id}")

        export = harvest(youtube, playlist_id, progress=not args.no_progress)
    except (ChannelResolutionError, CommentFetchError, MalformedPlaylistItemError, HttpError) as e:
        logger.error(f"Harvest failed: {e}")
        return 1

    write_export(export, args.output_name)
    logger.info(f"Export written to {args.output_name}")

    total_comments = sum(len(video.comments) for video in export)
    total_replies = sum(len(comment.children) for video in export for comment in video.comments)
    print(f"\n✓ Harvest complete!")
    print(f"  {len(export)} videos, {total_comments} comments, {total_replies} replies")
    print(f"  Output saved to: {args.output_name}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
