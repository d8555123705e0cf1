"""
YouTube Service
Video and channel metadata lookups through the YouTube Data API v3.

- Video id extraction from the URL shapes people paste into sheets
- Batched video lookups (50 ids per videos.list call)
- Channel info retrieval
"""

import logging
import re
from datetime import datetime
from typing import Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from videoscripts.config import Settings, get_settings, require

logger = logging.getLogger(__name__)

# videos.list accepts at most 50 ids per request
MAX_IDS_PER_REQUEST = 50

_VIDEO_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{11}$")
_VIDEO_URL_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/v/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/watch\?.*v=([a-zA-Z0-9_-]{11})"),
]


class YouTubeServiceError(Exception):
    """Exception raised for YouTube API errors."""
    pass


def get_youtube_client(settings: Optional[Settings] = None):
    """
    Create a YouTube API client authenticated with an API key.

    Raises:
        ConfigurationError: If no YouTube API key is configured
    """
    settings = settings or get_settings()
    api_key = require(settings.youtube_api_key, "YouTube API key")
    return build("youtube", "v3", developerKey=api_key, cache_discovery=False)


def extract_video_id(url: str) -> Optional[str]:
    """
    Pull the 11-character video id out of a URL or bare id.

    Returns:
        The video id, or None if nothing matches
    """
    if not url:
        return None

    url = url.strip()
    if _VIDEO_ID_PATTERN.match(url):
        return url

    for pattern in _VIDEO_URL_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)

    return None


def parse_youtube_duration(duration_str: str) -> int:
    """
    Parse YouTube ISO 8601 duration to seconds.

    Args:
        duration_str: Duration string like "PT1H2M3S"

    Returns:
        Duration in seconds
    """
    pattern = r'PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?'
    match = re.match(pattern, duration_str or "")

    if not match:
        return 0

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)

    return hours * 3600 + minutes * 60 + seconds


def parse_published_at(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 publish date into a naive UTC datetime."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def _video_from_item(item: dict) -> dict:
    snippet = item.get("snippet", {})
    content_details = item.get("contentDetails", {})
    statistics = item.get("statistics", {})
    thumbnails = snippet.get("thumbnails", {})

    return {
        "video_id": item["id"],
        "title": snippet.get("title", ""),
        "description": snippet.get("description", ""),
        "published_at": parse_published_at(snippet.get("publishedAt")),
        "channel_id": snippet.get("channelId"),
        "channel_title": snippet.get("channelTitle"),
        "thumbnail_url": (thumbnails.get("high") or thumbnails.get("default") or {}).get("url"),
        "duration_seconds": parse_youtube_duration(content_details.get("duration", "PT0S")),
        "view_count": int(statistics.get("viewCount", 0)),
        "like_count": int(statistics.get("likeCount", 0)),
        "comment_count": int(statistics.get("commentCount", 0)),
    }


def get_videos_info(youtube, video_ids: list[str]) -> list[dict]:
    """
    Look up metadata for many videos, 50 ids per request.

    Args:
        youtube: YouTube API client
        video_ids: YouTube video ids

    Returns:
        List of video dicts; ids the API does not know are simply absent

    Raises:
        YouTubeServiceError: If an API request fails
    """
    videos = []

    for start in range(0, len(video_ids), MAX_IDS_PER_REQUEST):
        batch = video_ids[start:start + MAX_IDS_PER_REQUEST]
        try:
            response = youtube.videos().list(
                part="snippet,contentDetails,statistics",
                id=",".join(batch)
            ).execute()
        except HttpError as e:
            raise YouTubeServiceError(f"Failed to get video details: {e}") from e

        for item in response.get("items", []):
            videos.append(_video_from_item(item))

    logger.info(f"Fetched metadata for {len(videos)}/{len(video_ids)} videos")
    return videos


def get_channel_info(youtube, channel_id: str) -> Optional[dict]:
    """
    Get a channel's title and statistics.

    Returns:
        dict with channel info, or None if the channel does not exist

    Raises:
        YouTubeServiceError: If the API call fails
    """
    try:
        response = youtube.channels().list(
            part="snippet,statistics",
            id=channel_id
        ).execute()
    except HttpError as e:
        raise YouTubeServiceError(f"Failed to get channel info: {e}") from e

    channels = response.get("items", [])
    if not channels:
        return None

    channel = channels[0]
    snippet = channel.get("snippet", {})
    statistics = channel.get("statistics", {})

    return {
        "channel_id": channel["id"],
        "title": snippet.get("title", ""),
        "description": snippet.get("description", ""),
        "thumbnail_url": snippet.get("thumbnails", {}).get("default", {}).get("url"),
        "subscriber_count": int(statistics.get("subscriberCount", 0)),
        "video_count": int(statistics.get("videoCount", 0)),
        "view_count": int(statistics.get("viewCount", 0)),
    }
