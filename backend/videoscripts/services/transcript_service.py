"""
Transcript Service
Fetches caption text for YouTube videos.

Two providers share one interface, fetch(video_url) -> Transcript:
- ApifyTranscriptFetcher: runs a hosted scraping actor keyed by video URL
- YouTubeCaptionsFetcher: reads captions directly with youtube-transcript-api

create_transcript_fetcher() picks one from settings.transcript_provider.
"""

import logging
from typing import Optional

import requests
from youtube_transcript_api import (
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

from videoscripts.config import ConfigurationError, Settings, get_settings, require
from videoscripts.services.youtube_service import extract_video_id

logger = logging.getLogger(__name__)

APIFY_BASE_URL = "https://api.apify.com/v2"
APIFY_TIMEOUT_SECONDS = 300


class TranscriptError(Exception):
    """Exception raised when transcript fetching fails."""
    pass


class TranscriptEntry:
    """Represents a single transcript entry with timing."""

    def __init__(self, text: str, start: float = 0.0, duration: float = 0.0):
        self.text = text
        self.start = start  # Start time in seconds
        self.duration = duration  # Duration in seconds


class Transcript:
    """Represents a full transcript with metadata."""

    def __init__(self, video_url: str, entries: list[TranscriptEntry], language: str = "en"):
        self.video_url = video_url
        self.entries = entries
        self.language = language

    @property
    def full_text(self) -> str:
        """Get the full transcript as plain text."""
        return " ".join(entry.text.strip() for entry in self.entries if entry.text).strip()

    @property
    def word_count(self) -> int:
        return len(self.full_text.split())


class TranscriptFetcher:
    """Interface for caption providers."""

    def fetch(self, video_url: str) -> Transcript:
        raise NotImplementedError


class ApifyTranscriptFetcher(TranscriptFetcher):
    """Runs an Apify actor synchronously and reads its dataset items."""

    def __init__(self, api_token: str, actor_id: str, session: Optional[requests.Session] = None):
        self.api_token = api_token
        self.actor_id = actor_id
        self.session = session or requests.Session()

    def fetch(self, video_url: str) -> Transcript:
        url = f"{APIFY_BASE_URL}/acts/{self.actor_id}/run-sync-get-dataset-items"
        logger.info(f"Requesting transcript for {video_url}")

        try:
            response = self.session.post(
                url,
                params={"token": self.api_token},
                json={"videoUrl": video_url},
                timeout=APIFY_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise TranscriptError(f"Transcript request failed: {e}") from e

        if response.status_code not in (200, 201):
            raise TranscriptError(
                f"Transcript service returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            items = response.json()
        except ValueError as e:
            raise TranscriptError(f"Transcript service returned invalid JSON: {e}") from e

        entries = _entries_from_dataset(items)
        if not entries:
            raise TranscriptError(f"No transcript returned for {video_url}")

        return Transcript(video_url=video_url, entries=entries)


def _entries_from_dataset(items) -> list[TranscriptEntry]:
    """
    Flatten actor output into entries.

    Actors differ in shape: items may carry a "data" list of caption
    segments, a "transcript" string or list, or a bare "text" field.
    """
    if isinstance(items, dict):
        items = [items]

    entries = []
    for item in items or []:
        if not isinstance(item, dict):
            continue

        segments = item.get("data")
        if segments is None:
            segments = item.get("transcript")
        if segments is None:
            segments = item.get("text")

        if isinstance(segments, str):
            entries.append(TranscriptEntry(text=segments))
        elif isinstance(segments, list):
            for segment in segments:
                if isinstance(segment, dict):
                    entries.append(TranscriptEntry(
                        text=str(segment.get("text", "")),
                        start=float(segment.get("start", 0) or 0),
                        duration=float(segment.get("dur", segment.get("duration", 0)) or 0),
                    ))
                elif isinstance(segment, str):
                    entries.append(TranscriptEntry(text=segment))

    return [entry for entry in entries if entry.text.strip()]


class YouTubeCaptionsFetcher(TranscriptFetcher):
    """
    Reads captions with youtube-transcript-api.

    Tries manual captions first, falls back to auto-generated, then to any
    available language.
    """

    def __init__(self, preferred_languages: Optional[list[str]] = None, api: Optional[YouTubeTranscriptApi] = None):
        self.preferred_languages = preferred_languages or ["en", "en-US", "en-GB"]
        self.api = api or YouTubeTranscriptApi()

    def fetch(self, video_url: str) -> Transcript:
        video_id = extract_video_id(video_url)
        if not video_id:
            raise TranscriptError(f"Could not extract a video id from {video_url}")

        logger.info(f"Fetching captions for {video_id}")

        try:
            transcript_list = self.api.list(video_id)

            found = None
            try:
                found = transcript_list.find_manually_created_transcript(self.preferred_languages)
            except NoTranscriptFound:
                try:
                    found = transcript_list.find_generated_transcript(self.preferred_languages)
                except NoTranscriptFound:
                    found = next(iter(transcript_list), None)

            if found is None:
                raise TranscriptError(f"No transcript available for {video_id}")

            fetched = found.fetch()
            entries = [
                TranscriptEntry(text=snippet.text, start=snippet.start, duration=snippet.duration)
                for snippet in fetched
            ]

        except TranscriptsDisabled as e:
            raise TranscriptError(f"Transcripts are disabled for video {video_id}") from e
        except VideoUnavailable as e:
            raise TranscriptError(f"Video {video_id} is unavailable") from e
        except NoTranscriptFound as e:
            raise TranscriptError(f"No transcript found for video {video_id}") from e

        return Transcript(video_url=video_url, entries=entries, language=found.language_code)


def create_transcript_fetcher(settings: Optional[Settings] = None) -> TranscriptFetcher:
    """
    Build the configured provider.

    Raises:
        ConfigurationError: On a missing Apify token or unknown provider name
    """
    settings = settings or get_settings()
    provider = settings.transcript_provider.lower()

    if provider == "apify":
        token = require(settings.apify_api_token, "Apify API token")
        return ApifyTranscriptFetcher(api_token=token, actor_id=settings.apify_actor_id)
    if provider == "youtube":
        return YouTubeCaptionsFetcher()

    raise ConfigurationError(f"Unknown transcript provider: {settings.transcript_provider}")
