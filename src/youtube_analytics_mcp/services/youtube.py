# ABOUTME: YouTube Data API v3 and YouTube Analytics API v2 service
# ABOUTME: Handles channel/video lookups, analytics reports, and API error mapping

import logging
from typing import List, Dict, Any, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from youtube_analytics_mcp import config
from youtube_analytics_mcp.utils.retry import retry_with_backoff, error_reasons

logger = logging.getLogger(__name__)


class YouTubeAPIError(Exception):
    """A YouTube API call failed."""


class QuotaExceededError(YouTubeAPIError):
    def __init__(self, quota_type: str):
        super().__init__(f"YouTube API quota exceeded: {quota_type}")


class RateLimitError(YouTubeAPIError):
    pass


class YouTubeService:
    """Service for YouTube Data and YouTube Analytics API operations."""

    def __init__(self, credentials: Credentials, channel_id: Optional[str] = None):
        """Initialize YouTube service.

        Args:
            credentials: Valid OAuth2 credentials
            channel_id: Channel to target (defaults to YOUTUBE_CHANNEL_ID,
                then the authenticated user's own channel)
        """
        if not credentials:
            raise ValueError("credentials are required")

        self.credentials = credentials
        self.channel_id = channel_id or config.channel_id()
        self._youtube = build('youtube', 'v3', credentials=credentials, cache_discovery=False)
        self._analytics = build('youtubeAnalytics', 'v2', credentials=credentials, cache_discovery=False)

    @property
    def report_ids(self) -> str:
        return f"channel=={self.channel_id}" if self.channel_id else "channel==MINE"

    # YouTube Data API

    def list_channels(self) -> List[Dict[str, Any]]:
        """List all channels owned by the authenticated account."""
        request = self._youtube.channels().list(
            part='snippet,statistics',
            mine=True,
            maxResults=50,
        )
        response = self._call(request, "listing channels")
        return response.get('items', [])

    def get_channel_info(self) -> Dict[str, Any]:
        """Get snippet and statistics for the target channel.

        Raises:
            YouTubeAPIError: If no channel is found
        """
        params = {'part': 'snippet,statistics'}
        if self.channel_id:
            params['id'] = self.channel_id
        else:
            params['mine'] = True

        response = self._call(self._youtube.channels().list(**params), "getting channel info")
        items = response.get('items', [])
        if not items:
            raise YouTubeAPIError("No channel found for the authenticated user")
        return items[0]

    def search_channel_videos(
        self,
        query: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        max_results: int = 25,
    ) -> List[Dict[str, Any]]:
        """Search the channel's videos, newest first.

        Args:
            query: Free text search query
            start_date: Only videos published on or after this date (YYYY-MM-DD)
            end_date: Only videos published on or before this date (YYYY-MM-DD)
            max_results: Maximum number of videos (capped at 50)

        Returns:
            List of search result dictionaries
        """
        channel = self.get_channel_info()

        request_params = {
            'part': 'snippet',
            'channelId': channel['id'],
            'type': 'video',
            'order': 'date',
            'maxResults': min(max_results, 50),
        }
        if query:
            request_params['q'] = query
        if start_date:
            request_params['publishedAfter'] = f"{start_date}T00:00:00Z"
        if end_date:
            request_params['publishedBefore'] = f"{end_date}T23:59:59Z"

        response = self._call(self._youtube.search().list(**request_params), "searching channel videos")
        return response.get('items', [])

    def get_video_details(self, video_id: str) -> Dict[str, Any]:
        """Get snippet, statistics and content details for a video."""
        request = self._youtube.videos().list(
            part='snippet,statistics,contentDetails',
            id=video_id,
        )
        response = self._call(request, f"getting video {video_id}")
        items = response.get('items', [])
        if not items:
            raise YouTubeAPIError(f"Video not found: {video_id}")
        return items[0]

    # YouTube Analytics API

    def query_report(
        self,
        start_date: str,
        end_date: str,
        metrics: List[str],
        dimensions: Optional[List[str]] = None,
        filters: Optional[str] = None,
        sort: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Run an analytics report for the target channel.

        Returns:
            Dict with ``columnHeaders`` and ``rows``
        """
        request_params = {
            'ids': self.report_ids,
            'startDate': start_date,
            'endDate': end_date,
            'metrics': ','.join(metrics),
        }
        if dimensions:
            request_params['dimensions'] = ','.join(dimensions)
        if filters:
            request_params['filters'] = filters
        if sort:
            request_params['sort'] = sort
        if max_results:
            request_params['maxResults'] = max_results

        response = self._call(self._analytics.reports().query(**request_params), "querying analytics")
        return {
            'columnHeaders': response.get('columnHeaders', []),
            'rows': response.get('rows', []),
        }

    def get_channel_overview(self, start_date: str, end_date: str) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=[
                'views', 'estimatedMinutesWatched', 'averageViewDuration',
                'averageViewPercentage', 'subscribersGained', 'subscribersLost',
            ],
            dimensions=['day'],
            sort='day',
        )

    def get_comparison_metrics(
        self,
        metrics: List[str],
        period1_start: str,
        period1_end: str,
        period2_start: str,
        period2_end: str,
    ) -> Dict[str, Any]:
        """Run the same metrics over two periods.

        Returns:
            Dict with ``period1`` and ``period2``, each holding the period
            label and its report
        """
        if not metrics:
            raise ValueError("metrics must be a non-empty list")

        return {
            'period1': {
                'period': f"{period1_start} to {period1_end}",
                'report': self.query_report(period1_start, period1_end, metrics=metrics),
            },
            'period2': {
                'period': f"{period2_start} to {period2_end}",
                'report': self.query_report(period2_start, period2_end, metrics=metrics),
            },
        }

    def get_average_view_percentage(self, start_date: str, end_date: str) -> Dict[str, Any]:
        return self.query_report(start_date, end_date, metrics=['averageViewPercentage'])

    def get_watch_time_metrics(
        self, start_date: str, end_date: str, video_id: Optional[str] = None
    ) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['estimatedMinutesWatched', 'averageViewDuration', 'averageViewPercentage', 'views'],
            dimensions=['day'],
            filters=_video_filter(video_id),
            sort='day',
        )

    def get_demographics(self, start_date: str, end_date: str, video_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['viewerPercentage'],
            dimensions=['ageGroup', 'gender'],
            filters=_video_filter(video_id),
            sort='gender,ageGroup',
        )

    def get_geographic_distribution(
        self, start_date: str, end_date: str, video_id: Optional[str] = None
    ) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['views', 'estimatedMinutesWatched', 'averageViewDuration'],
            dimensions=['country'],
            filters=_video_filter(video_id),
            sort='-views',
            max_results=50,
        )

    def get_traffic_sources(self, start_date: str, end_date: str, video_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['views', 'estimatedMinutesWatched'],
            dimensions=['insightTrafficSourceType'],
            filters=_video_filter(video_id),
            sort='-views',
        )

    def get_subscriber_analytics(
        self, start_date: str, end_date: str, video_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Views from subscribers versus non-subscribers."""
        return self.query_report(
            start_date,
            end_date,
            metrics=['views', 'estimatedMinutesWatched', 'averageViewDuration'],
            dimensions=['subscribedStatus'],
            filters=_video_filter(video_id),
        )

    def get_device_analytics(self, start_date: str, end_date: str, video_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['views', 'estimatedMinutesWatched', 'averageViewDuration'],
            dimensions=['deviceType', 'operatingSystem'],
            filters=_video_filter(video_id),
            sort='-views',
        )

    def get_audience_retention(self, video_id: str, start_date: str, end_date: str) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['audienceWatchRatio', 'relativeRetentionPerformance'],
            dimensions=['elapsedVideoTimeRatio'],
            filters=_video_filter(video_id),
            sort='elapsedVideoTimeRatio',
        )

    def get_top_videos(
        self,
        start_date: str,
        end_date: str,
        metric: str = 'views',
        max_results: int = 10,
    ) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=[
                'views', 'estimatedMinutesWatched', 'likes', 'comments', 'shares',
                'subscribersGained', 'averageViewDuration', 'averageViewPercentage',
            ],
            dimensions=['video'],
            sort=f"-{metric}",
            max_results=max_results,
        )

    def get_playlist_performance(
        self, start_date: str, end_date: str, playlist_id: Optional[str] = None
    ) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['playlistStarts', 'viewsPerPlaylistStart', 'averageTimeInPlaylist'],
            dimensions=['playlist'],
            filters=f"playlist=={playlist_id}" if playlist_id else None,
            sort='-playlistStarts',
            max_results=20,
        )

    def get_card_endscreen_performance(self, video_id: str, start_date: str, end_date: str) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['cardImpressions', 'cardClicks', 'cardClickRate'],
            dimensions=['video'],
            filters=_video_filter(video_id),
            sort='video',
        )

    def get_video_performance_over_time(self, video_id: str, start_date: str, end_date: str) -> Dict[str, Any]:
        """Daily views, watch time and interactions for one video."""
        return self.query_report(
            start_date,
            end_date,
            metrics=[
                'views', 'estimatedMinutesWatched', 'likes', 'comments', 'shares',
                'subscribersGained', 'averageViewDuration',
            ],
            dimensions=['day'],
            filters=_video_filter(video_id),
            sort='day',
        )

    def get_engagement_metrics(self, start_date: str, end_date: str, video_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['likes', 'dislikes', 'comments', 'shares', 'subscribersGained', 'subscribersLost', 'views'],
            dimensions=['day'],
            filters=_video_filter(video_id),
            sort='day',
        )

    def get_sharing_analytics(self, start_date: str, end_date: str, video_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['shares'],
            dimensions=['sharingService'],
            filters=_video_filter(video_id),
            sort='-shares',
        )

    def get_revenue_metrics(self, start_date: str, end_date: str, video_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query_report(
            start_date,
            end_date,
            metrics=['estimatedRevenue', 'estimatedAdRevenue', 'grossRevenue', 'cpm', 'playbackBasedCpm', 'views'],
            dimensions=['day'],
            filters=_video_filter(video_id),
            sort='day',
        )

    def _call(self, request: Any, action: str) -> Dict[str, Any]:
        try:
            return self._execute(request)
        except HttpError as error:
            mapped = self._classify_error(error, action)
            if mapped is None:
                raise
            raise mapped from error

    @retry_with_backoff
    def _execute(self, request: Any) -> Dict[str, Any]:
        return request.execute()

    def _classify_error(self, error: HttpError, action: str) -> Optional[Exception]:
        status = error.resp.status
        reasons = error_reasons(error)

        if status == 403 and 'quotaExceeded' in reasons:
            return QuotaExceededError("Daily quota exceeded")
        if status == 403 and 'userRateLimitExceeded' in reasons:
            return RateLimitError("User rate limit exceeded")
        if status == 429:
            return RateLimitError("Rate limit exceeded")
        if status == 401:
            return YouTubeAPIError("Authentication failed. Please re-authenticate.")

        logger.error(f"Error {action}: {error}")
        return None


def _video_filter(video_id: Optional[str]) -> Optional[str]:
    return f"video=={video_id}" if video_id else None
