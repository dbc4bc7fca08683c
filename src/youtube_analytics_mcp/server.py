# ABOUTME: MCP server implementation for YouTube channel and video analytics
# ABOUTME: Exposes analytics and auth management as MCP tools over stdio

import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.types import Tool, TextContent

from youtube_analytics_mcp import config
from youtube_analytics_mcp.auth.errors import AuthError
from youtube_analytics_mcp.auth.session import AuthSessionManager
from youtube_analytics_mcp.services.youtube import YouTubeService
from youtube_analytics_mcp.utils import formatters

logger = logging.getLogger(__name__)

_START_DATE = {"type": "string", "description": "Start date (YYYY-MM-DD)"}
_END_DATE = {"type": "string", "description": "End date (YYYY-MM-DD)"}
_OPTIONAL_VIDEO_ID = {"type": "string", "description": "Optional video ID for video-specific analysis"}


def _date_range_schema(required: tuple = (), **extra: Any) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {"start_date": _START_DATE, "end_date": _END_DATE, **extra},
        "required": ["start_date", "end_date", *required],
    }


TOOLS: List[Tool] = [
    # Auth
    Tool(
        name="check_auth_status",
        description="Check whether a valid YouTube authorization is stored",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="revoke_auth",
        description="Revoke the YouTube authorization and delete the stored token",
        inputSchema={"type": "object", "properties": {}},
    ),

    # Channel
    Tool(
        name="list_channels",
        description=(
            "List all YouTube channels accessible under the authenticated Google account. "
            "Use this to find the correct channel ID for Brand Accounts."
        ),
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="get_channel_info",
        description="Get information about the authenticated YouTube channel",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="get_channel_videos",
        description="Get list of channel videos with optional filters",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Optional search query to filter videos"},
                "start_date": {"type": "string", "description": "Optional start date (YYYY-MM-DD)"},
                "end_date": {"type": "string", "description": "Optional end date (YYYY-MM-DD)"},
                "max_results": {"type": "integer", "default": 25, "description": "Number of videos (max 50)"},
            },
        },
    ),
    Tool(
        name="get_video_details",
        description="Get title, description, tags, stats, duration, and content details for a video",
        inputSchema={
            "type": "object",
            "properties": {"video_id": {"type": "string"}},
            "required": ["video_id"],
        },
    ),

    # Health
    Tool(
        name="get_channel_overview",
        description="Get channel vital signs - views, watch time, subscriber changes",
        inputSchema=_date_range_schema(),
    ),
    Tool(
        name="get_comparison_metrics",
        description="Compare channel metrics between two time periods",
        inputSchema={
            "type": "object",
            "properties": {
                "metrics": {"type": "array", "items": {"type": "string"}},
                "period1_start": {"type": "string"},
                "period1_end": {"type": "string"},
                "period2_start": {"type": "string"},
                "period2_end": {"type": "string"},
            },
            "required": ["metrics", "period1_start", "period1_end", "period2_start", "period2_end"],
        },
    ),
    Tool(
        name="get_average_view_percentage",
        description="Get the average share of each video that viewers watch",
        inputSchema=_date_range_schema(),
    ),
    Tool(
        name="get_watch_time_metrics",
        description="Get daily watch time, average view duration, and average view percentage",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),

    # Audience
    Tool(
        name="get_video_demographics",
        description="Get audience age/gender breakdown for the channel or a specific video",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),
    Tool(
        name="get_geographic_distribution",
        description="Get viewer distribution by country",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),
    Tool(
        name="get_traffic_sources",
        description="Get where views come from (search, suggested, external, ...)",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),
    Tool(
        name="get_subscriber_analytics",
        description="Compare views from subscribers and non-subscribers",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),
    Tool(
        name="get_device_analytics",
        description="Get views by device type and operating system",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),

    # Performance
    Tool(
        name="get_audience_retention",
        description="Track where viewers leave a video",
        inputSchema=_date_range_schema(required=("video_id",), video_id={"type": "string"}),
    ),
    Tool(
        name="get_retention_dropoff_points",
        description="Find the moments a video loses viewers, ranked by severity",
        inputSchema=_date_range_schema(
            required=("video_id",),
            video_id={"type": "string"},
            threshold={"type": "number", "default": 0.1, "description": "Drop threshold (0.1 = 10%)"},
        ),
    ),
    Tool(
        name="get_playlist_performance",
        description="Get playlist starts, views per start, and average time in playlist",
        inputSchema=_date_range_schema(
            playlist_id={"type": "string", "description": "Optional playlist ID"},
        ),
    ),
    Tool(
        name="get_card_endscreen_performance",
        description="Get card impressions, clicks, and click rate for a video",
        inputSchema=_date_range_schema(required=("video_id",), video_id={"type": "string"}),
    ),
    Tool(
        name="get_video_performance_over_time",
        description="Get a daily breakdown of views, watch time, and interactions for a video",
        inputSchema=_date_range_schema(required=("video_id",), video_id={"type": "string"}),
    ),
    Tool(
        name="get_top_videos",
        description="Get the channel's best performing videos for a period",
        inputSchema=_date_range_schema(
            metric={"type": "string", "default": "views"},
            max_results={"type": "integer", "default": 10},
        ),
    ),

    # Engagement
    Tool(
        name="get_engagement_metrics",
        description="Get likes, comments, shares, and subscriber changes",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),
    Tool(
        name="get_sharing_analytics",
        description="Get which services viewers use to share your videos",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),

    # Revenue
    Tool(
        name="get_revenue_metrics",
        description="Get estimated revenue and CPM (requires monetization)",
        inputSchema=_date_range_schema(video_id=_OPTIONAL_VIDEO_ID),
    ),
]


class YouTubeAnalyticsMCPServer:
    """MCP Server for YouTube Analytics."""

    def __init__(self, auth_manager: Optional[AuthSessionManager] = None):
        """Initialize YouTube Analytics MCP Server.

        Args:
            auth_manager: OAuth session manager (defaults to one built from
                environment configuration)
        """
        self.name = "youtube-analytics-mcp"
        self.version = "0.1.0"

        # Authentication is deferred to the first tool call
        self.auth_manager = auth_manager or AuthSessionManager()
        self._youtube_service: Optional[YouTubeService] = None

        self.server = Server(self.name)
        self._register_tools()

    def _register_tools(self) -> None:
        """Register all MCP tools."""

        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            """List available tools."""
            return TOOLS

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
            """Execute a tool."""
            return await self.handle_tool_call(name, arguments)

    async def handle_tool_call(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
        """Run a tool off the event loop and wrap its output as text."""
        logger.info(f"Executing tool: {name}")
        try:
            result = await asyncio.to_thread(self._execute_tool, name, dict(arguments or {}))
            return [TextContent(type="text", text=result)]
        except Exception as e:
            logger.error(f"Error executing tool {name}: {e}")
            return [TextContent(type="text", text=f"Error: {str(e)}")]

    def get_youtube_service(self) -> YouTubeService:
        """YouTube service bound to the current authenticated client."""
        try:
            credentials = self.auth_manager.get_client()
        except AuthError:
            self._youtube_service = None
            raise

        if self._youtube_service is None or self._youtube_service.credentials is not credentials:
            self._youtube_service = YouTubeService(credentials)
        return self._youtube_service

    def _execute_tool(self, name: str, arguments: Dict[str, Any]) -> str:
        """Execute a tool by name."""

        # Auth tools
        if name == "check_auth_status":
            if self.auth_manager.is_authenticated():
                return "✅ Authenticated with YouTube. A valid token is stored."
            return (
                "❌ Not authenticated. Call any analytics tool to start the browser sign-in, "
                "and make sure your OAuth credentials file is in place."
            )

        elif name == "revoke_auth":
            try:
                self.auth_manager.revoke()
            finally:
                self._youtube_service = None
            return "✅ YouTube authorization revoked and local token removed."

        # Channel tools
        elif name == "list_channels":
            channels = self.get_youtube_service().list_channels()
            return formatters.format_channel_list(channels, config.channel_id())

        elif name == "get_channel_info":
            return formatters.format_channel_info(self.get_youtube_service().get_channel_info())

        elif name == "get_channel_videos":
            videos = self.get_youtube_service().search_channel_videos(**arguments)
            return formatters.format_video_list(
                videos,
                query=arguments.get("query"),
                start_date=arguments.get("start_date"),
                end_date=arguments.get("end_date"),
            )

        elif name == "get_video_details":
            return formatters.format_video_details(self.get_youtube_service().get_video_details(**arguments))

        # Health tools
        elif name == "get_channel_overview":
            report = self.get_youtube_service().get_channel_overview(**arguments)
            period = f"{arguments['start_date']} to {arguments['end_date']}"
            return f"Channel Overview ({period}):\n\n" + formatters.format_channel_overview(report, period)

        elif name == "get_comparison_metrics":
            comparison = self.get_youtube_service().get_comparison_metrics(**arguments)
            return "Comparison Metrics:\n" + formatters.format_comparison(comparison)

        elif name == "get_average_view_percentage":
            report = self.get_youtube_service().get_average_view_percentage(**arguments)
            return _titled("Average View Percentage", arguments, formatters.format_average_view_percentage(report))

        elif name == "get_watch_time_metrics":
            report = self.get_youtube_service().get_watch_time_metrics(**arguments)
            return _titled("Watch Time Metrics", arguments, formatters.format_watch_time(report))

        # Audience tools
        elif name == "get_video_demographics":
            report = self.get_youtube_service().get_demographics(**arguments)
            return _titled("Demographics Analysis", arguments, formatters.format_demographics(report))

        elif name == "get_geographic_distribution":
            report = self.get_youtube_service().get_geographic_distribution(**arguments)
            return _titled("Geographic Distribution", arguments, formatters.format_geographic_distribution(report))

        elif name == "get_traffic_sources":
            report = self.get_youtube_service().get_traffic_sources(**arguments)
            return _titled("Traffic Sources", arguments, formatters.format_traffic_sources(report))

        elif name == "get_subscriber_analytics":
            report = self.get_youtube_service().get_subscriber_analytics(**arguments)
            return _titled("Subscriber Analytics", arguments, formatters.format_subscriber_analytics(report))

        elif name == "get_device_analytics":
            report = self.get_youtube_service().get_device_analytics(**arguments)
            return _titled("Device Analytics", arguments, formatters.format_device_analytics(report))

        # Performance tools
        elif name == "get_audience_retention":
            report = self.get_youtube_service().get_audience_retention(**arguments)
            return _titled("Audience Retention", arguments, formatters.format_audience_retention(report))

        elif name == "get_retention_dropoff_points":
            threshold = float(arguments.pop("threshold", 0.1))
            report = self.get_youtube_service().get_audience_retention(**arguments)
            return _titled(
                "Retention Drop-off Points", arguments, formatters.format_retention_dropoffs(report, threshold)
            )

        elif name == "get_playlist_performance":
            report = self.get_youtube_service().get_playlist_performance(**arguments)
            return _titled("Playlist Performance", arguments, formatters.format_playlist_performance(report))

        elif name == "get_card_endscreen_performance":
            report = self.get_youtube_service().get_card_endscreen_performance(**arguments)
            return _titled("Card & End Screen Performance", arguments, formatters.format_card_performance(report))

        elif name == "get_video_performance_over_time":
            report = self.get_youtube_service().get_video_performance_over_time(**arguments)
            return _titled(
                "Video Performance Over Time", arguments, formatters.format_video_performance_over_time(report)
            )

        elif name == "get_top_videos":
            report = self.get_youtube_service().get_top_videos(**arguments)
            metric = arguments.get("metric", "views")
            return _titled("Top Videos", arguments, formatters.format_top_videos(report, metric))

        # Engagement tools
        elif name == "get_engagement_metrics":
            report = self.get_youtube_service().get_engagement_metrics(**arguments)
            return _titled("Engagement Metrics", arguments, formatters.format_engagement(report))

        elif name == "get_sharing_analytics":
            report = self.get_youtube_service().get_sharing_analytics(**arguments)
            return _titled("Sharing Analytics", arguments, formatters.format_sharing_analytics(report))

        # Revenue tools
        elif name == "get_revenue_metrics":
            report = self.get_youtube_service().get_revenue_metrics(**arguments)
            return _titled("Revenue Metrics", arguments, formatters.format_revenue(report))

        else:
            raise ValueError(f"Unknown tool: {name}")

    def list_tools(self) -> List[Dict[str, Any]]:
        """List all available tools (for testing)."""
        return [{"name": tool.name} for tool in TOOLS]

    async def run(self) -> None:
        """Run the MCP server."""
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def _titled(title: str, arguments: Dict[str, Any], body: str) -> str:
    header = f"{title} ({arguments.get('start_date')} to {arguments.get('end_date')})"
    if arguments.get("video_id"):
        header += f" for video {arguments['video_id']}"
    if arguments.get("playlist_id"):
        header += f" for playlist {arguments['playlist_id']}"
    return f"{header}:\n\n{body}"


def main():
    """Main entry point."""
    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(
        level=config.log_level(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    server = YouTubeAnalyticsMCPServer()
    logger.info(f"{server.name} {server.version} running on stdio")
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
