# ABOUTME: Text rendering for YouTube channel data and analytics reports
# ABOUTME: Parses analytics column/row payloads and formats numbers for tool output

from typing import Any, Dict, List, Optional

SUMMABLE_METRICS = (
    'views', 'estimatedMinutesWatched', 'subscribersGained', 'subscribersLost',
    'likes', 'dislikes', 'comments', 'shares',
    'estimatedRevenue', 'estimatedAdRevenue', 'grossRevenue',
)

SUBSCRIBED_STATUS_LABELS = {
    'SUBSCRIBED': 'Subscribers',
    'UNSUBSCRIBED': 'Non-subscribers',
}

TRAFFIC_SOURCE_LABELS = {
    'YT_SEARCH': 'YouTube search',
    'SUGGESTED': 'Suggested videos',
    'BROWSE': 'Browse features',
    'EXT_URL': 'External',
    'PLAYLIST': 'Playlists',
    'NOTIFICATION': 'Notifications',
    'SUBSCRIBER': 'Subscriptions feed',
    'SHORTS': 'Shorts feed',
    'CHANNEL': 'Channel pages',
    'NO_LINK_OTHER': 'Direct or unknown',
}


def format_number(value: Any) -> str:
    """Format a count with thousands separators (``1234.5`` -> ``1,234.5``)."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.2f}".rstrip('0').rstrip('.')


def format_percentage(value: Any) -> str:
    return f"{float(value or 0):.1f}%"


def format_duration(seconds: Any) -> str:
    """Format seconds as ``1h 2m 3s``, dropping leading zero units."""
    total = int(round(float(seconds or 0)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def parse_report(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Turn an analytics ``columnHeaders``/``rows`` payload into row dicts."""
    headers = [h.get('name') for h in report.get('columnHeaders') or []]
    return [dict(zip(headers, row)) for row in report.get('rows') or []]


def summarize_report(report: Dict[str, Any]) -> Dict[str, float]:
    """Total summable metrics and average everything else across rows."""
    rows = parse_report(report)
    if not rows:
        return {}

    totals: Dict[str, float] = {}
    for row in rows:
        for name, value in row.items():
            if isinstance(value, (int, float)):
                totals[name] = totals.get(name, 0) + value

    for name in list(totals):
        if name not in SUMMABLE_METRICS:
            totals[name] = totals[name] / len(rows)
    return totals


def format_channel_list(channels: List[Dict[str, Any]], active_channel_id: Optional[str] = None) -> str:
    if not channels:
        return "No channels found for this account."

    output = "Channels on this account:\n\n"
    for i, channel in enumerate(channels, start=1):
        snippet = channel.get('snippet', {})
        stats = channel.get('statistics', {})
        active = " (ACTIVE)" if active_channel_id and active_channel_id == channel.get('id') else ""
        output += f"{i}. {snippet.get('title', 'Untitled')}{active}\n"
        output += f"   Channel ID: {channel.get('id')}\n"
        output += f"   Subscribers: {format_number(stats.get('subscriberCount', 0))}\n"
        output += f"   Videos: {stats.get('videoCount', 0)}\n"
        if snippet.get('customUrl'):
            output += f"   URL: youtube.com/{snippet['customUrl']}\n"
        output += "\n"

    output += "To target a specific channel, set the YOUTUBE_CHANNEL_ID environment variable.\n"
    output += "Example: YOUTUBE_CHANNEL_ID=UCxxxxxxx"
    return output


def format_channel_info(channel: Dict[str, Any]) -> str:
    snippet = channel.get('snippet', {})
    stats = channel.get('statistics', {})

    output = f"Channel: {snippet.get('title', 'Untitled')}\n"
    output += f"Channel ID: {channel.get('id')}\n"
    if snippet.get('customUrl'):
        output += f"URL: youtube.com/{snippet['customUrl']}\n"
    output += f"Created: {snippet.get('publishedAt', 'unknown')}\n"
    if snippet.get('country'):
        output += f"Country: {snippet['country']}\n"

    output += "\nStatistics:\n"
    if stats.get('hiddenSubscriberCount'):
        output += "  Subscribers: hidden\n"
    else:
        output += f"  Subscribers: {format_number(stats.get('subscriberCount', 0))}\n"
    output += f"  Total Views: {format_number(stats.get('viewCount', 0))}\n"
    output += f"  Videos: {format_number(stats.get('videoCount', 0))}\n"

    if snippet.get('description'):
        output += f"\nDescription:\n{snippet['description']}"
    return output.rstrip('\n')


def format_video_list(
    videos: List[Dict[str, Any]],
    query: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> str:
    filters = []
    if query:
        filters.append(f'matching "{query}"')
    if start_date:
        filters.append(f"from {start_date}")
    if end_date:
        filters.append(f"until {end_date}")
    suffix = f" ({', '.join(filters)})" if filters else ""

    if not videos:
        return f"No videos found{suffix}."

    output = f"Found {len(videos)} videos{suffix}:\n\n"
    for i, video in enumerate(videos, start=1):
        snippet = video.get('snippet', {})
        video_id = video.get('id', {}).get('videoId', 'unknown')
        output += f"{i}. {snippet.get('title', 'Untitled')}\n"
        output += f"   Video ID: {video_id}\n"
        output += f"   Published: {snippet.get('publishedAt', 'unknown')}\n\n"
    return output.rstrip('\n')


def format_video_details(video: Dict[str, Any]) -> str:
    snippet = video.get('snippet', {})
    stats = video.get('statistics', {})
    details = video.get('contentDetails', {})

    output = f"Video Details for {video.get('id')}:\n\n"
    output += f"Title: {snippet.get('title', 'Untitled')}\n"
    output += f"Published: {snippet.get('publishedAt', 'unknown')}\n"
    output += f"Duration: {details.get('duration', 'unknown')}\n"
    output += f"Definition: {details.get('definition', 'unknown')}\n"
    output += f"Caption: {details.get('caption', 'unknown')}\n\n"

    output += "Statistics:\n"
    output += f"  Views: {format_number(stats.get('viewCount', 0))}\n"
    output += f"  Likes: {format_number(stats.get('likeCount', 0))}\n"
    output += f"  Comments: {format_number(stats.get('commentCount', 0))}\n\n"

    if snippet.get('tags'):
        output += f"Tags: {', '.join(snippet['tags'])}\n\n"

    output += f"Description:\n{snippet.get('description', '')}"
    return output


def format_channel_overview(report: Dict[str, Any], period: str) -> str:
    totals = summarize_report(report)
    if not totals:
        return f"No channel data available for {period}."

    net_subscribers = totals.get('subscribersGained', 0) - totals.get('subscribersLost', 0)
    output = "Channel Health Overview:\n\n"
    output += f"• Total Views: {format_number(totals.get('views', 0))}\n"
    output += f"• Watch Time (minutes): {format_number(totals.get('estimatedMinutesWatched', 0))}\n"
    output += f"• Subscribers Gained: {format_number(totals.get('subscribersGained', 0))}\n"
    output += f"• Subscribers Lost: {format_number(totals.get('subscribersLost', 0))}\n"
    output += f"• Net Subscribers: {net_subscribers:+,.0f}\n"
    output += f"• Average View Duration: {format_duration(totals.get('averageViewDuration', 0))}\n"
    if 'averageViewPercentage' in totals:
        output += f"• Average View Percentage: {format_percentage(totals['averageViewPercentage'])}\n"
    output += f"\nNote: This represents aggregate performance for {period}."
    return output


def format_comparison(comparison: Dict[str, Any]) -> str:
    first = comparison['period1']
    second = comparison['period2']
    totals1 = summarize_report(first['report'])
    totals2 = summarize_report(second['report'])
    metrics = [h.get('name') for h in first['report'].get('columnHeaders') or []]

    output = f"Period 1: {first['period']}\nPeriod 2: {second['period']}\n\n"
    if not metrics:
        return output + "No data available for the selected periods."

    for metric in metrics:
        new_value = totals1.get(metric, 0)
        old_value = totals2.get(metric, 0)
        if old_value:
            change = (new_value - old_value) / old_value * 100
            change_text = f"{change:+.1f}%"
        else:
            change_text = "n/a"
        output += (
            f"• {metric}: {format_number(new_value)} vs {format_number(old_value)} "
            f"({change_text})\n"
        )
    return output.rstrip('\n')


def format_average_view_percentage(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows or rows[0].get('averageViewPercentage') is None:
        return "No average view percentage data available for this period."

    return (
        f"Average view percentage: {format_percentage(rows[0]['averageViewPercentage'])}\n\n"
        "This is how much of each video viewers watch on average, accounting for different video lengths."
    )


def format_watch_time(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No watch time data available for this period."

    totals = summarize_report(report)
    minutes = totals.get('estimatedMinutesWatched', 0)
    output = f"• Total watch time: {format_number(round(minutes))} minutes ({minutes / 60:.1f} hours)\n"
    output += f"• Total views: {format_number(totals.get('views', 0))}\n"
    output += f"• Average view duration: {format_duration(totals.get('averageViewDuration', 0))}\n"
    output += f"• Average view percentage: {format_percentage(totals.get('averageViewPercentage', 0))}\n"
    output += f"• Days analyzed: {len(rows)}\n"
    output += f"• Average daily watch time: {format_number(round(minutes / len(rows)))} minutes/day"
    return output


def format_demographics(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No demographic data available for this period."

    by_gender: Dict[str, float] = {}
    output = "Viewer breakdown by age and gender:\n\n"
    for row in rows:
        gender = str(row.get('gender', 'unknown')).lower()
        share = float(row.get('viewerPercentage', 0))
        by_gender[gender] = by_gender.get(gender, 0) + share
        output += f"• {row.get('ageGroup', 'unknown')} {gender}: {format_percentage(share)}\n"

    output += "\nBy gender:\n"
    for gender, share in sorted(by_gender.items(), key=lambda item: -item[1]):
        output += f"• {gender}: {format_percentage(share)}\n"
    return output.rstrip('\n')


def format_geographic_distribution(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No geographic data available for this period."

    total_views = sum(float(r.get('views', 0)) for r in rows) or 1
    output = "Top countries by views:\n\n"
    for i, row in enumerate(rows, start=1):
        views = float(row.get('views', 0))
        output += (
            f"{i}. {row.get('country', '??')}: {format_number(views)} views "
            f"({format_percentage(views / total_views * 100)}), "
            f"avg duration {format_duration(row.get('averageViewDuration', 0))}\n"
        )
    return output.rstrip('\n')


def format_subscriber_analytics(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No subscriber data available for this period."

    total_views = sum(float(r.get('views', 0)) for r in rows) or 1
    shares: Dict[str, float] = {}
    output = "Views by subscription status:\n\n"
    for row in rows:
        status = row.get('subscribedStatus', 'UNKNOWN')
        views = float(row.get('views', 0))
        shares[status] = views / total_views * 100
        output += (
            f"• {SUBSCRIBED_STATUS_LABELS.get(status, status)}: {format_number(views)} views "
            f"({format_percentage(shares[status])}), "
            f"{format_number(row.get('estimatedMinutesWatched', 0))} minutes watched, "
            f"avg duration {format_duration(row.get('averageViewDuration', 0))}\n"
        )

    if shares.get('UNSUBSCRIBED', 0) > 50:
        output += "\nMost views come from non-subscribers, so there is room to convert viewers into subscribers."
    return output.rstrip('\n')


def _views_by(rows: List[Dict[str, Any]], key: str) -> List[tuple]:
    groups: Dict[str, Dict[str, float]] = {}
    for row in rows:
        group = groups.setdefault(row.get(key) or 'UNKNOWN', {'views': 0, 'minutes': 0, 'duration': 0, 'rows': 0})
        group['views'] += float(row.get('views', 0))
        group['minutes'] += float(row.get('estimatedMinutesWatched', 0))
        group['duration'] += float(row.get('averageViewDuration', 0))
        group['rows'] += 1
    return sorted(groups.items(), key=lambda item: -item[1]['views'])


def format_device_analytics(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No device data available for this period."

    total_views = sum(float(r.get('views', 0)) for r in rows)
    output = f"Total views analyzed: {format_number(total_views)}\n"
    for title, key in (("By device type", 'deviceType'), ("By operating system", 'operatingSystem')):
        output += f"\n{title}:\n"
        for name, group in _views_by(rows, key):
            share = group['views'] / total_views * 100 if total_views else 0
            output += (
                f"• {name}: {format_number(group['views'])} views ({format_percentage(share)}) | "
                f"{format_number(group['minutes'])} min | "
                f"avg {format_duration(group['duration'] / group['rows'])}\n"
            )
    return output.rstrip('\n')


def format_traffic_sources(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No traffic source data available for this period."

    total_views = sum(float(r.get('views', 0)) for r in rows) or 1
    output = "Traffic sources:\n\n"
    for row in rows:
        source = row.get('insightTrafficSourceType', 'UNKNOWN')
        label = TRAFFIC_SOURCE_LABELS.get(source, source)
        views = float(row.get('views', 0))
        output += (
            f"• {label}: {format_number(views)} views "
            f"({format_percentage(views / total_views * 100)}), "
            f"{format_number(row.get('estimatedMinutesWatched', 0))} minutes watched\n"
        )
    return output.rstrip('\n')


def _drop_severity(drop: float) -> str:
    if drop >= 0.3:
        return 'high'
    if drop >= 0.2:
        return 'medium'
    return 'low'


def find_drop_off_points(report: Dict[str, Any], threshold: float = 0.1) -> List[Dict[str, Any]]:
    """Find points where the watch ratio falls by at least ``threshold``.

    Each point carries its ``position`` in the video (0-1), the ``drop``
    from the previous point, the ``retention`` left after it, and a
    ``severity`` of low, medium or high.
    """
    points = []
    previous = None
    for row in parse_report(report):
        position = float(row.get('elapsedVideoTimeRatio', 0))
        ratio = float(row.get('audienceWatchRatio', 0))
        if previous is not None and previous - ratio >= threshold:
            drop = previous - ratio
            points.append({
                'position': position,
                'drop': drop,
                'retention': ratio,
                'severity': _drop_severity(drop),
            })
        previous = ratio
    return points


def format_audience_retention(report: Dict[str, Any], drop_threshold: float = 0.1) -> str:
    rows = parse_report(report)
    if not rows:
        return "No retention data available for this video."

    output = "Retention curve (share of viewers still watching):\n\n"
    for row in rows:
        position = float(row.get('elapsedVideoTimeRatio', 0))
        ratio = float(row.get('audienceWatchRatio', 0))
        output += f"• {position * 100:.0f}%: {format_percentage(ratio * 100)}\n"

    drops = find_drop_off_points(report, drop_threshold)
    if drops:
        output += "\nSharp drop-offs:\n"
        for point in drops:
            output += f"• at {point['position'] * 100:.0f}% of the video: -{format_percentage(point['drop'] * 100)}\n"
    return output.rstrip('\n')


def format_retention_dropoffs(report: Dict[str, Any], threshold: float = 0.1) -> str:
    if not parse_report(report):
        return "No retention data available for this video."

    points = find_drop_off_points(report, threshold)
    if not points:
        return f"No drop-offs of {format_percentage(threshold * 100)} or more. Retention is steady."

    output = f"Found {len(points)} drop-off points (threshold {format_percentage(threshold * 100)}), worst first:\n\n"
    for i, point in enumerate(sorted(points, key=lambda p: -p['drop']), start=1):
        output += (
            f"{i}. [{point['severity'].upper()}] at {point['position'] * 100:.0f}% of the video: "
            f"-{format_percentage(point['drop'] * 100)} "
            f"({format_percentage(point['retention'] * 100)} still watching)\n"
        )
    return output.rstrip('\n')


def format_top_videos(report: Dict[str, Any], metric: str = 'views') -> str:
    rows = parse_report(report)
    if not rows:
        return "No video data available for this period."

    output = f"Top videos by {metric}:\n\n"
    for i, row in enumerate(rows, start=1):
        output += f"{i}. Video ID: {row.get('video')}\n"
        output += (
            f"   Views: {format_number(row.get('views', 0))} | "
            f"Watch time: {format_number(row.get('estimatedMinutesWatched', 0))} min | "
            f"Avg duration: {format_duration(row.get('averageViewDuration', 0))}\n"
        )
        output += (
            f"   Likes: {format_number(row.get('likes', 0))} | "
            f"Comments: {format_number(row.get('comments', 0))} | "
            f"Shares: {format_number(row.get('shares', 0))} | "
            f"Subscribers gained: {format_number(row.get('subscribersGained', 0))}\n"
        )
    return output.rstrip('\n')


def format_playlist_performance(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No playlist data available for this period."

    output = "Playlists by starts:\n\n"
    for i, row in enumerate(rows, start=1):
        output += f"{i}. Playlist: {row.get('playlist', 'unknown')}\n"
        output += f"   Starts: {format_number(row.get('playlistStarts', 0))}\n"
        output += f"   Views per start: {float(row.get('viewsPerPlaylistStart', 0)):.1f}\n"
        output += f"   Average time in playlist: {float(row.get('averageTimeInPlaylist', 0)):.1f} minutes\n\n"
    return output.rstrip('\n')


def format_card_performance(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No card or end screen data available for this video and period."

    row = rows[0]
    impressions = float(row.get('cardImpressions', 0))
    click_rate = float(row.get('cardClickRate', 0))
    output = f"• Card impressions: {format_number(impressions)}\n"
    output += f"• Card clicks: {format_number(row.get('cardClicks', 0))}\n"
    output += f"• Card click rate: {click_rate * 100:.2f}%"

    if impressions:
        if click_rate > 0.05:
            verdict = "Strong card performance: viewers are engaging with your cards."
        elif click_rate > 0.02:
            verdict = "Moderate card engagement. Consider more compelling card text or timing."
        else:
            verdict = "Low card engagement. Try placing cards at high-engagement moments in the video."
        output += f"\n\n{verdict}"
    return output


def format_video_performance_over_time(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No data available for this video and period."

    output = "Daily breakdown:\n"
    for row in rows:
        output += (
            f"{row.get('day', '')}: {format_number(row.get('views', 0))} views | "
            f"{format_number(row.get('estimatedMinutesWatched', 0))} min | "
            f"{format_number(row.get('likes', 0))} likes | "
            f"{format_number(row.get('comments', 0))} comments\n"
        )

    totals = summarize_report(report)
    minutes = totals.get('estimatedMinutesWatched', 0)
    output += "\nTotals:\n"
    output += f"  Views: {format_number(totals.get('views', 0))}\n"
    output += f"  Watch time: {format_number(minutes)} minutes ({minutes / 60:.1f} hours)\n"
    output += f"  Likes: {format_number(totals.get('likes', 0))}\n"
    output += f"  Comments: {format_number(totals.get('comments', 0))}\n"
    output += f"  Shares: {format_number(totals.get('shares', 0))}\n"
    output += f"  Subscribers gained: {format_number(totals.get('subscribersGained', 0))}"
    return output


def format_engagement(report: Dict[str, Any]) -> str:
    totals = summarize_report(report)
    if not totals:
        return "No engagement data available for this period."

    views = totals.get('views', 0)
    interactions = totals.get('likes', 0) + totals.get('comments', 0) + totals.get('shares', 0)
    output = "Engagement summary:\n\n"
    output += f"• Views: {format_number(views)}\n"
    output += f"• Likes: {format_number(totals.get('likes', 0))}\n"
    output += f"• Dislikes: {format_number(totals.get('dislikes', 0))}\n"
    output += f"• Comments: {format_number(totals.get('comments', 0))}\n"
    output += f"• Shares: {format_number(totals.get('shares', 0))}\n"
    output += f"• Subscribers: +{format_number(totals.get('subscribersGained', 0))} / "
    output += f"-{format_number(totals.get('subscribersLost', 0))}\n"
    if views:
        output += f"• Engagement rate: {format_percentage(interactions / views * 100)}"
    return output.rstrip('\n')


def format_sharing_analytics(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    total_shares = sum(float(r.get('shares', 0)) for r in rows)
    output = f"Total shares: {format_number(total_shares)}\n\n"
    if not rows:
        return output + "No sharing data available for this period."

    output += "Sharing services (by shares):\n"
    for i, row in enumerate(rows, start=1):
        shares = float(row.get('shares', 0))
        share = shares / total_shares * 100 if total_shares else 0
        output += (
            f"{i}. {row.get('sharingService', 'UNKNOWN')}: {format_number(shares)} shares "
            f"({format_percentage(share)})\n"
        )
    return output.rstrip('\n')


def format_revenue(report: Dict[str, Any]) -> str:
    rows = parse_report(report)
    if not rows:
        return "No revenue data available. Monetization may not be enabled for this channel."

    totals = summarize_report(report)
    output = "Revenue summary:\n\n"
    output += f"• Estimated revenue: ${totals.get('estimatedRevenue', 0):,.2f}\n"
    output += f"• Ad revenue: ${totals.get('estimatedAdRevenue', 0):,.2f}\n"
    output += f"• Gross revenue: ${totals.get('grossRevenue', 0):,.2f}\n"
    output += f"• Average CPM: ${totals.get('cpm', 0):,.2f}\n"
    output += f"• Average playback-based CPM: ${totals.get('playbackBasedCpm', 0):,.2f}\n"
    output += f"• Monetized views: {format_number(totals.get('views', 0))}"
    return output
