"""Text formatter for Tracksy reports.

Renders DurationsReport and ProductivityBreakdown as aligned plain text,
and provides duration formatting utilities.
"""

from tracksy.core.models import DurationsReport, GroupReport, ProductivityBreakdown

SECTIONS = (
    ("Applications", "applications", "Application"),
    ("Domains", "domains", "Domain"),
    ("Titles", "titles", "Title"),
)

MAX_KEY_WIDTH = 48


class TextFormatter:
    """Formats report data as human-readable plain text."""

    @staticmethod
    def format_duration(duration_ms: int) -> str:
        """Format milliseconds as 'Xh Ym' (e.g., '2h 15m').

        Truncates to whole minutes. Returns '0m' for zero/negative durations.
        """
        total_seconds = max(int(duration_ms // 1000), 0)
        total_minutes = total_seconds // 60
        hours = total_minutes // 60
        minutes = total_minutes % 60

        if hours == 0:
            return f"{minutes}m"
        return f"{hours}h {minutes}m"

    @staticmethod
    def format_clock(duration_ms: int) -> str:
        """Format milliseconds as 'MM:SS', or 'H:MM:SS' from one hour up."""
        total_seconds = max(int(duration_ms // 1000), 0)
        hours, rest = divmod(total_seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        if hours:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes:02d}:{seconds:02d}"

    @staticmethod
    def _shorten(text: str) -> str:
        if len(text) <= MAX_KEY_WIDTH:
            return text
        return text[: MAX_KEY_WIDTH - 3] + "..."

    @staticmethod
    def _format_group_table(groups: list[GroupReport], label: str) -> str:
        """Render one report section with aligned columns.

        Returns lines like:
          Application    Time  Share  Longest
          ───────────────────────────────────
          Code         2h 15m  75.0%  1:40:00
          Chrome          45m  25.0%    30:12

        Longest is the longest single uninterrupted instance of the group.
        """
        if not groups:
            return "  No activity recorded.\n"

        keys = [TextFormatter._shorten(g.key) for g in groups]
        durs = [TextFormatter.format_duration(g.total_duration) for g in groups]
        shares = [f"{g.percentage:.1f}%" for g in groups]
        longest = [
            TextFormatter.format_clock(max((i.duration for i in g.instances), default=0))
            for g in groups
        ]

        key_width = max(max(len(k) for k in keys), len(label))
        dur_width = max(max(len(d) for d in durs), len("Time"))
        share_width = max(max(len(s) for s in shares), len("Share"))
        long_width = max(max(len(s) for s in longest), len("Longest"))

        header = (
            f"  {label:<{key_width}}  "
            f"{'Time':>{dur_width}}  "
            f"{'Share':>{share_width}}  "
            f"{'Longest':>{long_width}}"
        )
        separator = "  " + "─" * (len(header) - 2)

        lines = [header, separator]
        for key, dur, share, run in zip(keys, durs, shares, longest):
            lines.append(
                f"  {key:<{key_width}}  "
                f"{dur:>{dur_width}}  "
                f"{share:>{share_width}}  "
                f"{run:>{long_width}}"
            )
        return "\n".join(lines) + "\n"

    @staticmethod
    def format_report(report: DurationsReport, heading: str = "Activity Report") -> str:
        """Render all three sections of a report."""
        parts = [f"{heading}\n"]
        for title, attr, label in SECTIONS:
            parts.append(f"\n{title}:\n")
            parts.append(
                TextFormatter._format_group_table(getattr(report, attr), label)
            )
        return "".join(parts)

    @staticmethod
    def format_productivity(
        breakdown: ProductivityBreakdown, heading: str = "Productivity"
    ) -> str:
        fmt = TextFormatter.format_duration
        lines = [
            f"{heading}\n",
            f"  Productive:    {fmt(breakdown.productive_ms)}",
            f"  Distracting:   {fmt(breakdown.distracting_ms)}",
            f"  Unclassified:  {fmt(breakdown.unclassified_ms)}",
            f"  Score:         {breakdown.score:.0f}%",
        ]
        if breakdown.by_category:
            lines.append("\n  By category:")
            ranked = sorted(
                breakdown.by_category.items(), key=lambda kv: kv[1], reverse=True
            )
            width = max(len(cat) for cat, _ in ranked)
            for cat, ms in ranked:
                lines.append(f"    {cat:<{width}}  {fmt(ms)}")
        return "\n".join(lines) + "\n"
