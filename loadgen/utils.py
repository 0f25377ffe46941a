class MetricsUtils:
    @staticmethod
    def format_bytes(raw_bytes: int) -> str:
        value = float(raw_bytes)
        units = ["B", "KB", "MB", "GB", "TB"]
        for unit in units:
            if value < 1024.0:
                return f"{value:.2f} {unit}"
            value /= 1024.0
        return f"{value:.2f} PB"

    @staticmethod
    def format_duration(seconds: float) -> str:
        minutes, secs = divmod(max(0.0, seconds), 60.0)
        hours, minutes = divmod(int(minutes), 60)
        if hours:
            return f"{hours}h{minutes}m{secs:.3f}s"
        if minutes:
            return f"{minutes}m{secs:.3f}s"
        return f"{secs:.3f}s"


def error_chain(exc: BaseException) -> str:
    """Render an exception and its ``__cause__`` chain as ``outer: inner``."""
    parts: list[str] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current) or type(current).__name__
        parts.append(text)
        current = current.__cause__
    return ": ".join(parts)
