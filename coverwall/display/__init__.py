"""Display sinks for rendered wall frames."""

from coverwall.display.headless_display import HeadlessDisplay

__all__ = ["HeadlessDisplay"]
