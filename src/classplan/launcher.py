"""Open meeting links in an external browser.

Fire-and-forget: a failed launch is logged and never reaches schedule state.
"""

import webbrowser

from src.classplan.logging import get_logger

log = get_logger(__name__)


def launch_url(url: str, browser: str | None = None) -> bool:
    """Open `url` in the named browser, or the system default when `browser` is empty.

    Returns:
        True if the browser reported success. Never raises.
    """
    if not url:
        log.debug("launch_skipped", reason="empty_url")
        return False
    try:
        controller = webbrowser.get(browser) if browser else webbrowser
        opened = bool(controller.open(url))
    except (webbrowser.Error, OSError) as e:
        log.warning("launch_failed", url=url, browser=browser, error=str(e))
        return False

    if opened:
        log.info("meeting_launched", url=url, browser=browser or "default")
    else:
        log.warning("launch_failed", url=url, browser=browser, error="browser refused")
    return opened
