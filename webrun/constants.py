"""webrun constants."""

# Retry budget defaults for property reads (milliseconds).
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_INTERVAL_MS = 100

# Name of the window-level object holding tracked calls and events.
REGISTRY_NAMESPACE = "__componentHelpers"

# Attribute stamped on elements addressed through a locator handle.
TRACKING_ATTRIBUTE = "data-webrun-id"

# Prefix embedded in errors thrown by remote scripts, e.g. "[webrun:element_not_found]".
REMOTE_ERROR_TAG = "webrun"

CONTAINER_ID = "test-container"
CONTAINER_SELECTOR = f"#{CONTAINER_ID} > *:first-child"

DEFAULT_SCREENSHOT_DIR = ".webrun/screenshots"
