import os
import tempfile

# Keep test runs from writing into the repo's logs/ directory
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="chainabuse-monitor-logs-"))
os.environ.setdefault("METRICS_SNAPSHOT_INTERVAL_SEC", "0")
os.environ.pop("SENTRY_DSN", None)
