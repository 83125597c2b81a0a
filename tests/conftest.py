import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read once on first import, so point the data directory
# somewhere disposable before any test module imports the package.
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="resale-inventory-tests-"))
os.environ.setdefault("API_KEY", "")
os.environ["TZ"] = "America/Chicago"
