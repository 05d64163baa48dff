"""Entry point for ``flask --app app <command>`` and ``python app.py``."""

import sys
from pathlib import Path

SRC = Path(__file__).resolve().parent / "src" / "hr_platform"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from hr_platform.main import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
