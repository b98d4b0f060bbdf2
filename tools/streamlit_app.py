"""
Streamlit launcher.

Usage:
    streamlit run tools/streamlit_app.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# `streamlit run tools/streamlit_app.py` puts tools/ first on sys.path.
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from vis_site.ui.app import main  # noqa: E402

if __name__ == "__main__":
    main()
