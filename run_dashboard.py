#!/usr/bin/env python3
"""Direct launcher for the Expense Tracker dashboard."""

import sys
import subprocess
import os
from pathlib import Path

project_root = Path(__file__).parent.resolve()

if __name__ == "__main__":
    os.chdir(project_root)
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(project_root / "expense_tracker" / "dashboard.py"),
    ])
