"""Top‑level package for the Expense Tracker.

This file makes the directory a Python package and exposes
convenient names.  The primary modules are:

* ``aggregation`` – pure functions that total and break down expenses
* ``alerts`` – spending limit alerts
* ``session`` – keeps the dashboard figures in step with records and settings
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run expense_tracker/dashboard.py
```
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import alerts  # noqa: F401  # re-exported for convenience
from . import session  # noqa: F401  # re-exported for convenience


__all__ = ["aggregation", "alerts", "session"]
