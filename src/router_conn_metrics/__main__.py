"""Module entrypoint.

Allows:
    python -m router_conn_metrics
"""

from __future__ import annotations

from router_conn_metrics.server.app import main

if __name__ == "__main__":
    main()
