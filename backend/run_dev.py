#!/usr/bin/env python3
"""Development server runner for the PingCode backend"""

import setproctitle
import uvicorn

setproctitle.setproctitle("PingCode DEV API")
if __name__ == "__main__":  # pragma: no cover
    uvicorn.run(
        "app:create_app",
        factory=True,
        host="127.0.0.1",
        port=5000,
        reload=True,
        log_level="info",
    )
