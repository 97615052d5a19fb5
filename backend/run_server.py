#!/usr/bin/env python3
"""Production server runner for the PingCode backend"""

import uvicorn

if __name__ == "__main__":  # pragma: no cover
    # a single worker: the presence registry lives in this process
    uvicorn.run(
        "app:create_app",
        factory=True,
        host="127.0.0.1",
        port=5000,
        reload=False,
        workers=1,
        log_level="info",
        proxy_headers=True,
    )
