#!/usr/bin/env python3
"""
Startup script for the mock drive API server.
"""

import uvicorn
from mock_api.server import app

if __name__ == "__main__":
    print("Starting Mock Drive API Server...")
    print("Available endpoints:")
    print("  - GET  /api/                 : Health check")
    print("  - GET  /api/files            : List a folder (cursor pagination)")
    print("  - GET  /api/files/{id}       : Get item metadata")
    print("  - POST /api/uploads/{id}     : Upload one chunk")
    print("  - POST /api/files            : Finalize an upload or create a folder")
    print("  - GET  /api/events/stream    : Server-sent change events")
    print("\nServer will be available at: http://localhost:8080")
    print("API docs available at: http://localhost:8080/docs")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8080,
        reload=False,  # Disable reload in container
        log_level="info"
    )
