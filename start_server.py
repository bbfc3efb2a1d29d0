#!/usr/bin/env python3
"""
Start the LAN file share server.
Open the printed address from any device on the same network.
"""

from app.server import main

if __name__ == "__main__":
    print("🌐 Starting LAN file share...")
    print("📁 Files are shared from the storage directory (STORAGE_DIR, default ~/Desktop/shared)")
    print("\nPress Ctrl+C to stop the server")
    main()
