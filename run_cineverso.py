#!/usr/bin/env python3
"""
CineVerso - Web Interface Entry Point

Run this script to start the web application:
    python3 run_cineverso.py

Then open your browser to: http://127.0.0.1:8487
"""

import logging
import os

from flask_app import create_app

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)

app = create_app(os.getenv('FLASK_CONFIG', 'development'))

if __name__ == '__main__':
    # Get port from environment variable or use default
    port = int(os.getenv('PORT', 8487))

    print("\n" + "="*60)
    print("🎬 CineVerso Catalog")
    print("="*60)
    print(f"\n🌐 Open browser to: http://127.0.0.1:{port}")
    print("\n💡 Press CTRL+C to stop the server\n")

    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=port)
