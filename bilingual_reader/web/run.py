"""Launcher script for the Bilingual Reader web API."""

import os

from bilingual_reader.config import Config
from bilingual_reader.web.app import create_app


def main(port=None):
    """Run the Flask development server."""
    app = create_app()
    print("\n" + "="*60)
    print("Bilingual Reader API")
    print("="*60)

    # Security: Only bind to localhost when debug mode is enabled
    # to prevent exposing the interactive debugger to the network
    debug_mode = os.environ.get('FLASK_DEBUG', 'True').lower() == 'true'
    host = '127.0.0.1' if debug_mode else '0.0.0.0'
    if port is None:
        port = int(os.environ.get('FLASK_PORT', str(Config.DEFAULT_PORT)))

    if debug_mode:
        print("\n⚠️  Running in DEBUG mode - server restricted to localhost only")
        print(f"Starting server at http://localhost:{port}/api")
    else:
        print(f"\nStarting server at http://0.0.0.0:{port}/api")

    print("Press Ctrl+C to stop the server")

    app.run(debug=debug_mode, host=host, port=port)


if __name__ == '__main__':
    main()
