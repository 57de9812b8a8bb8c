#!/usr/bin/env python3
"""
Stackr Development Server
Runs Flask on port 5000 with debug logging on stdout
"""
import logging

from stackr_app import create_app

if __name__ == '__main__':
    app = create_app()
    logging.getLogger('stackr_app').setLevel(logging.DEBUG)
    app.run(
        host='0.0.0.0',
        port=5000,
        debug=True,
        use_reloader=False
    )
