"""
WSGI entry point for the Asset Movement Ledger
This file is used by Gunicorn to start the application
"""

import os
from asset_ledger import create_app

# Create Flask app instance
app = create_app(os.getenv('FLASK_ENV', 'production'))

if __name__ == '__main__':
    app.run()
