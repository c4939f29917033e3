"""
WSGI entry point for Keyforge
Use this with production WSGI servers like Gunicorn or uWSGI
"""
import os

from keyforge import create_app
from keyforge.config import DevelopmentConfig, ProductionConfig

config_class = DevelopmentConfig if os.environ.get('FLASK_ENV') == 'development' else ProductionConfig

# WSGI application
application = create_app(config_class)

if __name__ == '__main__':
    # For development/testing only
    # In production, use: gunicorn -c gunicorn.conf.py wsgi:application
    port = int(os.environ.get('PORT', 5000))
    application.run(host='0.0.0.0', port=port, debug=False)
