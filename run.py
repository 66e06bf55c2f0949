"""
Development server entrypoint for the cash audit API.
"""
import logging
import os

from app import create_app
from config import config

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    debug = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    if not config.ai.is_configured():
        logging.getLogger(__name__).warning(
            "[AI] GEMINI_API_KEY is not set; AI-backed endpoints will return fallback text"
        )
    app.run(host='0.0.0.0', port=port, debug=debug)
