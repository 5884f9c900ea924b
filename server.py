"""
API server entry point.
Run this file to serve /api/enhance and /api/webhook next to the Streamlit UI.
"""
import os
from dotenv import load_dotenv

load_dotenv()

from modules.api import create_app

app = create_app()

if __name__ == '__main__':
    host = os.environ.get('API_HOST', '0.0.0.0')
    port = int(os.environ.get('API_PORT', 5000))
    app.run(host=host, port=port, debug=app.config['DEBUG'])
