# run.py
import os

from phonerelay import create_app

# Configuration comes from FLASK_ENV; config.py loads .env
app = create_app()

if __name__ == '__main__':
    # Development server only. Use Gunicorn/uWSGI in production.
    host = os.environ.get('FLASK_RUN_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_RUN_PORT', 5000))
    app.run(host=host, port=port)
