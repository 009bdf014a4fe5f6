# wsgi.py
from phonerelay import create_app

# Entry point for WSGI servers, e.g.:
#   gunicorn --workers 1 --threads 4 --bind 0.0.0.0:5000 wsgi:application
# The outbound dispatcher queue is in-process, so each worker process runs its own consumer thread.
application = create_app()

if __name__ == "__main__":
    print("WSGI entry point. To run the application, use a WSGI server like Gunicorn:")
    print("Example: gunicorn wsgi:application")
