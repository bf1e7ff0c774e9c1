import os

from client_pulse.app import create_app

# This instance is used by Gunicorn (`gunicorn app:app`); run a single worker so only one scheduler polls.
app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    # The reloader would fork a second process with its own scheduler thread.
    app.run(port=port, debug=False, use_reloader=False)
