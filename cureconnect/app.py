import os

from .main import create_app

# WSGI entrypoint: gunicorn "cureconnect.app:app"
app = create_app()

if __name__ == "__main__":
    # PORT is set in production; 5000 for local dev
    port = int(os.getenv("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_ENV") != "production")
